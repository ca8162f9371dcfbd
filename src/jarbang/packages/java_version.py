"""Requested Java version arithmetic.

A requested version is either a bare major version ("11"), which asks for
exactly that JDK, or a major version followed by a plus sign ("11+"), which
is satisfied by that JDK or any later one.
"""

import re
from functools import cmp_to_key
from typing import Iterable, Optional

REQUESTED_VERSION_PATTERN = re.compile(r"\d+[+]?")

_VERSION_STRING_PATTERN = re.compile(r"^(?:1\.)?(\d+)")


def check_requested_version(requested: str) -> bool:
    """Check that a requested version has the `N` or `N+` shape."""
    return REQUESTED_VERSION_PATTERN.fullmatch(requested) is not None


def is_open_version(requested: str) -> bool:
    """True if the requested version ends with the "or later" marker."""
    return requested.endswith("+")


def min_requested_version(requested: str) -> int:
    """Get the numeric floor of a requested version ("11+" -> 11)."""
    if is_open_version(requested):
        requested = requested[:-1]
    return int(requested)


def satisfies_requested_version(requested: Optional[str], version: int) -> bool:
    """Check whether a concrete JDK version satisfies a requested version.

    Args:
        requested: Requested version ("11", "11+") or None for "anything"
        version: Concrete major version of an available JDK

    Returns:
        True if the JDK can be used for the request
    """
    if requested is None:
        return True
    floor = min_requested_version(requested)
    if is_open_version(requested):
        return version >= floor
    return version == floor


def compare_requested_versions(first: str, second: str) -> int:
    """Order requested versions by numeric floor.

    On equal floors a fixed version sorts above an open one, because "11" is
    a stricter requirement than "11+".
    """
    n1 = min_requested_version(first)
    n2 = min_requested_version(second)
    if n1 != n2:
        return -1 if n1 < n2 else 1
    if is_open_version(first) and not is_open_version(second):
        return -1
    if not is_open_version(first) and is_open_version(second):
        return 1
    return 0


def max_requested_version(versions: Iterable[str]) -> Optional[str]:
    """Pick the strongest valid requirement among declared versions.

    Args:
        versions: Raw version strings collected from `//JAVA` directives

    Returns:
        The maximum valid requested version, or None when none is valid
    """
    valid = [v for v in versions if check_requested_version(v)]
    if not valid:
        return None
    return max(valid, key=cmp_to_key(compare_requested_versions))


def parse_java_version(version: Optional[str]) -> int:
    """Parse a Java version string into its major version.

    Handles both legacy ("1.8.0_252") and modern ("17.0.2", "21") styles.

    Args:
        version: Version string as reported by a JDK

    Returns:
        Major version, or 0 when the string cannot be parsed
    """
    if not version:
        return 0
    match = _VERSION_STRING_PATTERN.match(version.strip())
    if match is None:
        return 0
    return int(match.group(1))


def build_jdk_marker(version: int) -> str:
    """Encode a JDK major version the way `Build-Jdk` records it.

    Versions before 9 use the legacy "1.N" form, later ones the bare number.
    """
    if version >= 9:
        return str(version)
    return f"1.{version}"
