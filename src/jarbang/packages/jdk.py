"""JDK management for jarbang.

This module locates the JDK that satisfies a requested Java version and
resolves tool binaries (javac, native-image, ...) inside it. Installed JDKs
live in the cache under ``jdks/{major_version}``; installing new ones is not
handled here.
"""

import logging
import os
import re
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional, Set

from ..errors import JarbangError
from .cache import Cache
from .java_version import (
    min_requested_version,
    parse_java_version,
    satisfies_requested_version,
)

logger = logging.getLogger(__name__)

DEFAULT_JAVA_VERSION = 11

_RELEASE_VERSION_PATTERN = re.compile(r'^JAVA_VERSION="([^"]+)"', re.MULTILINE)
_VERSION_OUTPUT_PATTERN = re.compile(r'version "([^"]+)"')


class ToolchainError(JarbangError):
    """Raised when a suitable JDK or tool cannot be found."""

    pass


def executable_name(cmd: str) -> str:
    """Add the platform executable suffix to a tool name."""
    if sys.platform == "win32":
        return cmd + ".exe"
    return cmd


def resolve_in_env(env: str, cmd: str) -> str:
    """Resolve a tool inside the `bin` directory of an environment-named home.

    Args:
        env: Name of an environment variable pointing at a tool home
            (e.g. 'GRAALVM_HOME')
        cmd: Tool name (e.g. 'native-image')

    Returns:
        Absolute tool path if the variable is set, otherwise ``cmd`` unchanged
    """
    home = os.environ.get(env)
    if home:
        return str((Path(home) / "bin" / executable_name(cmd)).absolute())
    return cmd


class JdkManager:
    """Finds JDKs and the tools inside them."""

    def __init__(self, cache: Optional[Cache] = None):
        """Initialize JDK manager.

        Args:
            cache: Cache holding installed JDKs (defaults to the user cache)
        """
        self.cache = cache or Cache()
        self._current_version: Optional[int] = None

    def get_jdk_home(self) -> Optional[Path]:
        """Get the home directory of the JDK on JAVA_HOME or the PATH."""
        java_home = os.environ.get("JAVA_HOME")
        if java_home:
            return Path(java_home)
        java = shutil.which("java")
        if java:
            return Path(java).resolve().parent.parent
        return None

    def determine_java_version(self) -> int:
        """Determine the major version of the current JDK.

        Reads the JDK's `release` file when available and falls back to
        parsing `java -version`. The result is cached for the process.

        Returns:
            Major version, or 0 when no JDK could be found
        """
        if self._current_version is not None:
            return self._current_version

        version = 0
        home = self.get_jdk_home()
        if home is not None:
            release = home / "release"
            if release.is_file():
                match = _RELEASE_VERSION_PATTERN.search(
                    release.read_text(encoding="utf-8", errors="replace")
                )
                if match:
                    version = parse_java_version(match.group(1))

        if version == 0:
            java = str(home / "bin" / executable_name("java")) if home else "java"
            try:
                result = subprocess.run(
                    [java, "-version"],
                    capture_output=True,
                    text=True,
                    timeout=30
                )
                match = _VERSION_OUTPUT_PATTERN.search(result.stderr or result.stdout)
                if match:
                    version = parse_java_version(match.group(1))
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.debug(f"Unable to run '{java} -version': {e}")

        self._current_version = version
        return version

    def java_version(self, requested: Optional[str]) -> int:
        """Get the concrete major version that a request resolves to.

        Args:
            requested: Requested version ("11", "11+") or None

        Returns:
            The current JDK's version if it satisfies the request, otherwise
            the request's numeric floor
        """
        current = self.determine_java_version()
        if requested is not None:
            if current and satisfies_requested_version(requested, current):
                return current
            return min_requested_version(requested)
        if current < 8:
            return DEFAULT_JAVA_VERSION
        return current

    def get_installed_jdk(self, version: int) -> Path:
        """Get the home of an installed JDK.

        Raises:
            ToolchainError: If no JDK of that version is installed
        """
        jdk_dir = self.cache.jdks_dir / str(version)
        if not self.is_installed_jdk(version):
            installed = ", ".join(str(v) for v in sorted(self.list_installed_jdks())) or "none"
            raise ToolchainError(
                f"JDK {version} is not installed (installed: {installed}). Install it into "
                + f"{jdk_dir} or point JAVA_HOME at a matching JDK."
            )
        return jdk_dir

    def get_current_jdk(self, requested: Optional[str]) -> Path:
        """Get the JDK home to use for a requested version.

        Raises:
            ToolchainError: If neither the current JDK nor an installed one fits
        """
        current = self.determine_java_version()
        actual = self.java_version(requested)
        if current == actual:
            home = self.get_jdk_home()
            if home is None:
                raise ToolchainError("No JDK found on JAVA_HOME or PATH")
            return home
        return self.get_installed_jdk(actual)

    def resolve_in_java_home(self, cmd: str, requested: Optional[str]) -> str:
        """Resolve a JDK tool for a requested version.

        Args:
            cmd: Tool name (e.g. 'javac')
            requested: Requested version or None

        Returns:
            Path to the tool, or the bare tool name to be looked up on PATH
        """
        current = self.determine_java_version()
        if requested is None or (current and satisfies_requested_version(requested, current)):
            java_home = os.environ.get("JAVA_HOME")
            if java_home:
                return str(Path(java_home) / "bin" / executable_name(cmd))
            return cmd
        jdk = self.get_installed_jdk(self.java_version(requested))
        return str(jdk / "bin" / executable_name(cmd))

    def resolve_in_graalvm_home(self, cmd: str, requested: Optional[str]) -> str:
        """Resolve a GraalVM tool, preferring GRAALVM_HOME over the JDK."""
        resolved = resolve_in_env("GRAALVM_HOME", cmd)
        if resolved == cmd and not Path(resolved).exists():
            return self.resolve_in_java_home(cmd, requested)
        return resolved

    def list_installed_jdks(self) -> Set[int]:
        """List the major versions of all installed JDKs."""
        if not self.cache.jdks_dir.is_dir():
            return set()
        versions = set()
        for entry in self.cache.jdks_dir.iterdir():
            if entry.is_dir() and entry.name.isdigit():
                versions.add(int(entry.name))
        return versions

    def is_installed_jdk(self, version: int) -> bool:
        """Check if a JDK of the given major version is installed."""
        return (self.cache.jdks_dir / str(version)).is_dir()
