"""Directive extraction from annotated source text.

Directives are comment lines with a fixed prefix that declare build metadata
inside a script::

    //DEPS org.example:lib:1.0, org.example:other:2.0
    //REPOS mavenCentral,acme=https://repo.acme.org/maven
    //SOURCES helpers/*.java
    //FILES config.properties=conf/dev.properties
    //JAVA 17+
    //JAVA_OPTIONS -Xmx1g
    //DESCRIPTION A small tool
    //GAV org.example:tool:1.0

Dependencies and repositories can also be declared with Groovy-style
annotations (``@Grab`` / ``@GrabResolver``). Everything here is a pure
function of the text, apart from the JBANG_<CATEGORY> environment variables
that append to the option categories.
"""

import os
import re
import shlex
from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Optional

from ..errors import JarbangError

DEPS_COMMENT_PREFIX = "//DEPS "
FILES_COMMENT_PREFIX = "//FILES "
SOURCES_COMMENT_PREFIX = "//SOURCES "
DESCRIPTION_COMMENT_PREFIX = "//DESCRIPTION "
GAV_COMMENT_PREFIX = "//GAV "
REPOS_COMMENT_PREFIX = "//REPOS "

DEPS_ANNOT_PREFIX = "@Grab("
DEPS_ANNOT_SINGLE = re.compile(r'@Grab\(\s*"(?P<value>.*)"\s*\)')
REPOS_ANNOT_PREFIX = "@GrabResolver("
REPOS_ANNOT_SINGLE = re.compile(r'@GrabResolver\(\s*"(?P<value>.*)"\s*\)')
ANNOT_PAIRS = re.compile(r'(?P<key>\w+)\s*=\s*"(?P<value>.*?)"')

INLINE_COMMENT = " // "
TOKEN_SEPARATORS = re.compile(r"[ ;,]+")
ENV_OPTION_PREFIX = "JBANG_"

_PROPERTY_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<default>[^}]*))?\}")


class DirectiveError(JarbangError, ValueError):
    """Raised when a directive is malformed."""

    pass


@dataclass(frozen=True)
class KeyValue:
    """An option pair; a missing value means "true"."""

    key: str
    value: Optional[str] = None

    @property
    def manifest_value(self) -> str:
        """Value as written into a jar manifest."""
        return "true" if self.value is None else self.value

    def __str__(self) -> str:
        return self.key if self.value is None else f"{self.key}={self.value}"


def split_lines(script: str) -> List[str]:
    """Split raw script text into lines (LF or CRLF)."""
    return re.split(r"\r?\n", script)


def strip_inline_comment(line: str) -> str:
    """Drop a trailing ``// comment`` from a directive line."""
    return line.split(INLINE_COMMENT)[0]


def directive_tokens(line: str) -> List[str]:
    """Split a line-form directive into its payload tokens.

    The directive keyword itself is skipped, as is anything after an inline
    ``// `` comment marker.
    """
    tokens = TOKEN_SEPARATORS.split(strip_inline_comment(line))[1:]
    return [t.strip() for t in tokens if t.strip()]


def replace_properties(value: str, properties: Mapping[str, str]) -> str:
    """Substitute ``${name}`` and ``${name:default}`` references.

    Unknown references without a default are left untouched.
    """

    def _substitute(match: "re.Match[str]") -> str:
        name = match.group("name")
        if name in properties:
            return properties[name]
        if match.group("default") is not None:
            return match.group("default")
        return match.group(0)

    return _PROPERTY_REFERENCE.sub(_substitute, value)


def property_replacer(properties: Optional[Mapping[str, str]]) -> Callable[[str], str]:
    """Build a replacement function bound to a set of properties.

    Defaults written as ``${name:default}`` apply even without properties.
    """
    props = dict(properties or {})
    return lambda value: replace_properties(value, props)


def _annotation_before_comment(line: str, prefix: str) -> bool:
    comment = line.find("//")
    if comment < 0:
        comment = len(line)
    return line.index(prefix) <= comment


def _annotation_pairs(line: str) -> dict:
    return {m.group("key"): m.group("value") for m in ANNOT_PAIRS.finditer(line)}


def check_dependency_lines(lines: Iterable[str]) -> None:
    """Reject ``// DEPS`` lines, which look like directives but are not.

    Raises:
        DirectiveError: If a misspelled dependency directive is present
    """
    for line in lines:
        if line.startswith("// DEPS"):
            raise DirectiveError(
                "Dependencies must be declared by using the line prefix //DEPS"
                + f" (found: '{line.strip()}')"
            )


def is_dependency_declaration(line: str) -> bool:
    return line.startswith(DEPS_COMMENT_PREFIX) or DEPS_ANNOT_PREFIX in line


def extract_dependencies(line: str) -> List[str]:
    """Extract dependency coordinates from one line.

    ``@Grab(group="g", module="m", version="1", classifier="c", ext="e")``
    becomes ``g:m:1:c@e``; absent segments are omitted.
    """
    if line.startswith(DEPS_COMMENT_PREFIX):
        return directive_tokens(line)

    if DEPS_ANNOT_PREFIX in line:
        if not _annotation_before_comment(line, DEPS_ANNOT_PREFIX):
            return []
        args = _annotation_pairs(line)
        if args:
            parts = [args.get(k) for k in ("group", "module", "version", "classifier")]
            gav = ":".join(p for p in parts if p is not None)
            if "ext" in args:
                gav = f"{gav}@{args['ext']}"
            return [gav]
        match = DEPS_ANNOT_SINGLE.search(line)
        if match:
            return [match.group("value")]

    return []


def is_repository_declaration(line: str) -> bool:
    return line.startswith(REPOS_COMMENT_PREFIX) or REPOS_ANNOT_PREFIX in line


def extract_repositories(line: str) -> List[str]:
    """Extract repository references from one line.

    ``@GrabResolver(name="acme", root="https://...")`` becomes
    ``acme=https://...``; without a name the root doubles as the name.
    """
    if line.startswith(REPOS_COMMENT_PREFIX):
        return directive_tokens(line)

    if REPOS_ANNOT_PREFIX in line:
        if not _annotation_before_comment(line, REPOS_ANNOT_PREFIX):
            return []
        args = _annotation_pairs(line)
        if args:
            root = args.get("root")
            return [f"{args.get('name', root)}={root}"]
        match = REPOS_ANNOT_SINGLE.search(line)
        if match:
            return [match.group("value")]

    return []


def extract_prefixed_tokens(lines: Iterable[str], prefix: str) -> List[str]:
    """Collect the payload tokens of every line starting with ``prefix``."""
    tokens: List[str] = []
    for line in lines:
        if line.startswith(prefix):
            tokens.extend(directive_tokens(line))
    return tokens


def extract_prefixed_text(lines: Iterable[str], prefix: str) -> List[str]:
    """Collect the raw remainder of every line starting with ``prefix``."""
    return [line[len(prefix):] for line in lines if line.startswith(prefix)]


def collect_raw_options(
    lines: Iterable[str],
    category: str,
    environ: Optional[Mapping[str, str]] = None
) -> List[str]:
    """Collect the raw payloads of an option category.

    Matches ``//CATEGORY value`` (space or tab separated) and a bare
    ``//CATEGORY``, so ``//JAVA`` never picks up ``//JAVA_OPTIONS``. The
    value of JBANG_<CATEGORY>, when set, is appended last.

    Args:
        lines: Script lines
        category: Option category (e.g. 'JAVA_OPTIONS')
        environ: Environment to consult (defaults to os.environ)

    Returns:
        Raw option strings, one per matching line
    """
    prefix = "//" + category
    options = []
    for line in lines:
        payload = strip_inline_comment(line)
        if payload.startswith(prefix + " ") or payload.startswith(prefix + "\t") or payload == prefix:
            options.append(payload[len(prefix):].strip())

    env = os.environ if environ is None else environ
    env_options = env.get(ENV_OPTION_PREFIX + category)
    if env_options is not None:
        options.append(env_options)
    return options


def quoted_string_to_list(value: str) -> List[str]:
    """Tokenize an option string the way a POSIX shell would."""
    return shlex.split(value)


def collect_options(
    lines: Iterable[str],
    category: str,
    environ: Optional[Mapping[str, str]] = None
) -> List[str]:
    """Collect an option category as a list of individual arguments.

    Quoted content stays together, so ``//JAVAC_OPTIONS --source "1 4"``
    yields ``['--source', '1 4']``.

    Raises:
        DirectiveError: If the options hold an unbalanced quote
    """
    raw = " ".join(collect_raw_options(lines, category, environ))
    try:
        return quoted_string_to_list(raw)
    except ValueError as e:
        raise DirectiveError(f"Invalid {category} options: {raw} ({e})") from e


def to_key_value(token: str) -> KeyValue:
    """Parse a ``key`` or ``key=value`` token.

    Raises:
        DirectiveError: If the token holds more than one '='
    """
    parts = token.split("=")
    while len(parts) > 1 and parts[-1] == "":
        parts.pop()
    if len(parts) == 1:
        return KeyValue(parts[0])
    if len(parts) == 2:
        return KeyValue(parts[0], parts[1])
    raise DirectiveError(f"Invalid key/value: {token}")


def extract_key_values(raw_options: Iterable[str]) -> List[KeyValue]:
    """Parse space separated ``key[=value]`` tokens of raw option strings."""
    result = []
    for raw in raw_options:
        for token in re.split(r" +", raw):
            token = token.strip()
            if token:
                result.append(to_key_value(token))
    return result
