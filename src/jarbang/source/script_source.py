"""Script-backed sources.

A ScriptSource wraps the text of one source file and derives everything the
build needs from its ``//`` directives. It carries no information that can't
be re-derived from that text: two instances over the same file with the
same content always agree. Derived collections are computed on first access
and then kept for the lifetime of the instance.

The "include sibling source" directive (``//SOURCES``) links scripts into a
source graph. ``all_sources`` walks that graph once; each distinct file is
visited exactly once, however many directives point at it (cycles included).
"""

import logging
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, TypeVar

from ..packages.cache import Cache
from ..packages.java_version import max_requested_version
from .coordinates import MavenRepo, gav_with_version, looks_like_a_gav, to_maven_repo
from .directives import (
    DESCRIPTION_COMMENT_PREFIX,
    FILES_COMMENT_PREFIX,
    GAV_COMMENT_PREFIX,
    SOURCES_COMMENT_PREFIX,
    DirectiveError,
    KeyValue,
    check_dependency_lines,
    collect_options,
    collect_raw_options,
    extract_dependencies,
    extract_key_values,
    extract_prefixed_text,
    extract_prefixed_tokens,
    extract_repositories,
    is_dependency_declaration,
    is_repository_declaration,
    split_lines,
    strip_inline_comment,
)
from .ref_target import RefTarget
from .resource_ref import ResourceRef, SourceError, explode
from .source import Source

if TYPE_CHECKING:
    from ..build.class_index import ClassInfo
    from ..packages.jdk import JdkManager
    from .jar_source import JarSource

logger = logging.getLogger(__name__)

R = TypeVar("R")

STRING_ARRAY_TYPE = "[Ljava/lang/String;"



def read_backing_file(file: Optional[Path]) -> str:
    """Read a script's content.

    Raises:
        SourceError: If the file cannot be read
    """
    if file is None:
        raise SourceError("No script content and no backing file given")
    try:
        return file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"Could not read script content for {file}: {e}") from e


class ScriptSource(Source):
    """A Java source file and the directives it declares."""

    COMPILE_OPTIONS_CATEGORY = "JAVAC_OPTIONS"
    MAIN_EXTENSION = ".java"

    def __init__(
        self,
        resource_ref: ResourceRef,
        script: Optional[str] = None,
        replace_properties: Optional[Callable[[str], str]] = None,
        cache: Optional[Cache] = None
    ):
        """Initialize script source.

        Args:
            resource_ref: Where the script comes from
            script: Script text; read from the backing file when None
            replace_properties: Substitution applied to every directive token
            cache: Cache that determines where the jar is built
        """
        self._resource_ref = resource_ref
        self._script = script if script is not None else read_backing_file(resource_ref.file)
        self._replace_properties = replace_properties or (lambda value: value)
        self.cache = cache or Cache()

    @classmethod
    def from_text(cls, script: str, **kwargs) -> "ScriptSource":
        """Create a source for text that has no backing file."""
        return cls(ResourceRef.for_file(None), script, **kwargs)

    @property
    def resource_ref(self) -> ResourceRef:
        return self._resource_ref

    @property
    def script(self) -> str:
        return self._script

    @cached_property
    def lines(self) -> List[str]:
        return split_lines(self._script)

    # Dialect capabilities

    @property
    def source_file(self) -> Path:
        """The file handed to the compiler."""
        return self._resource_ref.file

    @cached_property
    def compile_options(self) -> List[str]:
        return collect_options(self.lines, self.COMPILE_OPTIONS_CATEGORY)

    def get_compiler_binary(self, jdk_manager: "JdkManager", requested_java_version: Optional[str]) -> str:
        return jdk_manager.resolve_in_java_home("javac", requested_java_version)

    def get_compiler_environment(
        self,
        environ: Dict[str, str],
        jdk_manager: "JdkManager",
        requested_java_version: Optional[str]
    ) -> Dict[str, str]:
        """Environment for the compiler process (unchanged for Java)."""
        return environ

    def get_main_finder(self) -> Callable[["ClassInfo"], bool]:
        """Predicate recognizing a class with a runnable main method."""
        return lambda ci: ci.method("main", STRING_ARRAY_TYPE) is not None

    @property
    def main_extension(self) -> str:
        return self.MAIN_EXTENSION

    def get_suggested_main(self) -> Optional[str]:
        """Class name a script's main class is most likely to have."""
        if self._resource_ref.file is None or self._resource_ref.is_stdin:
            return None
        return self._resource_ref.file.name.replace(self.main_extension, "")

    # Directive-derived data

    def collect_dependencies(self) -> List[str]:
        """Dependencies declared by this file alone.

        Raises:
            DirectiveError: If a misspelled ``// DEPS`` line is present
        """
        check_dependency_lines(self.lines)
        deps = []
        for line in self.lines:
            if is_dependency_declaration(line):
                deps.extend(self._replace_properties(d) for d in extract_dependencies(line))
        return deps

    @cached_property
    def all_dependencies(self) -> List[str]:
        return self.collect_all(ScriptSource.collect_dependencies)

    def collect_repositories(self) -> List[MavenRepo]:
        repos = []
        for line in self.lines:
            if is_repository_declaration(line):
                repos.extend(
                    to_maven_repo(self._replace_properties(r)) for r in extract_repositories(line)
                )
        return repos

    @cached_property
    def all_repositories(self) -> List[MavenRepo]:
        return self.collect_all(ScriptSource.collect_repositories)

    def collect_files(self) -> List[RefTarget]:
        return [
            RefTarget.create(self._resource_ref, self._replace_properties(token), self.cache)
            for token in extract_prefixed_tokens(self.lines, FILES_COMMENT_PREFIX)
        ]

    @cached_property
    def all_files(self) -> List[RefTarget]:
        return self.collect_all(ScriptSource.collect_files)

    def copy_files_to(self, dest: Path) -> None:
        """Copy every declared extra file of the graph into ``dest``."""
        for ref_target in self.all_files:
            ref_target.copy(dest)

    def collect_sources(self) -> List["ScriptSource"]:
        """Sources directly included by this file, in declaration order."""
        sources = []
        for token in extract_prefixed_tokens(self.lines, SOURCES_COMMENT_PREFIX):
            for resource in explode(self._resource_ref, self._replace_properties(token)):
                sources.append(self.get_sibling(resource))
        return sources

    def get_sibling(self, resource: str) -> "ScriptSource":
        from .dialects import prepare_script

        sibling_ref = self._resource_ref.as_sibling(resource, self.cache)
        return prepare_script(sibling_ref, self._replace_properties, self.cache)

    @cached_property
    def all_sources(self) -> List["ScriptSource"]:
        """Every source transitively included by this one, excluding itself.

        Discovery is depth-first in declaration order. The visited set is
        seeded with this source's own reference so an include cycle back to
        the root ends there.
        """
        visited = {self._resource_ref}
        found: List[ScriptSource] = []
        pending: List[Iterator[ScriptSource]] = [iter(self.collect_sources())]
        while pending:
            source = next(pending[-1], None)
            if source is None:
                pending.pop()
                continue
            if source.resource_ref in visited:
                continue
            visited.add(source.resource_ref)
            found.append(source)
            pending.append(iter(source.collect_sources()))
        return found

    def collect_all(self, func: Callable[["ScriptSource"], List[R]]) -> List[R]:
        """This source's own ``func`` results followed by every graph member's."""
        result = list(func(self))
        for source in self.all_sources:
            result.extend(func(source))
        return result

    def collect_agent_declarations(self) -> List[str]:
        return collect_raw_options(self.lines, "JAVAAGENT")

    def collect_agent_options(self) -> List[KeyValue]:
        return extract_key_values(self.collect_agent_declarations())

    @cached_property
    def all_agent_options(self) -> List[KeyValue]:
        return self.collect_all(ScriptSource.collect_agent_options)

    @cached_property
    def is_agent(self) -> bool:
        """True if any graph member has a ``//JAVAAGENT`` line, even a bare one."""
        return bool(self.collect_all(ScriptSource.collect_agent_declarations))

    @cached_property
    def description(self) -> Optional[str]:
        desc = "\n".join(extract_prefixed_text(self.lines, DESCRIPTION_COMMENT_PREFIX))
        return desc or None

    @cached_property
    def gav(self) -> Optional[str]:
        """The fixed identity declared with ``//GAV``, if any.

        Raises:
            DirectiveError: If the first declaration is not a coordinate
        """
        gavs = [
            strip_inline_comment(g).strip()
            for g in extract_prefixed_text(self.lines, GAV_COMMENT_PREFIX)
        ]
        if not gavs:
            return None
        if len(gavs) > 1:
            logger.warning(
                "Multiple //GAV lines found, only one should be defined in a source file. Using the first"
            )
        if not looks_like_a_gav(gav_with_version(gavs[0])):
            raise DirectiveError(
                "//GAV line has wrong format, should be '//GAV groupid:artifactid[:version]'"
            )
        return gavs[0]

    @cached_property
    def runtime_options(self) -> List[str]:
        return collect_options(self.lines, "JAVA_OPTIONS")

    @cached_property
    def enable_cds(self) -> bool:
        return bool(collect_raw_options(self.lines, "CDS"))

    def collect_java_versions(self) -> List[str]:
        return collect_options(self.lines, "JAVA")

    @cached_property
    def java_version(self) -> Optional[str]:
        return max_requested_version(self.collect_all(ScriptSource.collect_java_versions))

    # Artifact

    @cached_property
    def jar_file(self) -> Path:
        if self._resource_ref.file is not None:
            name = self._resource_ref.file.name
        else:
            name = "script" + self.main_extension
        return self.cache.get_jar_path(name, self._script)

    def as_jar_source(self) -> Optional["JarSource"]:
        from .jar_source import JarSource

        if not self.jar_file.exists():
            return None
        return JarSource.prepare_jar(self)

    def as_script_source(self) -> "ScriptSource":
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._resource_ref})"
