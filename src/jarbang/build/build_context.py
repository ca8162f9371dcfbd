"""Per-invocation build settings and results.

A BuildContext carries what the user asked for on the command line (forced
main class, requested Java version, extra sources/dependencies, ...) and
collects what a build learns along the way (resolved class path, entry
points, JDK used). When a previous jar is reused its manifest metadata is
imported here instead.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..packages.cache import Cache
from ..packages.dependency_resolver import (
    ArtifactInfo,
    IDependencyResolver,
    LocalRepositoryResolver,
    ModularClassPath,
)
from ..packages.jdk import JdkManager
from ..source.coordinates import MavenRepo, to_maven_repo
from ..source.dialects import prepare_script
from ..source.directives import property_replacer
from ..source.jar_source import JarSource
from ..source.resource_ref import ResourceRef
from ..source.script_source import ScriptSource
from ..source.source import Source


@dataclass
class BuildContext:
    """Settings for one build plus the state it accumulates."""

    java_version: Optional[str] = None
    main_class: Optional[str] = None
    native_image: bool = False
    fresh: bool = False
    java_options: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    additional_sources: List[str] = field(default_factory=list)
    additional_dependencies: List[str] = field(default_factory=list)
    additional_repositories: List[str] = field(default_factory=list)
    cache: Cache = field(default_factory=Cache)
    resolver: IDependencyResolver = field(default_factory=LocalRepositoryResolver)
    jdk_manager: Optional[JdkManager] = None

    # Filled in by a build (or imported from a reused jar)
    agent_main_class: Optional[str] = None
    pre_main_class: Optional[str] = None
    build_jdk: int = 0
    integration_options: List[str] = field(default_factory=list)
    runtime_options: Optional[List[str]] = None
    class_path: Optional[ModularClassPath] = None

    def __post_init__(self):
        if self.jdk_manager is None:
            self.jdk_manager = JdkManager(self.cache)
        self._additional: Optional[List[ScriptSource]] = None

    def requested_java_version(self, src: Source) -> Optional[str]:
        """Java version for a build: the CLI request wins over the source's."""
        return self.java_version if self.java_version is not None else src.java_version

    def get_additional_sources(self) -> List[ScriptSource]:
        """Sources given on the command line, resolved relative to the cwd."""
        if self._additional is None:
            replacer = property_replacer(self.properties)
            self._additional = [
                prepare_script(ResourceRef.for_resource(s, self.cache), replacer, self.cache)
                for s in self.additional_sources
            ]
        return self._additional

    def get_all_sources(self, src: ScriptSource) -> List[ScriptSource]:
        """Every source compiled along with ``src``, excluding ``src`` itself.

        The script's own graph comes first, then command-line sources that
        are not already part of it.
        """
        sources = list(src.all_sources)
        seen = {src.resource_ref}
        seen.update(s.resource_ref for s in sources)
        for extra in self.get_additional_sources():
            if extra.resource_ref not in seen:
                seen.add(extra.resource_ref)
                sources.append(extra)
        return sources

    def get_all_dependencies(self, src: Source) -> List[str]:
        deps = list(src.all_dependencies)
        for extra in self.get_additional_sources():
            deps.extend(extra.collect_dependencies())
        deps.extend(self.additional_dependencies)
        return deps

    def get_all_repositories(self, src: Source) -> List[MavenRepo]:
        repos = list(src.all_repositories)
        for extra in self.get_additional_sources():
            repos.extend(extra.collect_repositories())
        repos.extend(to_maven_repo(r) for r in self.additional_repositories)
        return repos

    def resolve_class_path(self, src: Source) -> str:
        """Resolve (once) and return the class path for a source.

        Raises:
            DependencyError: If a dependency cannot be resolved
        """
        if self.class_path is None:
            resolved = self.resolver.resolve(
                self.get_all_dependencies(src),
                self.get_all_repositories(src)
            )
            artifacts = list(resolved.artifacts)
            if isinstance(src, JarSource) and src.script_source is None:
                artifacts.extend(ArtifactInfo(None, p) for p in src.class_path_entries)
            self.class_path = ModularClassPath(artifacts)
        return self.class_path.class_path

    def get_main_class_or(self, src: Source) -> Optional[str]:
        if self.main_class is not None:
            return self.main_class
        if isinstance(src, JarSource):
            return src.main_class
        return None

    def get_runtime_options_merged(self, src: Source) -> List[str]:
        """Runtime options of a source, then integration ones, then persistent ones.

        Later options win when the JVM sees conflicting values, so options
        given by the user outrank the ones declared in the source.
        Options imported from a reused jar are already merged and returned
        as they are.
        """
        if self.runtime_options is not None:
            return list(self.runtime_options)
        return list(src.runtime_options) + list(self.integration_options) + list(self.java_options)

    def import_jar_metadata_for(self, jar_src: JarSource) -> JarSource:
        """Adopt the metadata recorded in a previously built jar.

        Returns:
            The jar source, to be used in place of the script
        """
        if self.main_class is None:
            self.main_class = jar_src.main_class
        self.agent_main_class = jar_src.agent_main_class
        self.pre_main_class = jar_src.pre_main_class
        self.build_jdk = jar_src.build_jdk
        self.runtime_options = list(jar_src.runtime_options)
        self.class_path = ModularClassPath([ArtifactInfo(None, p) for p in jar_src.class_path_entries])
        return jar_src
