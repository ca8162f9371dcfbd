"""Dependency resolution.

Resolution of coordinates against remote repositories happens outside
jarbang. The build only needs the resulting class path, so the orchestrator
talks to an ``IDependencyResolver``. ``LocalRepositoryResolver`` looks
artifacts up in a local Maven-layout repository (``~/.m2/repository`` by
default) and is what the CLI uses.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import JarbangError
from ..source.coordinates import MavenCoordinate, MavenRepo, dep_id_to_artifact

logger = logging.getLogger(__name__)


class DependencyError(JarbangError):
    """Raised when a dependency cannot be resolved."""

    pass


@dataclass(frozen=True)
class ArtifactInfo:
    """A resolved dependency: its coordinate (if any) and its local file."""

    coordinate: Optional[MavenCoordinate]
    file: Path


@dataclass
class ModularClassPath:
    """An ordered list of resolved artifacts."""

    artifacts: List[ArtifactInfo] = field(default_factory=list)

    @property
    def class_path(self) -> str:
        """Class path in the host's path-separator form."""
        return os.pathsep.join(str(a.file) for a in self.artifacts)

    @property
    def manifest_path(self) -> str:
        """Class path in jar-manifest form: space separated file URLs."""
        return " ".join(a.file.absolute().as_uri() for a in self.artifacts)


class IDependencyResolver(ABC):
    """Interface for turning dependency coordinates into a class path."""

    @abstractmethod
    def resolve(
        self,
        dependencies: Sequence[str],
        repositories: Sequence[MavenRepo]
    ) -> ModularClassPath:
        """Resolve coordinates to local artifacts.

        Args:
            dependencies: Coordinate strings, possibly with duplicates
            repositories: Repositories the coordinates may come from

        Returns:
            ModularClassPath with one entry per distinct coordinate

        Raises:
            DependencyError: If a coordinate cannot be resolved
        """
        pass


class LocalRepositoryResolver(IDependencyResolver):
    """Resolves coordinates against a local Maven-layout repository."""

    def __init__(self, local_repository: Optional[Path] = None):
        """Initialize resolver.

        Args:
            local_repository: Repository root. Defaults to JBANG_REPO or
                ~/.m2/repository.
        """
        if local_repository is None:
            env_repo = os.environ.get("JBANG_REPO")
            if env_repo:
                local_repository = Path(env_repo)
            else:
                local_repository = Path.home() / ".m2" / "repository"
        self.local_repository = Path(local_repository)

    def artifact_path(self, coordinate: MavenCoordinate) -> Path:
        """Get the repository path of a coordinate's file."""
        name = f"{coordinate.artifact_id}-{coordinate.version}"
        if coordinate.classifier:
            name += f"-{coordinate.classifier}"
        name += f".{coordinate.type}"
        return (
            self.local_repository
            / coordinate.group_id.replace(".", "/")
            / coordinate.artifact_id
            / coordinate.version
            / name
        )

    def resolve(
        self,
        dependencies: Sequence[str],
        repositories: Sequence[MavenRepo]
    ) -> ModularClassPath:
        if repositories:
            logger.debug(
                "Resolving from local repository only, ignoring: "
                + ", ".join(r.url for r in repositories)
            )

        artifacts = []
        seen = set()
        for dep in dependencies:
            if dep in seen:
                continue
            seen.add(dep)
            coordinate = dep_id_to_artifact(dep)
            path = self.artifact_path(coordinate)
            if not path.is_file():
                raise DependencyError(
                    f"Could not resolve dependency {dep}: {path} not found"
                )
            artifacts.append(ArtifactInfo(coordinate, path))
        return ModularClassPath(artifacts)
