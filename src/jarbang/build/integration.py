"""Integration hooks.

An integration is a post-compile step provided by another installed
package. It sees the compiled classes before they are packed into the jar
and may pick the main class, add JVM options or produce a native image
itself.

Integrations are discovered through the ``jarbang.integrations`` entry point
group. Each entry point must load to a class implementing ``IIntegration``
(or a factory returning one).
"""

import logging
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..errors import JarbangError
from ..packages.dependency_resolver import ArtifactInfo
from ..source.coordinates import MavenRepo
from ..source.source import Source

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "jarbang.integrations"


class IntegrationError(JarbangError):
    """Raised when an integration hook fails."""

    pass


@dataclass
class IntegrationRequest:
    """Everything an integration gets to see of a build.

    ``properties`` are the build's -D properties. They are also applied to
    os.environ for the duration of the hook call.
    """

    repositories: List[MavenRepo]
    artifacts: List[ArtifactInfo]
    classes_dir: Path
    pom_file: Optional[Path]
    source: Source
    native_image: bool
    properties: Dict[str, str] = field(default_factory=dict)


@dataclass
class IntegrationResult:
    """What integrations contributed to a build."""

    main_class: Optional[str] = None
    java_args: List[str] = field(default_factory=list)
    native_image_path: Optional[Path] = None


class IIntegration(ABC):
    """Interface for integration hooks."""

    @abstractmethod
    def post_build(self, request: IntegrationRequest) -> Optional[IntegrationResult]:
        """Inspect or change a build's compiled output.

        Args:
            request: The build's repositories, artifacts and scratch directory

        Returns:
            Contributions to the build, or None for none
        """
        pass


@contextmanager
def override_properties(properties: Dict[str, str]) -> Iterator[None]:
    """Temporarily apply properties to ``os.environ``.

    The environment is restored on exit, whether or not the body raised.
    """
    saved = dict(os.environ)
    try:
        os.environ.update(properties)
        yield
    finally:
        os.environ.clear()
        os.environ.update(saved)


def load_integrations() -> List[IIntegration]:
    """Instantiate every integration registered by installed packages."""
    hooks = []
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        logger.debug(f"Loading integration {ep.name} from {ep.value}")
        hooks.append(ep.load()())
    return hooks


class IntegrationManager:
    """Runs all integration hooks for a build."""

    def __init__(self, hooks: Optional[List[IIntegration]] = None):
        """Initialize integration manager.

        Args:
            hooks: Hooks to run. Discovered from entry points when None.
        """
        self._hooks = hooks

    @property
    def hooks(self) -> List[IIntegration]:
        if self._hooks is None:
            self._hooks = load_integrations()
        return self._hooks

    def run_integration(
        self,
        request: IntegrationRequest,
        properties: Optional[Dict[str, str]] = None
    ) -> IntegrationResult:
        """Run every hook and merge their results.

        The first main class and native image reported win; JVM arguments
        of all hooks are concatenated.

        Args:
            request: Build information passed to each hook
            properties: Properties visible to hooks through the environment

        Returns:
            Merged IntegrationResult

        Raises:
            IntegrationError: If a hook raises
        """
        result = IntegrationResult()
        with override_properties(properties or {}):
            for hook in self.hooks:
                name = type(hook).__name__
                try:
                    contribution = hook.post_build(request)
                except JarbangError:
                    raise
                except Exception as e:
                    raise IntegrationError(f"Issue running postBuild() of {name}: {e}") from e
                if contribution is None:
                    continue
                logger.debug(f"Integration {name} returned {contribution}")
                if result.main_class is None:
                    result.main_class = contribution.main_class
                if result.native_image_path is None:
                    result.native_image_path = contribution.native_image_path
                result.java_args.extend(contribution.java_args)
        return result
