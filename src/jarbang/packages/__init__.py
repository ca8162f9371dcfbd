"""Package management for jarbang.

This module handles the cache layout, locating JDKs and their tools, and
turning dependency coordinates into a class path.
"""

from .cache import Cache
from .java_version import (
    check_requested_version,
    max_requested_version,
    min_requested_version,
    satisfies_requested_version,
)
from .jdk import JdkManager, ToolchainError
from .dependency_resolver import (
    ArtifactInfo,
    DependencyError,
    IDependencyResolver,
    LocalRepositoryResolver,
    ModularClassPath,
)

__all__ = [
    "Cache",
    "JdkManager",
    "ToolchainError",
    "check_requested_version",
    "max_requested_version",
    "min_requested_version",
    "satisfies_requested_version",
    "ArtifactInfo",
    "DependencyError",
    "IDependencyResolver",
    "LocalRepositoryResolver",
    "ModularClassPath",
]
