"""The Source interface.

A Source is something jarbang can build or run: a script file (in one of
several dialects) or an already packaged jar. The orchestrator only talks to
this interface; dialect differences live in the implementations.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from .coordinates import MavenRepo
from .resource_ref import ResourceRef

if TYPE_CHECKING:
    from .jar_source import JarSource
    from .script_source import ScriptSource

ATTR_MANIFEST_VERSION = "Manifest-Version"
ATTR_MAIN_CLASS = "Main-Class"
ATTR_CLASS_PATH = "Class-Path"
ATTR_PREMAIN_CLASS = "Premain-Class"
ATTR_AGENT_CLASS = "Agent-Class"
ATTR_BOOT_CLASS_PATH = "Boot-Class-Path"
ATTR_JBANG_JAVA_OPTIONS = "Jbang-Java-Options"
ATTR_BUILD_JDK = "Build-Jdk"


class Source(ABC):
    """Common interface of script-backed and archive-backed sources."""

    @property
    @abstractmethod
    def resource_ref(self) -> ResourceRef:
        pass

    @property
    @abstractmethod
    def all_dependencies(self) -> List[str]:
        """Dependency coordinates of the whole source graph."""
        pass

    @property
    @abstractmethod
    def all_repositories(self) -> List[MavenRepo]:
        """Repositories declared across the whole source graph."""
        pass

    @property
    @abstractmethod
    def runtime_options(self) -> List[str]:
        """JVM options the source asks to be run with."""
        pass

    @property
    @abstractmethod
    def java_version(self) -> Optional[str]:
        """Requested Java version ("11", "11+") or None."""
        pass

    @property
    @abstractmethod
    def description(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def gav(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def enable_cds(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_agent(self) -> bool:
        pass

    @property
    @abstractmethod
    def jar_file(self) -> Optional[Path]:
        """Location of the jar for this source."""
        pass

    @abstractmethod
    def as_jar_source(self) -> Optional["JarSource"]:
        """View this source as its built jar, if a usable one exists."""
        pass

    def as_script_source(self) -> Optional["ScriptSource"]:
        """View this source as a script, if it is one."""
        return None

    def is_created_jar(self) -> bool:
        jar = self.jar_file
        return jar is not None and jar.exists()
