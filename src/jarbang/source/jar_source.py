"""Archive-backed sources.

A JarSource is a packaged jar, either handed to jarbang directly or produced
by an earlier build of a script. Everything it knows comes from the jar's
manifest, which is how a previous build's metadata is carried over when the
jar is reused.
"""

import logging
import zipfile
from pathlib import Path
from typing import List, Optional

from ..packages.java_version import parse_java_version
from .coordinates import MavenRepo
from .directives import quoted_string_to_list
from .manifest import Manifest, manifest_path_entries
from .resource_ref import ResourceRef
from .script_source import ScriptSource
from .source import (
    ATTR_AGENT_CLASS,
    ATTR_BOOT_CLASS_PATH,
    ATTR_BUILD_JDK,
    ATTR_CLASS_PATH,
    ATTR_JBANG_JAVA_OPTIONS,
    ATTR_MAIN_CLASS,
    ATTR_PREMAIN_CLASS,
    Source,
)

logger = logging.getLogger(__name__)


class JarSource(Source):
    """A jar and the metadata in its manifest."""

    def __init__(
        self,
        resource_ref: ResourceRef,
        manifest: Manifest,
        script_source: Optional[ScriptSource] = None
    ):
        self._resource_ref = resource_ref
        self.manifest = manifest
        self.script_source = script_source

    @classmethod
    def prepare_jar(cls, script_source: ScriptSource) -> Optional["JarSource"]:
        """Reinterpret a script's built jar as a completed build.

        Returns:
            JarSource, or None if the jar or its manifest can't be read
        """
        jar = script_source.jar_file
        try:
            manifest = Manifest.read_from_jar(jar)
        except (OSError, zipfile.BadZipFile, KeyError, ValueError) as e:
            logger.debug(f"Unable to read manifest of {jar}: {e}")
            return None
        return cls(ResourceRef.for_file(jar), manifest, script_source)

    @classmethod
    def for_jar(cls, resource_ref: ResourceRef) -> "JarSource":
        """Wrap a jar given directly by the user.

        A jar without a readable manifest is still usable, just without
        any metadata.
        """
        try:
            manifest = Manifest.read_from_jar(resource_ref.file)
        except (OSError, zipfile.BadZipFile, KeyError, ValueError) as e:
            logger.debug(f"No usable manifest in {resource_ref.file}: {e}")
            manifest = Manifest()
        return cls(resource_ref, manifest)

    @property
    def resource_ref(self) -> ResourceRef:
        return self._resource_ref

    @property
    def main_class(self) -> Optional[str]:
        return self.manifest.get(ATTR_MAIN_CLASS)

    @property
    def pre_main_class(self) -> Optional[str]:
        return self.manifest.get(ATTR_PREMAIN_CLASS)

    @property
    def agent_main_class(self) -> Optional[str]:
        return self.manifest.get(ATTR_AGENT_CLASS)

    @property
    def class_path(self) -> str:
        return self.manifest.get(ATTR_CLASS_PATH) or self.manifest.get(ATTR_BOOT_CLASS_PATH) or ""

    @property
    def class_path_entries(self) -> List[Path]:
        return manifest_path_entries(self.class_path)

    @property
    def build_jdk(self) -> int:
        return parse_java_version(self.manifest.get(ATTR_BUILD_JDK))

    @property
    def java_version(self) -> Optional[str]:
        """Minimum Java version this jar needs: the JDK it was built with."""
        build_jdk = self.build_jdk
        if build_jdk:
            return f"{build_jdk}+"
        return None

    @property
    def runtime_options(self) -> List[str]:
        return quoted_string_to_list(self.manifest.get(ATTR_JBANG_JAVA_OPTIONS) or "")

    @property
    def all_dependencies(self) -> List[str]:
        if self.script_source is not None:
            return self.script_source.all_dependencies
        return []

    @property
    def all_repositories(self) -> List[MavenRepo]:
        if self.script_source is not None:
            return self.script_source.all_repositories
        return []

    @property
    def description(self) -> Optional[str]:
        if self.script_source is not None:
            return self.script_source.description
        return None

    @property
    def gav(self) -> Optional[str]:
        if self.script_source is not None:
            return self.script_source.gav
        return None

    @property
    def enable_cds(self) -> bool:
        return self.script_source is not None and self.script_source.enable_cds

    @property
    def is_agent(self) -> bool:
        return self.pre_main_class is not None or self.agent_main_class is not None

    @property
    def jar_file(self) -> Path:
        return self._resource_ref.file

    def as_jar_source(self) -> "JarSource":
        return self

    def as_script_source(self) -> Optional[ScriptSource]:
        return self.script_source

    def is_up_to_date(self) -> bool:
        """True if the jar exists and everything on its class path still does."""
        if not self.jar_file.exists():
            return False
        missing = [p for p in self.class_path_entries if not p.exists()]
        if missing:
            logger.debug(f"Class path of {self.jar_file} refers to missing files: {missing}")
            return False
        return True

    def __repr__(self) -> str:
        return f"JarSource({self.jar_file})"
