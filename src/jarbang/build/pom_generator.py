"""Packaging descriptor (pom.xml) generation.

Every built jar carries a ``META-INF/maven/<group>/pom.xml`` describing the
script as a Maven artifact. Its identity comes from the ``//GAV`` directive
when present and is synthesized from the script's file name otherwise.
A missing template only skips the descriptor; it never fails a build.
"""

import logging
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from ..packages.dependency_resolver import ArtifactInfo
from ..source.coordinates import DEFAULT_VERSION, dep_id_to_artifact, gav_with_version
from ..source.script_source import ScriptSource

logger = logging.getLogger(__name__)

POM_TEMPLATE = "pom.xml.j2"
DEFAULT_GROUP = "group"


def default_templates_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "templates"


def base_name(file_name: str) -> str:
    """File name without its last extension."""
    if "." in file_name:
        return file_name[:file_name.rindex(".")]
    return file_name


class PomGenerator:
    """Renders pom.xml files from the bundled template."""

    def __init__(self, templates_dir: Optional[Path] = None):
        """Initialize pom generator.

        Args:
            templates_dir: Directory holding ``pom.xml.j2``
        """
        self.templates_dir = Path(templates_dir) if templates_dir else default_templates_dir()
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["xml", "j2"]),
            keep_trailing_newline=True,
        )

    def render(self, src: ScriptSource, artifacts: List[ArtifactInfo]) -> Optional[str]:
        """Render the pom for a script.

        Returns:
            The pom document, or None if the template is missing
        """
        try:
            template = self._env.get_template(POM_TEMPLATE)
        except TemplateNotFound:
            logger.warning("Could not locate pom.xml template")
            return None

        file_name = src.resource_ref.file.name if src.resource_ref.file else "script"
        group = DEFAULT_GROUP
        artifact = base_name(file_name)
        version = DEFAULT_VERSION
        if src.gav:
            coord = dep_id_to_artifact(gav_with_version(src.gav))
            group = coord.group_id
            artifact = coord.artifact_id
            version = coord.version

        return template.render(
            base_name=base_name(file_name),
            group=group,
            artifact=artifact,
            version=version,
            description=src.description or "",
            dependencies=[a.coordinate for a in artifacts if a.coordinate is not None],
        )

    def generate(
        self,
        src: ScriptSource,
        artifacts: List[ArtifactInfo],
        classes_dir: Path
    ) -> Optional[Path]:
        """Write the pom into a build's scratch directory.

        Args:
            src: Script being built
            artifacts: Resolved dependencies listed in the pom
            classes_dir: Scratch directory packed into the jar

        Returns:
            Path of the written pom, or None if no template was found
        """
        pom = self.render(src, artifacts)
        if pom is None:
            return None
        group = DEFAULT_GROUP
        if src.gav:
            group = dep_id_to_artifact(gav_with_version(src.gav)).group_id
        pom_path = classes_dir / "META-INF" / "maven" / group.replace(".", "/") / "pom.xml"
        pom_path.parent.mkdir(parents=True, exist_ok=True)
        pom_path.write_text(pom, encoding="utf-8")
        return pom_path
