"""
Build orchestration for jarbang scripts.

This module decides whether a script's jar has to be (re)built and, if so,
drives the whole pipeline:
- Staging a scratch directory next to the jar
- Copying declared files and writing the pom
- Compilation (javac/kotlinc/groovyc)
- Integration hooks
- Entry-point discovery
- Jar assembly
- Optional native image generation
"""

import logging
import os
import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from ..errors import JarbangError
from ..packages.java_version import min_requested_version
from ..source.jar_source import JarSource
from ..source.script_source import ScriptSource
from ..source.source import Source
from .build_context import BuildContext
from .compiler import Compiler
from .integration import IntegrationManager, IntegrationRequest, IntegrationResult
from .jar_creator import create_jar_file
from .main_finder import find_entry_points
from .native_image import NativeImageBuilder, image_name
from .pom_generator import PomGenerator
from .process_runner import ProcessRunner

logger = logging.getLogger(__name__)


class BuildOrchestratorError(JarbangError):
    """Exception raised for build orchestration errors."""
    pass


@dataclass
class StalenessDecision:
    """Outcome of checking a script's previous build."""

    build_required: bool
    reason: str
    jar_source: Optional[JarSource] = None


@contextmanager
def scratch_directory(outjar: Path) -> Iterator[Path]:
    """Provide an empty directory next to a jar for the duration of a build.

    Any leftover from an earlier build is removed first. The directory is
    removed again on exit, also when the build fails.
    """
    scratch = outjar.with_name(outjar.name + ".tmp")
    shutil.rmtree(scratch, ignore_errors=True)
    scratch.mkdir(parents=True)
    try:
        yield scratch
    finally:
        shutil.rmtree(scratch, ignore_errors=True)


class BuildOrchestrator:
    """
    Builds scripts into jars, reusing earlier builds when possible.

    Example usage:
        orchestrator = BuildOrchestrator()
        ctx = BuildContext(java_version="17+")
        src = prepare_source("hello.java")
        src = orchestrator.build_if_needed(src, ctx)
        print(f"Jar: {src.jar_file}, main: {ctx.get_main_class_or(src)}")
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        compiler: Optional[Compiler] = None,
        pom_generator: Optional[PomGenerator] = None,
        integration_manager: Optional[IntegrationManager] = None,
        native_image_builder: Optional[NativeImageBuilder] = None
    ):
        """
        Initialize build orchestrator.

        Args:
            runner: Runs external tools (shared by compiler and native-image)
            compiler: Compiler driver
            pom_generator: pom.xml renderer
            integration_manager: Integration hooks to run after compiling
            native_image_builder: native-image driver
        """
        self.runner = runner or ProcessRunner()
        self.compiler = compiler or Compiler(self.runner)
        self.pom_generator = pom_generator or PomGenerator()
        self.integration_manager = integration_manager or IntegrationManager()
        self.native_image_builder = native_image_builder or NativeImageBuilder(self.runner)

    def check_staleness(
        self,
        src: ScriptSource,
        ctx: BuildContext,
        requested_java_version: Optional[str]
    ) -> StalenessDecision:
        """Decide whether a script's jar can be reused.

        The checks run in a fixed order and the first one that applies
        decides; later checks rely on earlier ones having passed.

        Args:
            src: Script to check
            ctx: Build context (fresh and native flags)
            requested_java_version: Java version the jar will be run with

        Returns:
            StalenessDecision; ``jar_source`` is set when the jar is reusable
        """
        outjar = src.jar_file
        if ctx.fresh:
            return StalenessDecision(True, "Building as fresh build explicitly requested.")
        if ctx.native_image and not image_name(outjar).exists():
            return StalenessDecision(True, "Building as native build required.")
        if not (outjar.is_file() and os.access(outjar, os.R_OK)):
            return StalenessDecision(True, f"Build required as {outjar} not readable or not found.")

        jar_src = src.as_jar_source()
        if jar_src is None:
            return StalenessDecision(True, "Building as previous built jar not found.")
        if not jar_src.is_up_to_date():
            return StalenessDecision(
                True,
                "Building as previous build jar found but it or its dependencies not up-to-date."
            )

        recorded = jar_src.java_version
        recorded_min = min_requested_version(recorded) if recorded else 0
        if ctx.jdk_manager.java_version(requested_java_version) < recorded_min:
            return StalenessDecision(
                True,
                f"Building as requested Java version {requested_java_version} < than "
                + f"the java version used during last build {recorded}"
            )
        return StalenessDecision(False, f"No build required. Reusing jar from {jar_src.jar_file}", jar_src)

    def build_if_needed(self, src: Source, ctx: BuildContext) -> Source:
        """Build a script if it needs building; jars are returned as-is."""
        if isinstance(src, ScriptSource):
            return self.build(src, ctx)
        return src

    def build(self, src: ScriptSource, ctx: BuildContext) -> Source:
        """
        Make sure a script's jar (and native image, if asked for) exists.

        Args:
            src: Script to build
            ctx: Build context; receives the build's or the reused jar's metadata

        Returns:
            The reused JarSource, or ``src`` after a fresh build

        Raises:
            JarbangError: If any step of the build fails
        """
        outjar = src.jar_file
        requested_java_version = ctx.requested_java_version(src)
        native_build_required = ctx.native_image and not image_name(outjar).exists()

        result: Source = src
        integration_result = IntegrationResult()
        decision = self.check_staleness(src, ctx, requested_java_version)
        logger.debug(decision.reason)
        if decision.build_required:
            with scratch_directory(outjar) as classes_dir:
                integration_result = self.build_jar(
                    src, ctx, classes_dir, outjar, requested_java_version
                )
        else:
            result = ctx.import_jar_metadata_for(decision.jar_source)

        if native_build_required:
            if integration_result.native_image_path is not None:
                try:
                    shutil.move(str(integration_result.native_image_path), str(image_name(outjar)))
                except OSError as e:
                    raise BuildOrchestratorError(
                        f"Unable to move native image {integration_result.native_image_path}: {e}"
                    ) from e
            else:
                self.native_image_builder.build(src, ctx, outjar, requested_java_version)

        return result

    def build_jar(
        self,
        src: ScriptSource,
        ctx: BuildContext,
        classes_dir: Path,
        outjar: Path,
        requested_java_version: Optional[str]
    ) -> IntegrationResult:
        """
        Compile a script into ``classes_dir`` and pack it into ``outjar``.

        Returns:
            What the integration hooks contributed
        """
        ctx.resolve_class_path(src)
        src.copy_files_to(classes_dir)
        pom_path = self.pom_generator.generate(src, ctx.class_path.artifacts, classes_dir)

        self.compiler.compile(src, ctx, classes_dir, requested_java_version)
        ctx.build_jdk = ctx.jdk_manager.java_version(requested_java_version)

        request = IntegrationRequest(
            repositories=ctx.get_all_repositories(src),
            artifacts=list(ctx.class_path.artifacts),
            classes_dir=classes_dir,
            pom_file=pom_path,
            source=src,
            native_image=ctx.native_image,
            properties=dict(ctx.properties),
        )
        integration_result = self.integration_manager.run_integration(request, ctx.properties)

        # A main class given by the user always wins
        if ctx.main_class is None:
            ctx.main_class = integration_result.main_class
        if ctx.main_class is None or src.is_agent:
            found = find_entry_points(
                classes_dir,
                src.get_main_finder(),
                src.get_suggested_main(),
                src.is_agent
            )
            if ctx.main_class is None:
                ctx.main_class = found.main_class
            if src.is_agent:
                ctx.agent_main_class = found.agent_main_class
                ctx.pre_main_class = found.pre_main_class

        ctx.integration_options = list(integration_result.java_args)
        create_jar_file(src, ctx, classes_dir, outjar)
        return integration_result
