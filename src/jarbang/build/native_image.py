"""Native image generation.

Turns a built jar into a standalone executable with GraalVM's
``native-image``. The tool's output goes to a temporary log file because it
is very chatty; its error stream stays on the console.
"""

import logging
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

from ..errors import JarbangError
from ..source.source import Source
from .build_context import BuildContext
from .process_runner import ProcessRunner

logger = logging.getLogger(__name__)


class NativeImageError(JarbangError):
    """Raised when native-image fails."""

    pass


def image_name(jar: Path, platform: Optional[str] = None) -> Path:
    """Path of the native image built from a jar."""
    if (platform or sys.platform) == "win32":
        return jar.with_name(jar.name + ".exe")
    return jar.with_name(jar.name + ".bin")


class NativeImageBuilder:
    """Runs native-image on built jars."""

    def __init__(self, runner: Optional[ProcessRunner] = None):
        self.runner = runner or ProcessRunner()

    def build_command(
        self,
        src: Source,
        ctx: BuildContext,
        jar: Path,
        requested_java_version: Optional[str]
    ) -> List[str]:
        cmd = [ctx.jdk_manager.resolve_in_graalvm_home("native-image", requested_java_version)]
        cmd.append("-H:+ReportExceptionStackTraces")
        cmd.append("--enable-https")
        class_path = ctx.resolve_class_path(src)
        if class_path.strip():
            cmd.append("--class-path=" + class_path)
        cmd.extend(["-jar", str(jar)])
        cmd.append(str(image_name(jar)))
        return cmd

    def build(
        self,
        src: Source,
        ctx: BuildContext,
        jar: Path,
        requested_java_version: Optional[str]
    ) -> Path:
        """Compile a jar into a native image.

        Returns:
            Path to the native image

        Raises:
            NativeImageError: If native-image exits with a non-zero status
            ProcessError: If native-image cannot be started
        """
        cmd = self.build_command(src, ctx, jar, requested_java_version)
        fd, log_name = tempfile.mkstemp(prefix="jbang", suffix="native-image")
        logger.debug("native-image: " + " ".join(cmd))
        logger.info(f"log: {log_name}")
        with open(fd, "w") as log:
            exit_code = self.runner.run(cmd, stdout=log)
        if exit_code != 0:
            raise NativeImageError("Error during native-image")
        return image_name(jar)
