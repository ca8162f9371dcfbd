"""Compiler invocation.

This module turns a script graph into a javac/kotlinc/groovyc command line
and runs it, writing class files into the build's scratch directory.

Design:
    - The dialect of the root source picks the compiler binary, its options
      and its environment
    - The root file comes first on the command line, followed by every other
      source of the graph
    - Long command lines go through an ``@argfile`` so they stay below OS
      command length limits
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from ..errors import JarbangError
from ..source.script_source import ScriptSource
from .build_context import BuildContext
from .escaping import escape_args_file_argument
from .process_runner import ProcessRunner

logger = logging.getLogger(__name__)

# Windows limits a command line to 8191 characters
MAX_COMMAND_LENGTH = 8000


class CompilerError(JarbangError):
    """Raised when compilation fails."""

    pass


class Compiler:
    """Compiles a script graph into a directory of class files."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        max_command_length: int = MAX_COMMAND_LENGTH
    ):
        """Initialize compiler.

        Args:
            runner: Runs the compiler process
            max_command_length: Command length above which an args file is used
        """
        self.runner = runner or ProcessRunner()
        self.max_command_length = max_command_length

    def build_command(
        self,
        src: ScriptSource,
        ctx: BuildContext,
        classes_dir: Path,
        requested_java_version: Optional[str]
    ) -> List[str]:
        """Assemble the compiler command line.

        Returns:
            Command: binary, compile options, class path (if any), output
            directory, root source, then the other graph sources
        """
        cmd = [src.get_compiler_binary(ctx.jdk_manager, requested_java_version)]
        cmd.extend(src.compile_options)
        class_path = ctx.resolve_class_path(src)
        if class_path.strip():
            cmd.extend(["-classpath", class_path])
        cmd.extend(["-d", str(classes_dir.absolute())])
        cmd.append(str(src.source_file))
        cmd.extend(str(s.source_file) for s in ctx.get_all_sources(src))
        return cmd

    def compile(
        self,
        src: ScriptSource,
        ctx: BuildContext,
        classes_dir: Path,
        requested_java_version: Optional[str]
    ) -> None:
        """Run the compiler.

        Raises:
            CompilerError: If the compiler exits with a non-zero status
            ProcessError: If the compiler cannot be started
        """
        cmd = self.build_command(src, ctx, classes_dir, requested_java_version)
        env = src.get_compiler_environment(dict(os.environ), ctx.jdk_manager, requested_java_version)

        logger.info("Building jar...")
        logger.debug("compile: " + " ".join(cmd))

        args_file = None
        if len(" ".join(cmd)) > self.max_command_length:
            args_file = self._write_args_file(cmd[1:])
            cmd = [cmd[0], f"@{args_file}"]
        try:
            exit_code = self.runner.run(cmd, env=env)
        finally:
            if args_file is not None:
                args_file.unlink()

        if exit_code != 0:
            raise CompilerError("Error during compile")

    def _write_args_file(self, args: List[str]) -> Path:
        """Write compiler arguments to an args file.

        Args:
            args: Arguments after the compiler binary

        Returns:
            Path to the args file
        """
        fd, name = tempfile.mkstemp(prefix="jbang", suffix=".args")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("\n".join(escape_args_file_argument(a) for a in args))
        logger.debug(f"Using args file {name}")
        return Path(name)
