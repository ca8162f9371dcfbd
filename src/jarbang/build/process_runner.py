"""Process Runner.

This module runs the external tools of a build (compiler, native-image) as
blocking child processes that share jarbang's standard streams.

Design:
    - Wraps subprocess.Popen and waits for the child to exit
    - Inherits stdin/stdout/stderr unless a stream is redirected explicitly
    - On KeyboardInterrupt, kills the child's whole process tree and re-raises
"""

import logging
import subprocess
from typing import IO, Dict, List, Optional

import psutil

from ..errors import JarbangError

logger = logging.getLogger(__name__)


class ProcessError(JarbangError):
    """Raised when an external tool cannot be started."""

    pass


def terminate_process_tree(pid: int, timeout: float = 3) -> int:
    """Terminate a process and all of its descendants.

    Children are terminated before their parents. Processes still alive
    after ``timeout`` seconds are killed.

    Args:
        pid: Root process id
        timeout: Seconds to wait for graceful termination

    Returns:
        Number of processes that were signalled
    """
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True)
        processes.reverse()
        processes.append(root)
    except psutil.NoSuchProcess:
        return 0

    killed_count = 0
    for proc in processes:
        try:
            proc.terminate()
            killed_count += 1
            logger.debug(f"Terminated process {proc.pid}")
        except psutil.NoSuchProcess:
            pass  # Already dead

    _gone, alive = psutil.wait_procs(processes, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
            logger.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
    return killed_count


class ProcessRunner:
    """Runs external tools and waits for them to finish."""

    def run(
        self,
        cmd: List[str],
        env: Optional[Dict[str, str]] = None,
        stdout: Optional[IO] = None
    ) -> int:
        """Run a command to completion.

        Args:
            cmd: Command and arguments
            env: Environment for the child (inherited when None)
            stdout: Stream to redirect the child's stdout to (inherited when None)

        Returns:
            The child's exit status

        Raises:
            ProcessError: If the command cannot be started
            KeyboardInterrupt: If interrupted while waiting; the child's
                process tree is terminated first
        """
        logger.debug("Running: " + " ".join(cmd))
        try:
            proc = subprocess.Popen(cmd, env=env, stdout=stdout)
        except OSError as e:
            raise ProcessError(f"Unable to run {cmd[0]}: {e}") from e

        try:
            return proc.wait()
        except KeyboardInterrupt:
            logger.debug(f"Interrupted, terminating process tree of {proc.pid}")
            terminate_process_tree(proc.pid)
            raise
