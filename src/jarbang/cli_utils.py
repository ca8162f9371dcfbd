"""CLI utility functions for jarbang.

This module provides common utilities used across CLI commands including:
- Logging setup
- Error handling and formatting
- Argument validation
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from jarbang.errors import JarbangError
from jarbang.packages.java_version import check_requested_version
from jarbang.source.resource_ref import is_stdin, is_url

LOG_PREFIX = "[jbang] "


class JbangLogFormatter(logging.Formatter):
    """Prefixes messages with [jbang], and warnings additionally with [WARN]."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{LOG_PREFIX}[WARN] {message}"
        return LOG_PREFIX + message


def setup_logging(verbose: bool = False) -> None:
    """Setup logging for the CLI.

    Messages go to stderr so a script's own output on stdout stays clean.

    Args:
        verbose: Log debug messages too
    """
    logger = logging.getLogger()
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(JbangLogFormatter("%(message)s"))
    logger.handlers = [console_handler]


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Build failed")
            message: Error message details
        """
        print(file=sys.stderr)
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}", file=sys.stderr)
        print(file=sys.stderr)
        print(message, file=sys.stderr)
        print(file=sys.stderr)

    @staticmethod
    def print_success(message: str) -> None:
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}", file=sys.stderr)

    @staticmethod
    def print_warning(message: str) -> None:
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}", file=sys.stderr)

    @staticmethod
    def handle_jarbang_error(title: str, error: JarbangError, verbose: bool = False) -> None:
        """Handle a jarbang error: print it with its cause and exit with 1.

        Args:
            title: Error title
            error: The error to report
            verbose: Whether to print the traceback
        """
        message = str(error)
        cause = error.__cause__
        if cause is not None:
            message += f"\nCaused by: {type(cause).__name__}: {cause}"
        ErrorFormatter.print_error(title, message)
        if verbose:
            import traceback

            print("Traceback:", file=sys.stderr)
            print(traceback.format_exc(), file=sys.stderr)
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:", file=sys.stderr)
            print(traceback.format_exc(), file=sys.stderr)

        sys.exit(1)


class ScriptValidator:
    """Validates script references given on the command line."""

    @staticmethod
    def validate_script(script: str) -> None:
        """Validate that a local script exists.

        URLs and standard input are accepted as-is.

        Raises:
            SystemExit: If a local script doesn't exist or isn't a file
        """
        if is_url(script) or is_stdin(script):
            return
        path = Path(script)
        if not path.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Script does not exist: {script}{ErrorFormatter.RESET}")
            sys.exit(2)
        if not path.is_file():
            print(f"{ErrorFormatter.RED}✗ Error: Script is not a file: {script}{ErrorFormatter.RESET}")
            sys.exit(2)


def java_version_arg(value: str) -> str:
    """argparse type for -j/--java."""
    if not check_requested_version(value):
        raise argparse.ArgumentTypeError(
            "Invalid version, should be a number optionally followed by a plus sign"
        )
    return value


def parse_properties(definitions: Optional[List[str]]) -> Dict[str, str]:
    """Turn ``-Dkey=value`` definitions into a dictionary.

    A definition without ``=`` sets the property to "true".
    """
    properties = {}
    for definition in definitions or []:
        key, sep, value = definition.partition("=")
        properties[key] = value if sep else "true"
    return properties
