"""Process argument escaping.

Arguments are quoted for one of three consumers:
- portable: POSIX single-quote form, used for metadata stored in a jar so
  the stored value means the same thing on every host
- host shell: bash, Windows cmd or PowerShell, chosen by the caller
- args file: double-quote form understood by javac ``@argfiles``

Anything made only of known-safe characters is passed through unchanged.
The quoting functions never look at the host themselves; ``detect_shell``
is a separate helper for callers that need it.
"""

import os
import re
import sys
from enum import Enum
from typing import Iterable, List, Mapping, Optional

# NB: This might not be a definitive list of safe characters
CMD_SAFE_CHARS = re.compile(r"[a-zA-Z0-9.,_+=:;@()-]*")
POWERSHELL_SAFE_CHARS = re.compile(r"[a-zA-Z0-9.,_+=:;@()-]*")
SHELL_SAFE_CHARS = re.compile(r"[a-zA-Z0-9._+=:@%/-]*")


class ShellKind(Enum):
    """Command shells arguments can be quoted for."""

    BASH = "bash"
    CMD = "cmd"
    POWERSHELL = "powershell"


def detect_shell(environ: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> ShellKind:
    """Guess the shell jarbang was started from.

    JBANG_RUNTIME_SHELL wins when set; otherwise Windows means cmd and
    everything else a POSIX shell.
    """
    env = os.environ if environ is None else environ
    hint = env.get("JBANG_RUNTIME_SHELL", "").lower()
    for kind in ShellKind:
        if kind.value == hint:
            return kind
    if (platform or sys.platform) == "win32":
        return ShellKind.CMD
    return ShellKind.BASH


def escape_unix_argument(arg: str) -> str:
    if not SHELL_SAFE_CHARS.fullmatch(arg):
        arg = "'" + arg.replace("'", "'\\''") + "'"
    return arg


def escape_cmd_argument(arg: str) -> str:
    if not CMD_SAFE_CHARS.fullmatch(arg):
        # Windows quoting is just weird
        arg = re.sub(r'([()!^<>&|% ])', r"^\1", arg)
        arg = re.sub(r'(["])', r"\\^\1", arg)
        arg = '^"' + arg + '^"'
    return arg


def escape_powershell_argument(arg: str) -> str:
    if not POWERSHELL_SAFE_CHARS.fullmatch(arg):
        arg = "'" + arg.replace("'", "''") + "'"
    return arg


def escape_args_file_argument(arg: str) -> str:
    if not SHELL_SAFE_CHARS.fullmatch(arg):
        arg = re.sub(r'(["\'\\])', r"\\\1", arg)
        arg = '"' + arg + '"'
    return arg


def escape_argument(arg: str, shell: ShellKind) -> str:
    """Quote one argument for the given shell."""
    if shell is ShellKind.CMD:
        return escape_cmd_argument(arg)
    if shell is ShellKind.POWERSHELL:
        return escape_powershell_argument(arg)
    return escape_unix_argument(arg)


def escape_os_arguments(args: Iterable[str], shell: ShellKind) -> List[str]:
    """Quote arguments for re-invocation under a specific shell."""
    return [escape_argument(arg, shell) for arg in args]


def escape_arguments(args: Iterable[str]) -> List[str]:
    """Quote arguments in the portable (POSIX) form."""
    return [escape_unix_argument(arg) for arg in args]
