"""
Persistent user settings.

Settings live in ``settings.ini`` inside the jarbang config directory
(``~/.jbang`` unless JBANG_DIR says otherwise). Every key is optional and
command line flags override whatever is set here.

Example settings.ini:
    [build]
    java = 17+
    java-options = -Xmx1g -Dfile.encoding=UTF-8
    native = false
    repositories =
        mavenCentral
        internal=https://repo.example.com/maven2/
"""

import configparser
import os
import re
import shlex
from pathlib import Path
from typing import List, Optional

from ..errors import JarbangError
from ..packages.java_version import check_requested_version

SETTINGS_FILE = "settings.ini"
BUILD_SECTION = "build"


class SettingsError(JarbangError):
    """Exception raised for settings.ini errors."""

    pass


def config_dir() -> Path:
    """Get the jarbang config directory."""
    env_dir = os.environ.get("JBANG_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".jbang"


class Settings:
    """
    Reader for settings.ini.

    A missing file is the same as an empty one.

    Usage:
        settings = Settings()
        ctx = BuildContext(java_version=args.java or settings.java)
    """

    def __init__(self, ini_path: Optional[Path] = None):
        """
        Load settings.

        Args:
            ini_path: Settings file (defaults to settings.ini in the config dir)

        Raises:
            SettingsError: If the file exists but cannot be parsed
        """
        self.ini_path = ini_path if ini_path is not None else config_dir() / SETTINGS_FILE
        self.config = configparser.ConfigParser(interpolation=None)
        if self.ini_path.exists():
            try:
                self.config.read(self.ini_path, encoding="utf-8")
            except configparser.Error as e:
                raise SettingsError(f"Failed to parse {self.ini_path}: {e}") from e

    def _get(self, key: str) -> Optional[str]:
        if not self.config.has_option(BUILD_SECTION, key):
            return None
        value = self.config.get(BUILD_SECTION, key).strip()
        return value or None

    @property
    def java(self) -> Optional[str]:
        """Default requested Java version.

        Raises:
            SettingsError: If the value is not of the form N or N+
        """
        value = self._get("java")
        if value is not None and not check_requested_version(value):
            raise SettingsError(
                f"Invalid java version '{value}' in {self.ini_path}, "
                + "should be a number optionally followed by a plus sign"
            )
        return value

    @property
    def java_options(self) -> List[str]:
        """Runtime options appended to every script's own options."""
        value = self._get("java-options")
        return shlex.split(value) if value else []

    @property
    def native(self) -> bool:
        try:
            return self.config.getboolean(BUILD_SECTION, "native", fallback=False)
        except ValueError as e:
            raise SettingsError(f"Invalid value for 'native' in {self.ini_path}: {e}") from e

    @property
    def repositories(self) -> List[str]:
        """Extra repository references, one per line or comma separated."""
        value = self._get("repositories")
        if not value:
            return []
        return [r for r in re.split(r"[\s,]+", value) if r]
