"""Cache management for jarbang.

This module provides the cache structure used for built jars, downloaded
scripts and installed JDKs.

Cache Structure:
    ~/.jbang/cache/
    ├── jars/
    │   ├── {script_name}.{content_hash}.jar      # Built artifact
    │   ├── {script_name}.{content_hash}.jar.bin  # Native image (optional)
    │   └── {script_name}.{content_hash}.jar.tmp/ # Scratch dir during a build
    ├── urls/
    │   └── {url_hash}/
    │       └── {file_name}                       # Downloaded remote script
    ├── stdin/
    │   └── {content_hash}.java                   # Script read from stdin
    ├── markdown/
    │   └── {content_hash}/
    │       └── {ClassName}.java                  # Code extracted from .md
    └── jdks/
        └── {major_version}/                      # Installed JDK

The content hash of a script is part of its jar name, so editing a script
always produces a new artifact path and never overwrites an older build.
"""

import hashlib
import os
from pathlib import Path
from typing import Optional


class Cache:
    """Manages the jarbang cache directory structure.

    The cache lives in ``~/.jbang/cache`` unless the JBANG_CACHE_DIR
    environment variable points somewhere else.
    """

    def __init__(self, cache_root: Optional[Path] = None):
        """Initialize cache manager.

        Args:
            cache_root: Explicit cache directory. If None, uses JBANG_CACHE_DIR
                or the default location in the user's home directory.
        """
        if cache_root is not None:
            self.cache_root = Path(cache_root).resolve()
        else:
            cache_env = os.environ.get("JBANG_CACHE_DIR")
            if cache_env:
                self.cache_root = Path(cache_env).resolve()
            else:
                self.cache_root = Path.home() / ".jbang" / "cache"

    @staticmethod
    def stable_id(content: str) -> str:
        """Generate a stable SHA256 identifier for script content.

        Args:
            content: Raw text to hash

        Returns:
            Hex digest of the SHA256 hash
        """
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    @staticmethod
    def hash_url(url: str) -> str:
        """Generate a short SHA256 hash of a URL for cache directory naming.

        Args:
            url: The URL to hash

        Returns:
            First 16 characters of SHA256 hash (sufficient for uniqueness)
        """
        return hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]

    @property
    def jars_dir(self) -> Path:
        """Directory for built jars and native images."""
        return self.cache_root / "jars"

    @property
    def urls_dir(self) -> Path:
        """Directory for downloaded remote scripts."""
        return self.cache_root / "urls"

    @property
    def stdin_dir(self) -> Path:
        """Directory for scripts read from standard input."""
        return self.cache_root / "stdin"

    @property
    def markdown_dir(self) -> Path:
        """Directory for Java code extracted from markdown files."""
        return self.cache_root / "markdown"

    @property
    def jdks_dir(self) -> Path:
        """Directory for installed JDKs, one subdirectory per major version."""
        return self.cache_root / "jdks"

    def get_jar_path(self, script_name: str, content: str) -> Path:
        """Get the deterministic jar location for a script.

        Args:
            script_name: File name of the root script (e.g. 'hello.java')
            content: Raw text of the root script

        Returns:
            Path to the jar file (which may not exist yet)
        """
        return self.jars_dir / f"{script_name}.{self.stable_id(content)}.jar"

    def get_url_dir(self, url: str) -> Path:
        """Get the download directory for a remote resource.

        Args:
            url: Remote resource URL

        Returns:
            Path to the directory holding the downloaded file
        """
        return self.urls_dir / self.hash_url(url)

    def __repr__(self) -> str:
        """String representation of cache."""
        return f"Cache(cache_root={self.cache_root})"
