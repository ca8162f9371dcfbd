"""Resource references.

A ResourceRef ties the reference a user wrote (local path, URL, or ``-`` for
standard input) to the local file holding its content. Remote resources are
downloaded into the cache once; standard input is saved there as well, so
every reference ends up backed by a regular file.

Two references are equal when they resolve to the same local file, which is
what makes them usable as the de-duplication key of a source graph.
"""

import glob
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

import requests

from ..errors import JarbangError
from ..packages.cache import Cache

logger = logging.getLogger(__name__)

STDIN_MARKERS = ("-", "/dev/stdin")
_GLOB_CHARS = set("*?[")


class SourceError(JarbangError):
    """Raised when a source or file reference cannot be read."""

    pass


def is_url(resource: str) -> bool:
    return resource.startswith(("http://", "https://", "file:/"))


def is_stdin(resource: Optional[str]) -> bool:
    return resource is not None and resource in STDIN_MARKERS


def download(url: str, cache: Cache) -> Path:
    """Download a remote resource into the cache (once).

    Raises:
        SourceError: If the download fails
    """
    name = Path(urlparse(url).path).name or "script.java"
    dest = cache.get_url_dir(url) / name
    if dest.is_file():
        return dest

    dest.parent.mkdir(parents=True, exist_ok=True)
    temp_file = dest.with_suffix(dest.suffix + ".tmp")
    logger.info(f"Downloading {url}")
    try:
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        temp_file.write_bytes(response.content)
        temp_file.replace(dest)
    except requests.RequestException as e:
        temp_file.unlink(missing_ok=True)
        raise SourceError(f"Could not download {url}: {e}") from e
    return dest


@dataclass(frozen=True)
class ResourceRef:
    """Identity of one source location."""

    original_resource: Optional[str] = field(compare=False)
    file: Optional[Path]

    @classmethod
    def for_file(cls, file: Optional[Path]) -> "ResourceRef":
        """Create a reference for a local file (or for in-memory text)."""
        if file is None:
            return cls(None, None)
        return cls(str(file), Path(os.path.abspath(file)))

    @classmethod
    def for_resource(cls, resource: str, cache: Optional[Cache] = None) -> "ResourceRef":
        """Create a reference from whatever the user wrote.

        Args:
            resource: Local path, http(s)/file URL, or '-' for stdin
            cache: Cache used for downloads and stdin content

        Returns:
            ResourceRef backed by a local file

        Raises:
            SourceError: If a local file does not exist or a download fails
        """
        cache = cache or Cache()
        if is_stdin(resource):
            content = sys.stdin.read()
            stdin_file = cache.stdin_dir / f"{Cache.stable_id(content)}.java"
            stdin_file.parent.mkdir(parents=True, exist_ok=True)
            stdin_file.write_text(content, encoding="utf-8")
            return cls(resource, stdin_file)

        if resource.startswith("file:/"):
            local = Path(url2pathname(urlparse(resource).path))
            if not local.is_file():
                raise SourceError(f"Script or file not found: {resource}")
            return cls(resource, Path(os.path.abspath(local)))

        if is_url(resource):
            return cls(resource, download(resource, cache))

        local = Path(resource)
        if not local.is_file():
            raise SourceError(f"Script or file not found: {resource}")
        return cls(resource, Path(os.path.abspath(local)))

    @property
    def is_stdin(self) -> bool:
        return is_stdin(self.original_resource)

    @property
    def is_url(self) -> bool:
        return self.original_resource is not None and is_url(self.original_resource)

    @property
    def base_dir(self) -> Path:
        """Directory that relative references are resolved against."""
        if self.original_resource is not None and self.file is not None and not self.is_stdin:
            return self.file.parent
        return Path.cwd()

    def as_sibling(self, sibling: str, cache: Optional[Cache] = None) -> "ResourceRef":
        """Resolve a reference relative to this one.

        Siblings of a URL are resolved by URL joining; siblings of a local
        file relative to its directory.
        """
        if self.is_url and not is_url(sibling):
            return ResourceRef.for_resource(urljoin(self.original_resource, sibling), cache)
        if is_url(sibling):
            return ResourceRef.for_resource(sibling, cache)
        return ResourceRef.for_resource(str(self.base_dir / sibling), cache)

    def __str__(self) -> str:
        return self.original_resource or str(self.file)


def explode(ref: ResourceRef, pattern: str) -> List[str]:
    """Expand a wildcard reference relative to a source's directory.

    URL-backed sources and patterns without wildcards are returned as-is.
    Matches are returned as absolute paths in sorted order.
    """
    if ref.is_url or is_url(pattern) or not (_GLOB_CHARS & set(pattern)):
        return [pattern]
    full_pattern = pattern if os.path.isabs(pattern) else str(ref.base_dir / pattern)
    matches = sorted(p for p in glob.glob(full_pattern, recursive=True) if os.path.isfile(p))
    if not matches:
        logger.warning(f"Source pattern '{pattern}' did not match any files")
    return matches
