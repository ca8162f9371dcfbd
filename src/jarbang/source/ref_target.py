"""Extra files declared with ``//FILES``.

A token is either ``source`` or ``target=source``. The source is resolved
relative to the declaring script; the target is a path inside the jar.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Optional

from ..packages.cache import Cache
from .resource_ref import ResourceRef, SourceError


@dataclass(frozen=True)
class RefTarget:
    """A declared extra file and where it lands in the scratch directory."""

    source: ResourceRef
    target: Optional[PurePath] = None

    @classmethod
    def create(cls, owner: ResourceRef, file_reference: str, cache: Optional[Cache] = None) -> "RefTarget":
        """Parse a ``//FILES`` token declared by ``owner``."""
        split = file_reference.split("=", 1)
        if len(split) == 1:
            target, source = None, split[0]
        else:
            target, source = PurePath(split[0]), split[1]
        return cls(owner.as_sibling(source, cache), target)

    def to(self, parent: Path) -> Path:
        """Destination of this file below ``parent``."""
        if self.target is not None:
            return parent / self.target
        return parent / self.source.file.name

    def copy(self, parent: Path) -> Path:
        """Copy the file into ``parent``, overwriting any earlier copy.

        Raises:
            SourceError: If the source file cannot be copied
        """
        dest = self.to(parent)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.source.file, dest)
        except OSError as e:
            raise SourceError(f"Could not copy {self.source} to {dest}: {e}") from e
        return dest
