"""Jar manifest reading and writing.

Only the main section is supported. Lines are wrapped at 72 bytes with
single-space continuation lines, as the jar file format requires.
"""

import zipfile
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

MANIFEST_NAME = "META-INF/MANIFEST.MF"
MAX_LINE_BYTES = 72


class Manifest:
    """Ordered main-section attributes of a jar manifest."""

    def __init__(self, attributes: Optional[Mapping[str, str]] = None):
        self.attributes: Dict[str, str] = dict(attributes or {})

    def __getitem__(self, key: str) -> str:
        return self.attributes[key]

    def __setitem__(self, key: str, value: str) -> None:
        self.attributes[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(key, default)

    def to_bytes(self) -> bytes:
        out: List[bytes] = []
        for key, value in self.attributes.items():
            out.extend(_wrap(f"{key}: {value}"))
        out.append(b"")
        return b"\r\n".join(out) + b"\r\n"

    @classmethod
    def parse(cls, data: bytes) -> "Manifest":
        attributes: Dict[str, str] = {}
        last_key = None
        for line in data.decode("utf-8").splitlines():
            if not line:
                break
            if line.startswith(" ") and last_key is not None:
                attributes[last_key] += line[1:]
                continue
            key, sep, value = line.partition(": ")
            if not sep:
                raise ValueError(f"Invalid manifest line: {line!r}")
            attributes[key] = value
            last_key = key
        return cls(attributes)

    @classmethod
    def read_from_jar(cls, jar: Path) -> "Manifest":
        """Read the manifest of a jar.

        Raises:
            OSError, zipfile.BadZipFile, KeyError, ValueError: If the jar or
                its manifest cannot be read
        """
        with zipfile.ZipFile(jar) as zf:
            return cls.parse(zf.read(MANIFEST_NAME))


def _wrap(line: str) -> List[bytes]:
    chunks = []
    current = b""
    for ch in line:
        encoded = ch.encode("utf-8")
        if len(current) + len(encoded) > MAX_LINE_BYTES:
            chunks.append(current)
            current = b" "
        current += encoded
    chunks.append(current)
    return chunks


def manifest_path_entries(manifest_path: str) -> List[Path]:
    """Turn a manifest class path (space separated URLs) into local paths."""
    entries = []
    for token in manifest_path.split():
        parsed = urlparse(token)
        if parsed.scheme == "file":
            entries.append(Path(url2pathname(parsed.path)))
        else:
            entries.append(Path(token))
    return entries
