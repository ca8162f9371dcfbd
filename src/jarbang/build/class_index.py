"""Minimal class-file index.

Reads just enough of each ``.class`` file (constant pool, class names and
method signatures) to answer "which classes declare a method with this name
and these parameter types". No bytecode is loaded or verified.

Type names are JVM descriptors, e.g. ``[Ljava/lang/String;`` for String[].
"""

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple

from ..errors import JarbangError

CLASS_MAGIC = 0xCAFEBABE

# Constant pool tag -> size of the entry after the tag byte (UTF8 is variable)
_CP_UTF8 = 1
_CP_CLASS = 7
_CP_LONG = 5
_CP_DOUBLE = 6
_CP_FIXED_SIZES = {
    3: 4,   # Integer
    4: 4,   # Float
    5: 8,   # Long
    6: 8,   # Double
    7: 2,   # Class
    8: 2,   # String
    9: 4,   # Fieldref
    10: 4,  # Methodref
    11: 4,  # InterfaceMethodref
    12: 4,  # NameAndType
    15: 3,  # MethodHandle
    16: 2,  # MethodType
    17: 4,  # Dynamic
    18: 4,  # InvokeDynamic
    19: 2,  # Module
    20: 2,  # Package
}


class ClassFormatError(JarbangError):
    """Raised when a class file cannot be parsed."""

    pass


@dataclass(frozen=True)
class MethodInfo:
    """A method's name, descriptor and access flags."""

    name: str
    descriptor: str
    access_flags: int

    @property
    def parameter_descriptor(self) -> str:
        """The descriptor's parameter part, without parentheses."""
        return self.descriptor[1:self.descriptor.index(")")]


@dataclass
class ClassInfo:
    """What the index knows about one class."""

    name: str
    super_name: Optional[str]
    access_flags: int
    methods: List[MethodInfo] = field(default_factory=list)

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def method(self, name: str, *parameter_types: str) -> Optional[MethodInfo]:
        """Find a method by name and exact parameter types.

        Args:
            name: Method name
            parameter_types: Parameter type descriptors, in order

        Returns:
            Matching method, or None
        """
        params = "".join(parameter_types)
        for method in self.methods:
            if method.name == name and method.parameter_descriptor == params:
                return method
        return None


class _Reader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def take(self, fmt: str) -> Tuple[int, ...]:
        size = struct.calcsize(fmt)
        if self.pos + size > len(self.data):
            raise ClassFormatError("Truncated class file")
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values

    def u1(self) -> int:
        return self.take(">B")[0]

    def u2(self) -> int:
        return self.take(">H")[0]

    def u4(self) -> int:
        return self.take(">I")[0]

    def skip(self, count: int) -> None:
        if self.pos + count > len(self.data):
            raise ClassFormatError("Truncated class file")
        self.pos += count

    def raw(self, count: int) -> bytes:
        start = self.pos
        self.skip(count)
        return self.data[start:self.pos]


def _internal_to_dotted(name: str) -> str:
    return name.replace("/", ".")


def parse_class(data: bytes) -> ClassInfo:
    """Parse the header, constant pool and method table of a class file.

    Raises:
        ClassFormatError: If the data is not a class file
    """
    reader = _Reader(data)
    if reader.u4() != CLASS_MAGIC:
        raise ClassFormatError("Not a class file (bad magic number)")
    reader.skip(4)  # minor + major version

    count = reader.u2()
    utf8 = {}
    classes = {}
    index = 1
    while index < count:
        tag = reader.u1()
        if tag == _CP_UTF8:
            length = reader.u2()
            utf8[index] = reader.raw(length).decode("utf-8", errors="replace")
        elif tag == _CP_CLASS:
            classes[index] = reader.u2()
        elif tag in _CP_FIXED_SIZES:
            reader.skip(_CP_FIXED_SIZES[tag])
        else:
            raise ClassFormatError(f"Unknown constant pool tag {tag} at index {index}")
        # Long and Double take up two constant pool slots
        index += 2 if tag in (_CP_LONG, _CP_DOUBLE) else 1

    def class_name(cp_index: int) -> Optional[str]:
        if cp_index == 0:
            return None
        try:
            return _internal_to_dotted(utf8[classes[cp_index]])
        except KeyError as e:
            raise ClassFormatError(f"Bad class reference #{cp_index}") from e

    access_flags = reader.u2()
    this_name = class_name(reader.u2())
    super_name = class_name(reader.u2())
    reader.skip(2 * reader.u2())  # interfaces

    def members() -> List[Tuple[int, int, int]]:
        result = []
        for _ in range(reader.u2()):
            flags, name_index, descriptor_index = reader.take(">HHH")
            for _ in range(reader.u2()):
                reader.skip(2)
                reader.skip(reader.u4())
            result.append((flags, name_index, descriptor_index))
        return result

    members()  # fields
    methods = []
    for flags, name_index, descriptor_index in members():
        try:
            methods.append(MethodInfo(utf8[name_index], utf8[descriptor_index], flags))
        except KeyError as e:
            raise ClassFormatError(f"Bad method reference in {this_name}") from e

    if this_name is None:
        raise ClassFormatError("Class file has no class name")
    return ClassInfo(this_name, super_name, access_flags, methods)


class ClassIndex:
    """Index of classes in discovery order."""

    def __init__(self):
        self._classes: List[ClassInfo] = []

    def index(self, stream: BinaryIO) -> ClassInfo:
        info = parse_class(stream.read())
        self._classes.append(info)
        return info

    def index_file(self, path: Path) -> ClassInfo:
        with open(path, "rb") as f:
            return self.index(f)

    @property
    def known_classes(self) -> List[ClassInfo]:
        return list(self._classes)
