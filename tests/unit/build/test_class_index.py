"""Unit tests for the class-file index."""

import io

import pytest

from jarbang.build.class_index import ClassFormatError, ClassIndex, parse_class


class TestParseClass:
    """Test cases for parse_class."""

    def test_names_and_methods(self, class_bytes, main_method):
        data = class_bytes("demo.app.Main", [main_method, ("run", "(I)V")])

        info = parse_class(data)

        assert info.name == "demo.app.Main"
        assert info.simple_name == "Main"
        assert info.super_name == "java.lang.Object"
        assert [m.name for m in info.methods] == ["main", "run"]

    def test_method_lookup_by_parameter_types(self, class_bytes, main_method):
        info = parse_class(class_bytes("Main", [main_method, ("run", "()V")]))

        assert info.method("main", "[Ljava/lang/String;") is not None
        assert info.method("main") is None
        assert info.method("run") is not None
        assert info.method("run", "I") is None

    def test_no_super_class(self, class_bytes):
        assert parse_class(class_bytes("java.lang.Object", super_name=None)).super_name is None

    def test_bad_magic(self):
        with pytest.raises(ClassFormatError, match="magic"):
            parse_class(b"\x00\x00\x00\x00" + b"\x00" * 20)

    def test_truncated(self, class_bytes):
        with pytest.raises(ClassFormatError):
            parse_class(class_bytes("Main")[:15])


class TestClassIndex:
    """Test cases for ClassIndex."""

    def test_keeps_discovery_order(self, class_bytes):
        index = ClassIndex()
        index.index(io.BytesIO(class_bytes("B")))
        index.index(io.BytesIO(class_bytes("A")))
        assert [c.name for c in index.known_classes] == ["B", "A"]
