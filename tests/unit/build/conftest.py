"""Fixtures for build tests: class files, a fake process runner and JDK doubles."""

import struct
from pathlib import Path
from unittest.mock import Mock

import pytest

from jarbang.packages.cache import Cache
from jarbang.packages.jdk import JdkManager
from jarbang.source import ResourceRef, prepare_script

MAIN_DESCRIPTOR = "([Ljava/lang/String;)V"


class _ConstantPool:
    def __init__(self):
        self.entries = []
        self.count = 1

    def add(self, data, slots=1):
        index = self.count
        self.entries.append(data)
        self.count += slots
        return index

    def utf8(self, text):
        raw = text.encode("utf-8")
        return self.add(struct.pack(">BH", 1, len(raw)) + raw)

    def class_ref(self, internal_name):
        return self.add(struct.pack(">BH", 7, self.utf8(internal_name)))


def build_class(name, methods=(), super_name="java/lang/Object"):
    """Bytes of a class file declaring the given (name, descriptor) methods."""
    pool = _ConstantPool()
    pool.add(struct.pack(">Bq", 5, 42), slots=2)
    pool.add(struct.pack(">Bi", 3, 7))
    this_index = pool.class_ref(name.replace(".", "/"))
    super_index = pool.class_ref(super_name) if super_name else 0
    method_table = b"".join(
        struct.pack(">HHHH", 0x0009, pool.utf8(m), pool.utf8(d), 0) for m, d in methods
    )
    data = struct.pack(">IHHH", 0xCAFEBABE, 0, 52, pool.count)
    data += b"".join(pool.entries)
    data += struct.pack(">HHHH", 0x0021, this_index, super_index, 0)
    data += struct.pack(">H", 0)
    data += struct.pack(">H", len(methods)) + method_table
    data += struct.pack(">H", 0)
    return data


def write_class(directory, name, methods=(), super_name="java/lang/Object"):
    """Write a class file for a dotted class name below ``directory``."""
    path = directory.joinpath(*name.split(".")).with_suffix(".class")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_class(name, methods, super_name))
    return path


@pytest.fixture
def class_bytes():
    return build_class


@pytest.fixture
def class_writer():
    return write_class


@pytest.fixture
def main_method():
    return ("main", MAIN_DESCRIPTOR)


class FakeRunner:
    """Stands in for ProcessRunner; records commands and fakes compiler output.

    When a command carries ``-d <dir>``, the configured classes are written
    into that directory as if a compiler had produced them.
    """

    def __init__(self, exit_code=0, classes=()):
        self.exit_code = exit_code
        self.classes = list(classes)
        self.calls = []

    def run(self, cmd, env=None, stdout=None):
        self.calls.append({"cmd": list(cmd), "env": env, "stdout": stdout})
        if "-d" in cmd and self.exit_code == 0:
            out = Path(cmd[cmd.index("-d") + 1])
            for name, methods in self.classes:
                write_class(out, name, methods)
        return self.exit_code


@pytest.fixture(autouse=True)
def clean_option_env(monkeypatch):
    """Keep JBANG_<CATEGORY> variables of the host out of the tests."""
    for category in ("JAVA", "JAVA_OPTIONS", "JAVAC_OPTIONS", "JAVAAGENT", "CDS", "RUNTIME_SHELL"):
        monkeypatch.delenv(f"JBANG_{category}", raising=False)


@pytest.fixture
def cache(tmp_path):
    return Cache(tmp_path / "cache")


@pytest.fixture
def jdk_manager():
    """A JdkManager double reporting Java 17 and bare tool names."""
    manager = Mock(spec=JdkManager)
    manager.java_version.return_value = 17
    manager.resolve_in_java_home.side_effect = lambda cmd, requested: cmd
    manager.resolve_in_graalvm_home.side_effect = lambda cmd, requested: cmd
    return manager


@pytest.fixture
def fake_runner_factory():
    return FakeRunner


@pytest.fixture
def script_writer(cache):
    """Write a script below a directory and load it as a ScriptSource."""

    def _write(directory, name, text):
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return prepare_script(ResourceRef.for_resource(str(path), cache), cache=cache)

    return _write
