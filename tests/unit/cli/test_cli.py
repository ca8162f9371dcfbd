"""Unit tests for the jarbang command line."""

import json
import logging
from unittest.mock import patch

import pytest

from jarbang.build.compiler import CompilerError
from jarbang.cli import BuildArgs, create_context, create_parser, main
from jarbang.config import Settings
from jarbang.packages import Cache


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point config and cache at the test directory and restore logging afterwards."""
    monkeypatch.setenv("JBANG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("JBANG_CACHE_DIR", str(tmp_path / "cache"))
    for category in ("JAVA", "JAVA_OPTIONS", "JAVAC_OPTIONS", "JAVAAGENT", "CDS"):
        monkeypatch.delenv(f"JBANG_{category}", raising=False)
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    root.handlers = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def script(tmp_path):
    path = tmp_path / "hello.java"
    path.write_text(
        "//DEPS org.example:lib:${lib.version:1.0}\n"
        "//DESCRIPTION Says hello\n"
        "//JAVA 17+\n"
        "class hello { public static void main(String[] args) {} }\n",
        encoding="utf-8",
    )
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_build_arguments(self):
        args = create_parser().parse_args([
            "build", "--fresh", "-n", "-m", "app.Main", "-j", "17+",
            "-R=-Xmx1g", "--java-options=-Dx=1", "-s", "extra.java",
            "--deps", "g:a:1", "--repos", "jitpack", "-D", "k=v", "hello.java",
        ])

        assert args.command == "build"
        assert args.script == "hello.java"
        assert args.fresh
        assert args.native is True
        assert args.main == "app.Main"
        assert args.java == "17+"
        assert args.java_options == ["-Xmx1g", "-Dx=1"]
        assert args.sources == ["extra.java"]
        assert args.deps == ["g:a:1"]
        assert args.repos == ["jitpack"]
        assert args.properties == ["k=v"]

    def test_java_options_hold_several_options(self):
        args = create_parser().parse_args(["build", "-R=-Xmx1g -Dx=1", "hello.java"])
        assert args.java_options == ["-Xmx1g -Dx=1"]

    def test_detached_java_option_is_a_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["build", "-R", "-Xmx1g", "hello.java"])
        assert exc_info.value.code == 2

    def test_native_defaults_to_unset(self):
        assert create_parser().parse_args(["build", "hello.java"]).native is None

    def test_invalid_java_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["build", "-j", "1.8", "hello.java"])
        assert exc_info.value.code == 2


class TestCreateContext:
    """Tests for combining arguments with settings."""

    @pytest.fixture
    def settings(self, tmp_path):
        path = tmp_path / "settings.ini"
        path.write_text("[build]\njava = 11\njava-options = -Xmx1g\nnative = true\nrepositories = jitpack\n")
        return Settings(path)

    def test_settings_fill_gaps(self, tmp_path, settings):
        args = BuildArgs(
            script="hello.java",
            java_options=["-Dx=1 -Dy=2"],
            repositories=["acme=https://repo.acme.org/"],
        )

        ctx = create_context(args, settings, Cache(tmp_path / "cache"))

        assert ctx.java_version == "11"
        assert ctx.native_image is True
        assert ctx.java_options == ["-Xmx1g", "-Dx=1", "-Dy=2"]
        assert ctx.additional_repositories == ["jitpack", "acme=https://repo.acme.org/"]

    def test_arguments_win(self, tmp_path, settings):
        args = BuildArgs(script="hello.java", java="17", native=False, main="app.Main", fresh=True)

        ctx = create_context(args, settings, Cache(tmp_path / "cache"))

        assert ctx.java_version == "17"
        assert ctx.native_image is False
        assert ctx.main_class == "app.Main"
        assert ctx.fresh


class TestInfoCommand:
    """Tests for `jarbang info`."""

    def test_prints_json(self, script, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["info", str(script)])

        assert exc_info.value.code == 0
        info = json.loads(capsys.readouterr().out)
        assert info["originalResource"] == str(script)
        assert info["dependencies"] == ["org.example:lib:1.0"]
        assert info["description"] == "Says hello"
        assert info["javaVersion"] == "17+"
        assert info["sources"] == []
        assert info["applicationJar"].endswith(".jar")

    def test_properties_substituted(self, script, capsys):
        with pytest.raises(SystemExit):
            main(["info", "-D", "lib.version=2.0", str(script)])

        assert json.loads(capsys.readouterr().out)["dependencies"] == ["org.example:lib:2.0"]

    def test_bad_directive(self, tmp_path, capsys):
        bad = tmp_path / "bad.java"
        bad.write_text("//GAV not-a-gav\nclass bad {}\n")

        with pytest.raises(SystemExit) as exc_info:
            main(["info", str(bad)])

        assert exc_info.value.code == 1
        assert "//GAV line has wrong format" in capsys.readouterr().err


class TestBuildCommand:
    """Tests for `jarbang build`."""

    def test_prints_jar_path(self, script, capsys):
        with patch("jarbang.cli.BuildOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.build_if_needed.side_effect = lambda src, ctx: src
            with pytest.raises(SystemExit) as exc_info:
                main(["build", "-m", "hello", str(script)])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out.strip()
        assert out.endswith(".jar")
        assert "hello.java." in out
        src, ctx = orchestrator_cls.return_value.build_if_needed.call_args[0]
        assert ctx.main_class == "hello"

    def test_build_failure(self, script, capsys):
        with patch("jarbang.cli.BuildOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.build_if_needed.side_effect = CompilerError("Error during compile")
            with pytest.raises(SystemExit) as exc_info:
                main(["build", str(script)])

        assert exc_info.value.code == 1
        assert "Error during compile" in capsys.readouterr().err

    def test_interrupted(self, script, capsys):
        with patch("jarbang.cli.BuildOrchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.build_if_needed.side_effect = KeyboardInterrupt
            with pytest.raises(SystemExit) as exc_info:
                main(["build", str(script)])

        assert exc_info.value.code == 130

    def test_missing_script(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["build", str(tmp_path / "missing.java")])
        assert exc_info.value.code == 2


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 0
    assert "jarbang" in capsys.readouterr().out
