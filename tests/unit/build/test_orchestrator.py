"""
Unit tests for BuildOrchestrator.

Tests the complete build orchestration process including:
- Staleness checks and reuse of earlier builds
- Compilation, pom generation and jar assembly
- Integration hook results
- Entry-point discovery
- Native image handling
"""

import zipfile
from unittest.mock import Mock

import pytest

from jarbang.build.build_context import BuildContext
from jarbang.build.compiler import CompilerError
from jarbang.build.integration import IIntegration, IntegrationManager, IntegrationResult
from jarbang.build.native_image import NativeImageBuilder, image_name
from jarbang.build.orchestrator import BuildOrchestrator, BuildOrchestratorError, scratch_directory
from jarbang.packages.dependency_resolver import ArtifactInfo, IDependencyResolver, ModularClassPath
from jarbang.source import JarSource, ResourceRef
from jarbang.source.manifest import Manifest

HELLO = "//JAVA_OPTIONS -Xmx1g\nclass hello { public static void main(String[] args) {} }\n"


class StaticHook(IIntegration):
    def __init__(self, result):
        self.result = result

    def post_build(self, request):
        return self.result


# Test fixtures

@pytest.fixture
def resolver():
    resolver = Mock(spec=IDependencyResolver)
    resolver.resolve.return_value = ModularClassPath([])
    return resolver


@pytest.fixture
def make_context(cache, jdk_manager, resolver):
    def _make(**kwargs):
        return BuildContext(cache=cache, jdk_manager=jdk_manager, resolver=resolver, **kwargs)
    return _make


@pytest.fixture
def runner(fake_runner_factory, main_method):
    return fake_runner_factory(classes=[("hello", [main_method]), ("Helper", [])])


@pytest.fixture
def native_builder():
    return Mock(spec=NativeImageBuilder)


@pytest.fixture
def make_orchestrator(runner, native_builder):
    def _make(*hooks):
        return BuildOrchestrator(
            runner=runner,
            integration_manager=IntegrationManager(list(hooks)),
            native_image_builder=native_builder,
        )
    return _make


@pytest.fixture
def hello(tmp_path, script_writer):
    return script_writer(tmp_path / "scripts", "hello.java", HELLO)


def read_manifest(jar):
    return Manifest.read_from_jar(jar)


# Building

class TestBuild:
    """Tests for building a script from scratch."""

    def test_first_build(self, hello, make_context, make_orchestrator, runner):
        ctx = make_context()

        result = make_orchestrator().build_if_needed(hello, ctx)

        assert result is hello
        assert len(runner.calls) == 1
        manifest = read_manifest(hello.jar_file)
        assert manifest["Main-Class"] == "hello"
        assert manifest["Build-Jdk"] == "17"
        assert manifest["Jbang-Java-Options"] == "-Xmx1g"
        assert ctx.main_class == "hello"
        assert ctx.build_jdk == 17

    def test_jar_contents(self, hello, make_context, make_orchestrator):
        make_orchestrator().build(hello, make_context())

        with zipfile.ZipFile(hello.jar_file) as jar:
            names = jar.namelist()
        assert names[:2] == ["META-INF/", "META-INF/MANIFEST.MF"]
        assert "hello.class" in names
        assert "Helper.class" in names
        assert "META-INF/maven/group/pom.xml" in names

    def test_scratch_directory_removed(self, hello, make_context, make_orchestrator):
        make_orchestrator().build(hello, make_context())
        assert not hello.jar_file.with_name(hello.jar_file.name + ".tmp").exists()

    def test_declared_files_are_packed(self, tmp_path, script_writer, make_context, make_orchestrator):
        (tmp_path / "scripts").mkdir()
        (tmp_path / "scripts" / "app.properties").write_text("greeting=hi\n")
        src = script_writer(tmp_path / "scripts", "hello.java", "//FILES conf/app.properties=app.properties\n" + HELLO)

        make_orchestrator().build(src, make_context())

        with zipfile.ZipFile(src.jar_file) as jar:
            assert jar.read("conf/app.properties") == b"greeting=hi\n"

    def test_persistent_options_recorded_last(self, hello, make_context, make_orchestrator):
        make_orchestrator().build(hello, make_context(java_options=["-Xmx2g"]))
        assert read_manifest(hello.jar_file)["Jbang-Java-Options"] == "-Xmx1g -Xmx2g"

    def test_class_path_recorded(self, tmp_path, hello, resolver, make_context, make_orchestrator, runner):
        dep = tmp_path / "dep.jar"
        dep.write_bytes(b"")
        resolver.resolve.return_value = ModularClassPath([ArtifactInfo(None, dep)])

        make_orchestrator().build(hello, make_context())

        assert read_manifest(hello.jar_file)["Class-Path"] == dep.absolute().as_uri()
        cmd = runner.calls[0]["cmd"]
        assert cmd[cmd.index("-classpath") + 1] == str(dep)

    def test_compile_failure(self, hello, make_context, fake_runner_factory, native_builder):
        orchestrator = BuildOrchestrator(
            runner=fake_runner_factory(exit_code=1),
            integration_manager=IntegrationManager([]),
            native_image_builder=native_builder,
        )

        with pytest.raises(CompilerError):
            orchestrator.build(hello, make_context())

        assert not hello.jar_file.exists()
        assert not hello.jar_file.with_name(hello.jar_file.name + ".tmp").exists()

    def test_jar_source_returned_unchanged(self, tmp_path, make_context, make_orchestrator, runner):
        jar = tmp_path / "app.jar"
        with zipfile.ZipFile(jar, "w") as zf:
            zf.writestr("META-INF/MANIFEST.MF", Manifest({"Main-Class": "App"}).to_bytes())
        src = JarSource.for_jar(ResourceRef.for_file(jar))

        assert make_orchestrator().build_if_needed(src, make_context()) is src
        assert runner.calls == []


class TestEntryPoints:
    """Tests for how the main class of a build is chosen."""

    def test_forced_main_class(self, hello, make_context, make_orchestrator):
        make_orchestrator().build(hello, make_context(main_class="Helper"))
        assert read_manifest(hello.jar_file)["Main-Class"] == "Helper"

    def test_integration_main_class_and_options(self, hello, make_context, make_orchestrator):
        hook = StaticHook(IntegrationResult(main_class="io.quarkus.Main", java_args=["-Dhook=1"]))
        ctx = make_context()

        make_orchestrator(hook).build(hello, ctx)

        manifest = read_manifest(hello.jar_file)
        assert manifest["Main-Class"] == "io.quarkus.Main"
        assert manifest["Jbang-Java-Options"] == "-Xmx1g -Dhook=1"
        assert ctx.integration_options == ["-Dhook=1"]

    def test_forced_main_beats_integration(self, hello, make_context, make_orchestrator):
        hook = StaticHook(IntegrationResult(main_class="io.quarkus.Main"))
        make_orchestrator(hook).build(hello, make_context(main_class="Helper"))
        assert read_manifest(hello.jar_file)["Main-Class"] == "Helper"

    def test_agent_entry_points(self, tmp_path, script_writer, make_context, fake_runner_factory, native_builder):
        src = script_writer(tmp_path, "agent.java", "//JAVAAGENT Can-Retransform-Classes\nclass agent {}\n")
        runner = fake_runner_factory(classes=[
            ("agent", [("premain", "(Ljava/lang/String;Ljava/lang/instrument/Instrumentation;)V")]),
            ("Attach", [("agentmain", "(Ljava/lang/String;)V")]),
        ])
        orchestrator = BuildOrchestrator(
            runner=runner,
            integration_manager=IntegrationManager([]),
            native_image_builder=native_builder,
        )
        ctx = make_context(main_class="agent")

        orchestrator.build(src, ctx)

        manifest = read_manifest(src.jar_file)
        assert manifest["Premain-Class"] == "agent"
        assert manifest["Agent-Class"] == "Attach"
        assert manifest["Can-Retransform-Classes"] == "true"
        assert ctx.pre_main_class == "agent"


class TestStaleness:
    """Tests for deciding whether an earlier build can be reused."""

    def test_missing_jar(self, hello, make_context, make_orchestrator):
        decision = make_orchestrator().check_staleness(hello, make_context(), None)
        assert decision.build_required
        assert "not readable or not found" in decision.reason

    def test_reuse(self, hello, make_context, make_orchestrator, runner):
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())
        ctx = make_context()

        result = orchestrator.build(hello, ctx)

        assert isinstance(result, JarSource)
        assert result.jar_file == hello.jar_file
        assert len(runner.calls) == 1
        assert ctx.main_class == "hello"
        assert ctx.build_jdk == 17

    def test_fresh(self, hello, make_context, make_orchestrator, runner):
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())

        decision = orchestrator.check_staleness(hello, make_context(fresh=True), None)
        assert decision.build_required
        assert decision.reason == "Building as fresh build explicitly requested."

        orchestrator.build(hello, make_context(fresh=True))
        assert len(runner.calls) == 2

    def test_native_image_missing(self, hello, make_context, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())

        decision = orchestrator.check_staleness(hello, make_context(native_image=True), None)

        assert decision.build_required
        assert decision.reason == "Building as native build required."

    def test_unreadable_jar(self, hello, make_context, make_orchestrator):
        hello.jar_file.parent.mkdir(parents=True, exist_ok=True)
        hello.jar_file.write_bytes(b"garbage")

        decision = make_orchestrator().check_staleness(hello, make_context(), None)

        assert decision.build_required
        assert decision.reason == "Building as previous built jar not found."

    def test_missing_dependency(self, tmp_path, hello, resolver, make_context, make_orchestrator):
        dep = tmp_path / "dep.jar"
        dep.write_bytes(b"")
        resolver.resolve.return_value = ModularClassPath([ArtifactInfo(None, dep)])
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())
        dep.unlink()

        decision = orchestrator.check_staleness(hello, make_context(), None)

        assert decision.build_required
        assert "not up-to-date" in decision.reason

    def test_requested_version_below_build_jdk(self, hello, make_context, make_orchestrator, jdk_manager):
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())
        jdk_manager.java_version.return_value = 11

        decision = orchestrator.check_staleness(hello, make_context(java_version="11"), "11")

        assert decision.build_required
        assert decision.reason.startswith("Building as requested Java version 11")

    def test_requested_version_above_build_jdk(self, hello, make_context, make_orchestrator, jdk_manager):
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())
        jdk_manager.java_version.return_value = 21

        decision = orchestrator.check_staleness(hello, make_context(java_version="21+"), "21+")

        assert not decision.build_required
        assert isinstance(decision.jar_source, JarSource)


class TestNativeImage:
    """Tests for native image handling."""

    def test_native_builder_runs(self, hello, make_context, make_orchestrator, native_builder):
        ctx = make_context(native_image=True)

        make_orchestrator().build(hello, ctx)

        native_builder.build.assert_called_once_with(hello, ctx, hello.jar_file, None)

    def test_integration_image_is_moved(self, tmp_path, hello, make_context, make_orchestrator, native_builder):
        produced = tmp_path / "produced-image"
        produced.write_bytes(b"\x7fELF")
        hook = StaticHook(IntegrationResult(native_image_path=produced))

        make_orchestrator(hook).build(hello, make_context(native_image=True))

        native_builder.build.assert_not_called()
        assert image_name(hello.jar_file).read_bytes() == b"\x7fELF"
        assert not produced.exists()

    def test_integration_image_missing(self, tmp_path, hello, make_context, make_orchestrator):
        hook = StaticHook(IntegrationResult(native_image_path=tmp_path / "nowhere"))

        with pytest.raises(BuildOrchestratorError, match="Unable to move native image"):
            make_orchestrator(hook).build(hello, make_context(native_image=True))

    def test_existing_image_reused(self, hello, make_context, make_orchestrator, native_builder, runner):
        orchestrator = make_orchestrator()
        orchestrator.build(hello, make_context())
        image_name(hello.jar_file).write_bytes(b"")

        orchestrator.build(hello, make_context(native_image=True))

        native_builder.build.assert_not_called()
        assert len(runner.calls) == 1


def test_scratch_directory_cleared_before_use(tmp_path):
    outjar = tmp_path / "app.jar"
    leftover = tmp_path / "app.jar.tmp" / "stale.class"
    leftover.parent.mkdir()
    leftover.write_bytes(b"")

    with scratch_directory(outjar) as scratch:
        assert scratch == tmp_path / "app.jar.tmp"
        assert list(scratch.iterdir()) == []

    assert not scratch.exists()


def test_hooks_receive_build_properties(hello, make_context, make_orchestrator):
    seen = []

    class RecordingHook(IIntegration):
        def post_build(self, request):
            seen.append(request)
            return None

    make_orchestrator(RecordingHook()).build(hello, make_context(properties={"profile": "dev"}))

    assert len(seen) == 1
    assert seen[0].properties == {"profile": "dev"}
    assert seen[0].source is hello
    assert (seen[0].classes_dir / "hello.class").exists()
    assert seen[0].pom_file.name == "pom.xml"
