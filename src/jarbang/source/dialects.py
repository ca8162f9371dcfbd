"""Source dialects.

Every dialect shares the ``//`` directive grammar of ScriptSource and differs
only in how it is compiled and how its runnable classes look. The dialect
is chosen once, from the file extension, when a source is prepared.
"""

import os
import re
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Optional

from ..packages.cache import Cache
from ..packages.jdk import resolve_in_env
from .resource_ref import ResourceRef
from .script_source import STRING_ARRAY_TYPE, ScriptSource, read_backing_file
from .source import Source

if TYPE_CHECKING:
    from ..build.class_index import ClassInfo
    from ..packages.jdk import JdkManager

_MARKDOWN_JAVA_BLOCK = re.compile(r"^```java[ \t]*\r?\n(.*?)^```[ \t]*$", re.MULTILINE | re.DOTALL)


class KotlinScriptSource(ScriptSource):
    """A Kotlin script compiled with kotlinc."""

    COMPILE_OPTIONS_CATEGORY = "COMPILE_OPTIONS"
    MAIN_EXTENSION = ".kt"

    def get_compiler_binary(self, jdk_manager: "JdkManager", requested_java_version: Optional[str]) -> str:
        return resolve_in_env("KOTLIN_HOME", "kotlinc")

    def get_main_finder(self) -> Callable[["ClassInfo"], bool]:
        # Kotlin allows a top-level `fun main()` without arguments
        return lambda ci: (
            ci.method("main", STRING_ARRAY_TYPE) is not None or ci.method("main") is not None
        )

    def get_suggested_main(self) -> Optional[str]:
        # Top-level functions of hello.kt end up in class HelloKt
        base = super().get_suggested_main()
        if not base:
            return base
        return base[0].upper() + base[1:] + "Kt"


class GroovyScriptSource(ScriptSource):
    """A Groovy script compiled with groovyc."""

    COMPILE_OPTIONS_CATEGORY = "COMPILE_OPTIONS"
    MAIN_EXTENSION = ".groovy"

    def get_compiler_binary(self, jdk_manager: "JdkManager", requested_java_version: Optional[str]) -> str:
        return resolve_in_env("GROOVY_HOME", "groovyc")

    def get_compiler_environment(
        self,
        environ: Dict[str, str],
        jdk_manager: "JdkManager",
        requested_java_version: Optional[str]
    ) -> Dict[str, str]:
        env = dict(environ)
        env["JAVA_HOME"] = str(jdk_manager.get_current_jdk(requested_java_version))
        env.pop("GROOVY_HOME", None)
        return env

    def get_main_finder(self) -> Callable[["ClassInfo"], bool]:
        return lambda ci: (
            ci.method("main", STRING_ARRAY_TYPE) is not None
            or ci.super_name == "groovy.lang.Script"
        )


class MarkdownScriptSource(ScriptSource):
    """Java code blocks embedded in a markdown document.

    The ```java fenced blocks are joined into one script. That script is
    written to the cache as ``{Stem}.java`` so javac gets a file whose name
    matches the class it declares.
    """

    MAIN_EXTENSION = ".md"

    @classmethod
    def create(
        cls,
        resource_ref: ResourceRef,
        replace_properties: Optional[Callable[[str], str]] = None,
        cache: Optional[Cache] = None
    ) -> "MarkdownScriptSource":
        markdown = read_backing_file(resource_ref.file)
        return cls(resource_ref, extract_java_blocks(markdown), replace_properties, cache)

    @cached_property
    def source_file(self) -> Path:
        stem = self.resource_ref.file.stem if self.resource_ref.file else "script"
        generated = self.cache.markdown_dir / Cache.stable_id(self.script) / f"{stem}.java"
        if not generated.is_file():
            generated.parent.mkdir(parents=True, exist_ok=True)
            generated.write_text(self.script, encoding="utf-8")
        return generated


def extract_java_blocks(markdown: str) -> str:
    """Join the contents of all ```java fenced blocks of a markdown text."""
    return "\n".join(m.group(1) for m in _MARKDOWN_JAVA_BLOCK.finditer(markdown))


def prepare_script(
    resource_ref: ResourceRef,
    replace_properties: Optional[Callable[[str], str]] = None,
    cache: Optional[Cache] = None
) -> ScriptSource:
    """Create the ScriptSource variant matching a reference's extension."""
    original = resource_ref.original_resource or ""
    if original.endswith(".kt"):
        return KotlinScriptSource(resource_ref, None, replace_properties, cache)
    if original.endswith(".md"):
        return MarkdownScriptSource.create(resource_ref, replace_properties, cache)
    if original.endswith(".groovy"):
        return GroovyScriptSource(resource_ref, None, replace_properties, cache)
    return ScriptSource(resource_ref, None, replace_properties, cache)


def prepare_source(
    resource: str,
    replace_properties: Optional[Callable[[str], str]] = None,
    cache: Optional[Cache] = None
) -> Source:
    """Create a Source for whatever the user pointed at.

    A ``.jar`` is used as-is; anything else is treated as a script.
    """
    from .jar_source import JarSource

    cache = cache or Cache()
    resource_ref = ResourceRef.for_resource(resource, cache)
    if os.fspath(resource_ref.file).endswith(".jar"):
        return JarSource.for_jar(resource_ref)
    return prepare_script(resource_ref, replace_properties, cache)
