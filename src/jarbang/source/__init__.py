"""Directive-driven source model.

This package turns annotated source files into structured build input:
- Directive extraction (``//DEPS``, ``//SOURCES``, ``//FILES``, options, ...)
- Resource references for local files, URLs and standard input
- Script dialects (Java, Kotlin, Groovy, Markdown) and packaged jars
- The source graph formed by ``//SOURCES`` includes
"""

from .directives import DirectiveError, KeyValue
from .coordinates import MavenCoordinate, MavenRepo
from .resource_ref import ResourceRef, SourceError
from .ref_target import RefTarget
from .source import Source
from .script_source import ScriptSource
from .dialects import (
    GroovyScriptSource,
    KotlinScriptSource,
    MarkdownScriptSource,
    prepare_script,
    prepare_source,
)
from .jar_source import JarSource

__all__ = [
    "DirectiveError",
    "KeyValue",
    "MavenCoordinate",
    "MavenRepo",
    "ResourceRef",
    "SourceError",
    "RefTarget",
    "Source",
    "ScriptSource",
    "KotlinScriptSource",
    "GroovyScriptSource",
    "MarkdownScriptSource",
    "JarSource",
    "prepare_script",
    "prepare_source",
]
