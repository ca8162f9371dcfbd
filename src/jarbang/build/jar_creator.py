"""Jar Creator.

This module packs a build's scratch directory into the final jar, with a
manifest recording everything a later run needs: the entry points, the
class path, the JVM options and the JDK the jar was built with.

Design:
    - The manifest is the first entry of the archive
    - JVM options are quoted in the portable (POSIX) form so the jar means
      the same thing on every host
    - The jar is written next to its destination and moved into place, so
      a failed build never leaves a half-written jar behind
"""

import logging
import os
import zipfile
from pathlib import Path

from ..packages.java_version import build_jdk_marker
from ..source.manifest import MANIFEST_NAME, Manifest
from ..source.script_source import ScriptSource
from ..source.source import (
    ATTR_AGENT_CLASS,
    ATTR_BOOT_CLASS_PATH,
    ATTR_BUILD_JDK,
    ATTR_CLASS_PATH,
    ATTR_JBANG_JAVA_OPTIONS,
    ATTR_MAIN_CLASS,
    ATTR_MANIFEST_VERSION,
    ATTR_PREMAIN_CLASS,
)
from .build_context import BuildContext
from .escaping import escape_arguments

logger = logging.getLogger(__name__)


def create_manifest(src: ScriptSource, ctx: BuildContext) -> Manifest:
    """Build the manifest for a script's jar.

    Args:
        src: Script being built
        ctx: Build context holding entry points, class path and options

    Returns:
        Manifest with only the attributes that have a value
    """
    manifest = Manifest()
    manifest[ATTR_MANIFEST_VERSION] = "1.0"
    main_class = ctx.get_main_class_or(src)
    if main_class is not None:
        manifest[ATTR_MAIN_CLASS] = main_class

    manifest_path = ctx.class_path.manifest_path if ctx.class_path is not None else ""
    if src.is_agent:
        if ctx.pre_main_class is not None:
            manifest[ATTR_PREMAIN_CLASS] = ctx.pre_main_class
        if ctx.agent_main_class is not None:
            manifest[ATTR_AGENT_CLASS] = ctx.agent_main_class
        for kv in src.all_agent_options:
            if not kv.key.strip():
                continue
            manifest[kv.key] = kv.manifest_value
        if manifest_path:
            manifest[ATTR_BOOT_CLASS_PATH] = manifest_path
    elif manifest_path:
        manifest[ATTR_CLASS_PATH] = manifest_path

    # Persistent options come last so they override the script's own
    runtime_options = " ".join(escape_arguments(ctx.get_runtime_options_merged(src)))
    if runtime_options:
        manifest[ATTR_JBANG_JAVA_OPTIONS] = runtime_options
    if ctx.build_jdk > 0:
        manifest[ATTR_BUILD_JDK] = build_jdk_marker(ctx.build_jdk)
    return manifest


def write_jar(classes_dir: Path, manifest: Manifest, output: Path) -> Path:
    """Pack a directory tree into a jar.

    Args:
        classes_dir: Directory whose contents become the jar's root
        manifest: Manifest written as the first entry
        output: Jar to create (replaced if it exists)

    Returns:
        Path to the jar
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    partial = output.with_name(output.name + ".part")
    try:
        with zipfile.ZipFile(partial, "w", compression=zipfile.ZIP_DEFLATED) as jar:
            jar.writestr("META-INF/", b"")
            jar.writestr(MANIFEST_NAME, manifest.to_bytes())
            for path in sorted(classes_dir.rglob("*")):
                name = path.relative_to(classes_dir).as_posix()
                if name in ("META-INF", MANIFEST_NAME):
                    continue
                if path.is_dir():
                    jar.writestr(name + "/", b"")
                else:
                    jar.write(path, name)
        os.replace(partial, output)
    finally:
        if partial.exists():
            partial.unlink()
    logger.debug(f"Created {output} ({output.stat().st_size:,} bytes)")
    return output


def create_jar_file(src: ScriptSource, ctx: BuildContext, classes_dir: Path, output: Path) -> Path:
    """Write the jar for a script from its compiled classes."""
    return write_jar(classes_dir, create_manifest(src, ctx), output)
