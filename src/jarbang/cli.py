"""
Command-line interface for jarbang.

This module provides the `jarbang` CLI tool for building scripts into jars.
"""

import argparse
import json
import shlex
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jarbang import __version__
from jarbang.build import BuildContext, BuildOrchestrator
from jarbang.build.native_image import image_name
from jarbang.cli_utils import (
    ErrorFormatter,
    ScriptValidator,
    java_version_arg,
    parse_properties,
    setup_logging,
)
from jarbang.config import Settings
from jarbang.errors import JarbangError
from jarbang.packages import Cache
from jarbang.source import JarSource, ScriptSource, Source, prepare_source
from jarbang.source.directives import property_replacer


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    script: str
    fresh: bool = False
    native: Optional[bool] = None
    main: Optional[str] = None
    java: Optional[str] = None
    java_options: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    repositories: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    verbose: bool = False


@dataclass
class InfoArgs:
    """Arguments for the info command."""

    script: str
    properties: Dict[str, str] = field(default_factory=dict)
    verbose: bool = False


def create_context(args: BuildArgs, settings: Settings, cache: Cache) -> BuildContext:
    """Combine command line arguments with persistent settings.

    Command line values win; list-valued settings are added to.
    """
    java_options = list(settings.java_options)
    for option in args.java_options:
        java_options.extend(shlex.split(option))
    return BuildContext(
        java_version=args.java or settings.java,
        main_class=args.main,
        native_image=args.native if args.native is not None else settings.native,
        fresh=args.fresh,
        java_options=java_options,
        properties=dict(args.properties),
        additional_sources=list(args.sources),
        additional_dependencies=list(args.dependencies),
        additional_repositories=list(settings.repositories) + list(args.repositories),
        cache=cache,
    )


def build_command(args: BuildArgs) -> None:
    """Build a script into a jar, reusing an earlier build when possible.

    Examples:
        jarbang build hello.java             # Build (or reuse) hello.java's jar
        jarbang build --fresh hello.java     # Always rebuild
        jarbang build -n hello.java          # Also build a native image
        jarbang build -j 17+ hello.java      # Build for Java 17 or later
        jarbang build https://example.com/hello.java
    """
    try:
        settings = Settings()
        cache = Cache()
        ctx = create_context(args, settings, cache)
        src = prepare_source(args.script, property_replacer(ctx.properties), cache)

        orchestrator = BuildOrchestrator()
        result = orchestrator.build_if_needed(src, ctx)

        jar = result.jar_file
        ErrorFormatter.print_success(f"Jar: {jar}")
        main_class = ctx.get_main_class_or(result)
        if main_class:
            print(f"Main class: {main_class}", file=sys.stderr)
        if ctx.native_image:
            print(f"Native image: {image_name(jar)}", file=sys.stderr)
        print(jar)
        sys.exit(0)

    except JarbangError as e:
        ErrorFormatter.handle_jarbang_error("Build failed!", e, args.verbose)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def source_info(src: Source) -> Dict[str, Any]:
    """Collect what jarbang knows about a source, for display."""
    info: Dict[str, Any] = {
        "originalResource": src.resource_ref.original_resource,
        "backingResource": str(src.resource_ref.file) if src.resource_ref.file else None,
        "applicationJar": str(src.jar_file) if src.jar_file else None,
        "dependencies": src.all_dependencies,
        "repositories": [{"id": r.id, "url": r.url} for r in src.all_repositories],
        "javaVersion": src.java_version,
        "runtimeOptions": src.runtime_options,
        "description": src.description,
        "gav": src.gav,
        "cds": src.enable_cds,
    }
    if isinstance(src, ScriptSource):
        info["sources"] = [str(s.resource_ref) for s in src.all_sources]
        info["files"] = [
            {"source": str(f.source), "target": str(f.target) if f.target else None}
            for f in src.all_files
        ]
        info["compileOptions"] = src.compile_options
        info["agentOptions"] = [str(kv) for kv in src.all_agent_options]
    if isinstance(src, JarSource):
        info["mainClass"] = src.main_class
    return info


def info_command(args: InfoArgs) -> None:
    """Print the directives of a script graph as JSON.

    Examples:
        jarbang info hello.java
    """
    try:
        src = prepare_source(args.script, property_replacer(args.properties))
        print(json.dumps(source_info(src), indent=2))
        sys.exit(0)

    except JarbangError as e:
        ErrorFormatter.handle_jarbang_error("Could not read script", e, args.verbose)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jarbang",
        description="jarbang - Build self-contained Java scripts into runnable jars",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jarbang {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build a script into a jar",
    )
    build_parser.add_argument(
        "script",
        help="Script file, URL, jar or '-' for standard input",
    )
    build_parser.add_argument(
        "--fresh",
        action="store_true",
        help="Rebuild even if an up-to-date jar exists",
    )
    build_parser.add_argument(
        "-n",
        "--native",
        action="store_true",
        default=None,
        help="Build a native image with native-image",
    )
    build_parser.add_argument(
        "-m",
        "--main",
        default=None,
        help="Main class to use instead of searching for one",
    )
    build_parser.add_argument(
        "-j",
        "--java",
        type=java_version_arg,
        default=None,
        help="JDK version to build for (e.g. 11, 17+)",
    )
    build_parser.add_argument(
        "-R",
        "--java-options",
        action="append",
        default=[],
        metavar="OPTIONS",
        help=(
            "Runtime options recorded in the jar, attached to the flag since they start "
            "with a dash: -R=-Xmx1g or --java-options='-Xmx1g -Dx=1' (repeatable)"
        ),
    )
    build_parser.add_argument(
        "-s",
        "--sources",
        action="append",
        default=[],
        help="Additional source to compile (repeatable)",
    )
    build_parser.add_argument(
        "--deps",
        action="append",
        default=[],
        help="Additional dependency coordinate (repeatable)",
    )
    build_parser.add_argument(
        "--repos",
        action="append",
        default=[],
        help="Additional repository, as [name=]url or alias (repeatable)",
    )
    build_parser.add_argument(
        "-D",
        dest="properties",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Property for ${...} substitution in directives (repeatable)",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Info command
    info_parser = subparsers.add_parser(
        "info",
        help="Print what a script declares, as JSON",
    )
    info_parser.add_argument(
        "script",
        help="Script file, URL, jar or '-' for standard input",
    )
    info_parser.add_argument(
        "-D",
        dest="properties",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Property for ${...} substitution in directives (repeatable)",
    )
    info_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(parsed_args.verbose)
    ScriptValidator.validate_script(parsed_args.script)

    # Execute command
    if parsed_args.command == "build":
        build_args = BuildArgs(
            script=parsed_args.script,
            fresh=parsed_args.fresh,
            native=parsed_args.native,
            main=parsed_args.main,
            java=parsed_args.java,
            java_options=parsed_args.java_options,
            sources=parsed_args.sources,
            dependencies=parsed_args.deps,
            repositories=parsed_args.repos,
            properties=parse_properties(parsed_args.properties),
            verbose=parsed_args.verbose,
        )
        build_command(build_args)
    elif parsed_args.command == "info":
        info_args = InfoArgs(
            script=parsed_args.script,
            properties=parse_properties(parsed_args.properties),
            verbose=parsed_args.verbose,
        )
        info_command(info_args)


if __name__ == "__main__":
    main()
