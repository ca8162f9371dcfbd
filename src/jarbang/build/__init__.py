"""
Build system components for jarbang.

This module provides the build pipeline for scripts:
- Staleness checks and build orchestration
- Compilation (javac/kotlinc/groovyc)
- Entry-point discovery from compiled classes
- Jar assembly and pom generation
- Integration hooks and native images
- Process argument escaping
"""

from .build_context import BuildContext
from .class_index import ClassFormatError, ClassIndex, ClassInfo, MethodInfo
from .compiler import Compiler, CompilerError
from .escaping import (
    ShellKind,
    detect_shell,
    escape_argument,
    escape_arguments,
    escape_args_file_argument,
    escape_os_arguments,
)
from .integration import (
    IIntegration,
    IntegrationError,
    IntegrationManager,
    IntegrationRequest,
    IntegrationResult,
)
from .jar_creator import create_jar_file, create_manifest
from .main_finder import EntryPoints, find_entry_points
from .native_image import NativeImageBuilder, NativeImageError, image_name
from .orchestrator import BuildOrchestrator, BuildOrchestratorError, StalenessDecision
from .pom_generator import PomGenerator
from .process_runner import ProcessError, ProcessRunner

__all__ = [
    'BuildContext',
    'BuildOrchestrator',
    'BuildOrchestratorError',
    'ClassFormatError',
    'ClassIndex',
    'ClassInfo',
    'Compiler',
    'CompilerError',
    'EntryPoints',
    'IIntegration',
    'IntegrationError',
    'IntegrationManager',
    'IntegrationRequest',
    'IntegrationResult',
    'MethodInfo',
    'NativeImageBuilder',
    'NativeImageError',
    'PomGenerator',
    'ProcessError',
    'ProcessRunner',
    'ShellKind',
    'StalenessDecision',
    'create_jar_file',
    'create_manifest',
    'detect_shell',
    'escape_argument',
    'escape_arguments',
    'escape_args_file_argument',
    'escape_os_arguments',
    'find_entry_points',
    'image_name',
]
