"""Entry-point discovery in compiled output.

Scans a directory of ``.class`` files for classes the source's dialect
considers runnable. Nested and synthetic classes (``Outer$Inner.class``)
are never candidates. Files are indexed in sorted path order so the same
output always yields the same choice.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .class_index import ClassIndex, ClassInfo

logger = logging.getLogger(__name__)

INSTRUMENTATION_TYPE = "Ljava/lang/instrument/Instrumentation;"
STRING_TYPE = "Ljava/lang/String;"


@dataclass
class EntryPoints:
    """Entry points found in compiled output."""

    main_class: Optional[str] = None
    agent_main_class: Optional[str] = None
    pre_main_class: Optional[str] = None


def index_classes(classes_dir: Path) -> ClassIndex:
    """Index every non-nested class file below a directory."""
    index = ClassIndex()
    for path in sorted(classes_dir.rglob("*.class")):
        if path.is_file() and "$" not in path.name:
            index.index_file(path)
    return index


def is_agent_lifecycle(name: str) -> Callable[[ClassInfo], bool]:
    """Predicate for a class with an ``agentmain``/``premain`` method.

    The method may take ``(String, Instrumentation)`` or just ``(String)``.
    """
    return lambda ci: (
        ci.method(name, STRING_TYPE, INSTRUMENTATION_TYPE) is not None
        or ci.method(name, STRING_TYPE) is not None
    )


def select_main_class(
    candidates: List[ClassInfo],
    suggested_main: Optional[str]
) -> Optional[str]:
    """Pick the main class among candidates.

    With several candidates, the one whose simple name equals the suggested
    name wins. If that doesn't narrow it to one class, the first candidate
    is used and a warning lists them all.

    Args:
        candidates: Runnable classes, in index order
        suggested_main: Class name derived from the script's file name

    Returns:
        Fully qualified class name, or None without candidates
    """
    if not candidates:
        return None
    if len(candidates) > 1 and suggested_main:
        suggested = [ci for ci in candidates if ci.simple_name == suggested_main]
        if len(suggested) == 1:
            candidates = suggested
    if len(candidates) > 1:
        logger.warning(
            "Could not locate unique main() method. Use -m to specify explicit main method. Found "
            + f"{len(candidates)} candidates: "
            + ", ".join(ci.name for ci in candidates)
            + f". Using {candidates[0].name}"
        )
    return candidates[0].name


def find_entry_points(
    classes_dir: Path,
    main_finder: Callable[[ClassInfo], bool],
    suggested_main: Optional[str] = None,
    is_agent: bool = False
) -> EntryPoints:
    """Search compiled output for entry points.

    Args:
        classes_dir: Compiler output directory
        main_finder: Dialect predicate for runnable classes
        suggested_main: Preferred class simple name
        is_agent: Also look for agent lifecycle classes

    Returns:
        EntryPoints; any of them may be None

    Raises:
        ClassFormatError: If a class file cannot be parsed
    """
    classes = index_classes(classes_dir).known_classes
    found = EntryPoints()
    found.main_class = select_main_class([ci for ci in classes if main_finder(ci)], suggested_main)

    if is_agent:
        agent_main = is_agent_lifecycle("agentmain")
        pre_main = is_agent_lifecycle("premain")
        found.agent_main_class = next((ci.name for ci in classes if agent_main(ci)), None)
        found.pre_main_class = next((ci.name for ci in classes if pre_main(ci)), None)

    logger.debug(f"Entry points in {classes_dir}: {found}")
    return found
