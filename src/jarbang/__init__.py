"""jarbang - build runnable jars from single annotated Java source files.

A script declares its own dependencies, extra sources, files and JVM options
through ``//`` directives. jarbang compiles the script graph into a cached jar
and reuses that jar for as long as nothing relevant has changed.
"""

__version__ = "0.1.0"
