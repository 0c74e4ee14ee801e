"""Import graph resolution."""

from .imports import (
    DiskProbe,
    FileProbe,
    ImportGraph,
    build_import_graph,
    extract_import_specifiers,
    resolve_relative_import,
)

__all__ = [
    "DiskProbe",
    "FileProbe",
    "ImportGraph",
    "build_import_graph",
    "extract_import_specifiers",
    "resolve_relative_import",
]
