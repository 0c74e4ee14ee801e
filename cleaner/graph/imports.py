"""Import graph.

Counts, for every in-scope source file, how many times another analyzable
file imports it through a literal relative specifier. Specifiers are
resolved with the module loader's extension and index-file rules, using
path algebra and existence checks only.
"""

import posixpath
from pathlib import Path
from typing import Callable, Protocol

import structlog

from cleaner.audit.exclusions import ExclusionMatcher
from cleaner.audit.parser import parse_source, string_value
from cleaner.audit.scanner import find_source_files, relative_posix
from cleaner.categories import AuditCategory
from cleaner.config import CleanerSettings

logger = structlog.get_logger()

NON_ANALYZABLE_SUFFIXES = (".test.js", ".doc.js", ".guide.js")


class FileProbe(Protocol):
    """Existence checks on paths relative to the scan root."""

    def is_file(self, relative_path: str) -> bool: ...

    def is_dir(self, relative_path: str) -> bool: ...


class DiskProbe:
    """FileProbe backed by the filesystem."""

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)

    def is_file(self, relative_path: str) -> bool:
        return (self.root_dir / relative_path).is_file()

    def is_dir(self, relative_path: str) -> bool:
        return (self.root_dir / relative_path).is_dir()


def is_relative_specifier(raw_path: str) -> bool:
    return raw_path == "." or raw_path == ".." or raw_path.startswith(("./", "../"))


def resolve_relative_import(
    from_dir: str,
    raw_path: str,
    probe: FileProbe,
    extension: str = ".js",
    index_file: str = "index.js",
) -> str | None:
    """Resolve a relative import specifier to a root-relative path.

    Args:
        from_dir: Root-relative directory of the importing file ("" for the root)
        raw_path: Specifier as written in the import statement
        probe: Existence checks
        extension: Default source extension
        index_file: Directory index file name

    Returns:
        Root-relative posix path, or None for package imports, paths that
        leave the root, and specifiers that resolve to nothing
    """
    if not is_relative_specifier(raw_path):
        return None

    joined = posixpath.normpath(posixpath.join(from_dir, raw_path))
    if joined == ".." or joined.startswith("../"):
        return None

    if joined.endswith(extension):
        return joined

    candidate = f"{joined}{extension}"
    if joined != "." and probe.is_file(candidate):
        return candidate

    if probe.is_dir(joined):
        index = posixpath.normpath(posixpath.join(joined, index_file))
        if probe.is_file(index):
            return index

    return None


def extract_import_specifiers(content: str) -> list[str]:
    """Literal sources of top-level `import` and `export ... from` statements.

    Unparsable text yields no specifiers.
    """
    tree = parse_source(content)
    if tree is None:
        return []

    specifiers = []
    for node in tree.root.named_children:
        if node.type not in ("import_statement", "export_statement"):
            continue
        value = string_value(tree, node.child_by_field_name("source"))
        if value is not None:
            specifiers.append(value)

    return specifiers


class ImportGraph:
    """Import counts for a set of source files.

    Args:
        source_files: Root-relative paths that can be import targets
        analyzable_files: Root-relative paths whose imports are counted
        probe: Existence checks for resolution
        reader: Returns a file's text given its root-relative path, or None
    """

    def __init__(
        self,
        source_files: list[str],
        analyzable_files: list[str],
        probe: FileProbe,
        reader: Callable[[str], str | None],
        extension: str = ".js",
        index_file: str = "index.js",
    ):
        self.source_files = source_files
        self.analyzable_files = analyzable_files
        self.probe = probe
        self.reader = reader
        self.extension = extension
        self.index_file = index_file
        self._counts: dict[str, int] | None = None
        self._logger = logger.bind(component="ImportGraph")

    def build(self) -> dict[str, int]:
        """Build the import count map."""
        counts = {path: 0 for path in self.source_files}
        edges = 0

        for importer in self.analyzable_files:
            content = self.reader(importer)
            if content is None:
                continue

            from_dir = posixpath.dirname(importer)
            for raw_path in extract_import_specifiers(content):
                resolved = resolve_relative_import(
                    from_dir, raw_path, self.probe, self.extension, self.index_file
                )
                if resolved in counts:
                    counts[resolved] += 1
                    edges += 1

        self._logger.debug("Import graph built", files=len(counts), edges=edges)
        self._counts = counts
        return counts

    @property
    def counts(self) -> dict[str, int]:
        if self._counts is None:
            self.build()
        return self._counts

    def count(self, relative_path: str) -> int:
        return self.counts.get(relative_path, 0)

    def ranked(self) -> list[tuple[str, int]]:
        """Files sorted by import count, most imported first."""
        return sorted(self.counts.items(), key=lambda item: (-item[1], item[0]))

    def unused(self) -> list[str]:
        """Files nothing imports."""
        return sorted(path for path, count in self.counts.items() if count == 0)


def build_import_graph(
    root_dir: str | Path,
    matcher: ExclusionMatcher | None = None,
    settings: CleanerSettings | None = None,
) -> ImportGraph:
    """Create an ImportGraph for a project on disk.

    Import targets are the files in scope for the coverage category,
    except root-level ones; importers are every scanned file except tests
    and docs.
    """
    root = Path(root_dir).resolve()
    matcher = matcher or ExclusionMatcher()
    settings = settings or CleanerSettings()

    files = [
        relative_posix(path, root)
        for path in find_source_files(root, settings.source_extension, settings.ignored_dirs)
    ]
    # root-level files are entry points: loaded directly, never imported
    source_files = [
        f for f in files if "/" in f and not matcher.is_excluded(AuditCategory.COVERAGE, f)
    ]
    analyzable_files = [f for f in files if not f.endswith(NON_ANALYZABLE_SUFFIXES)]

    def read(relative_path: str) -> str | None:
        try:
            return (root / relative_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read file", path=relative_path, error=str(e))
            return None

    return ImportGraph(
        source_files,
        analyzable_files,
        DiskProbe(root),
        read,
        extension=settings.source_extension,
        index_file=settings.index_file,
    )
