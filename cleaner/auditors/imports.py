"""Relative import specifiers without a file extension.

Native ES modules need the full file name in relative specifiers. The
repair appends the default extension, or the directory index file when
the specifier names a directory that has one.
"""

import posixpath
from dataclasses import dataclass
from pathlib import Path

from cleaner.audit.base import Issue, RepairableAuditor, RepairResult
from cleaner.audit.parser import SourceTree, find_nodes, parse_source, start_line, string_value
from cleaner.categories import AuditCategory
from cleaner.graph.imports import DiskProbe, FileProbe, is_relative_specifier

KNOWN_EXTENSIONS = (".js", ".mjs", ".json", ".css")


@dataclass(frozen=True)
class Specifier:
    """A relative import specifier with its string node span."""

    value: str
    start_byte: int
    end_byte: int
    line: int


def has_known_extension(specifier: str) -> bool:
    return specifier.endswith(KNOWN_EXTENSIONS)


def names_directory(specifier: str) -> bool:
    return specifier.endswith("/") or posixpath.basename(specifier) in (".", "..")


def find_relative_specifiers(tree: SourceTree) -> list[Specifier]:
    """Relative specifiers of static imports, re-exports and dynamic `import()`."""
    strings = []

    for node in find_nodes(tree.root, ("import_statement", "export_statement")):
        source = node.child_by_field_name("source")
        if source is not None:
            strings.append(source)

    for call in find_nodes(tree.root, "call_expression"):
        function = call.child_by_field_name("function")
        arguments = call.child_by_field_name("arguments")
        if function is None or function.type != "import" or arguments is None:
            continue
        if arguments.named_children and arguments.named_children[0].type == "string":
            strings.append(arguments.named_children[0])

    specifiers = []
    for node in strings:
        value = string_value(tree, node)
        if value is not None and is_relative_specifier(value):
            specifiers.append(Specifier(value, node.start_byte, node.end_byte, start_line(node)))

    return sorted(specifiers, key=lambda s: s.start_byte)


def corrected_specifier(
    from_dir: str,
    specifier: str,
    probe: FileProbe,
    extension: str = ".js",
    index_file: str = "index.js",
) -> str | None:
    """The specifier with its missing file name completed.

    Returns:
        The corrected specifier, or None when it names a directory (`.`,
        `..`, a trailing slash) that has no index file to point at
    """
    target = posixpath.normpath(posixpath.join(from_dir, specifier))
    if probe.is_dir(target) and probe.is_file(posixpath.join(target, index_file)):
        return specifier.rstrip("/") + "/" + index_file
    if names_directory(specifier):
        return None
    return specifier + extension


class ImportsAuditor(RepairableAuditor):
    """Relative imports missing their `.js` extension."""

    name = "Imports"
    category = AuditCategory.IMPORTS

    def __init__(self, *args, probe: FileProbe | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.probe = probe or DiskProbe(self.root_dir)

    def _missing(self, content: str, relative_path: str) -> tuple[SourceTree | None, list[tuple[Specifier, str | None]]]:
        tree = parse_source(content)
        if tree is None:
            return None, []

        from_dir = posixpath.dirname(relative_path)
        missing = []
        for specifier in find_relative_specifiers(tree):
            if has_known_extension(specifier.value):
                continue
            corrected = corrected_specifier(
                from_dir,
                specifier.value,
                self.probe,
                self.settings.source_extension,
                self.settings.index_file,
            )
            missing.append((specifier, corrected))

        return tree, missing

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        _, missing = self._missing(content, relative_path)
        issues = []
        for specifier, corrected in missing:
            if corrected is None:
                message = f"{specifier.value}: directory without {self.settings.index_file}"
            else:
                message = f"{specifier.value} → {corrected}"
            issues.append(Issue(file=relative_path, message=message, line=specifier.line, rule="import-extension"))
        return issues

    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        tree, missing = self._missing(content, relative_path)
        rewritable = [(specifier, corrected) for specifier, corrected in missing if corrected is not None]
        if not rewritable:
            return RepairResult.unchanged(content)

        source = bytearray(tree.source)
        for specifier, corrected in reversed(rewritable):
            # keep the original quote characters
            source[specifier.start_byte + 1:specifier.end_byte - 1] = corrected.encode("utf-8")

        return RepairResult(result=source.decode("utf-8"), fixed=True, fix_count=len(rewritable))
