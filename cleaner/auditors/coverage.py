"""Coverage auditors: unused files and untested exports."""

import re
from pathlib import Path

from tree_sitter import Node

from cleaner.audit.base import AuditResult, Auditor, FileIssues, Issue
from cleaner.audit.parser import SourceTree, parse_source
from cleaner.categories import AuditCategory
from cleaner.graph.imports import build_import_graph

LIFECYCLE_METHODS = frozenset({
    "onInstall",
    "onUninstall",
    "onStart",
    "onStop",
    "onDispose",
    "connectedCallback",
    "disconnectedCallback",
    "attributeChangedCallback",
    "adoptedCallback",
    "update",
    "render",
    "onUpdate",
    "onRender",
    "buildDOM",
    "onModuleSet",
    "renderNodeContent",
    "updateChildren",
})


class ImportUsageAuditor(Auditor):
    """Ranks source files by how many times they are imported."""

    name = "Import Usage"
    category = AuditCategory.COVERAGE
    hint = "Files ranked by how many times they are imported (0 = unused)"

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        # Usage is a property of the whole tree, see audit().
        return []

    def audit(self) -> AuditResult:
        graph = build_import_graph(self.root_dir, self.matcher, self.settings)
        ranked = graph.ranked()
        unused = graph.unused()

        result = AuditResult(
            auditor=self.name,
            category=self.category,
            files_scanned=len(ranked),
            hint=self.hint,
        )
        result.files = [
            FileIssues(file=path, issues=[Issue(file=path, message="not imported anywhere", rule="unused")])
            for path in unused
        ]
        result.extra = {
            "total_files": len(ranked),
            "unused_files": len(unused),
            "counts": ranked,
        }

        self._logger.info("Import usage computed", files=len(ranked), unused=len(unused))
        return result


def _has_token(node: Node, tokens: set[str]) -> bool:
    return any(not child.is_named and child.type in tokens for child in node.children)


def public_methods(tree: SourceTree, class_node: Node) -> list[str]:
    """Names of a class's public instance methods (no constructor or accessors)."""
    body = class_node.child_by_field_name("body")
    methods = []
    for member in body.named_children:
        if member.type != "method_definition":
            continue
        name = member.child_by_field_name("name")
        if name is None or name.type != "property_identifier":
            continue
        if _has_token(member, {"static", "get", "set"}):
            continue
        text = tree.text(name)
        if text != "constructor":
            methods.append(text)
    return methods


def extract_exports(content: str) -> list[str]:
    """Exported functions and bindings, plus exported classes with their public methods.

    Unparsable text exports nothing.
    """
    tree = parse_source(content)
    if tree is None:
        return []

    names = []
    for node in tree.root.named_children:
        if node.type != "export_statement":
            continue
        declaration = node.child_by_field_name("declaration")
        if declaration is None:
            continue

        match declaration.type:
            case "function_declaration" | "generator_function_declaration":
                names.append(tree.text(declaration.child_by_field_name("name")))
            case "lexical_declaration" | "variable_declaration":
                for declarator in declaration.named_children:
                    if declarator.type != "variable_declarator":
                        continue
                    name = declarator.child_by_field_name("name")
                    if name is not None and name.type == "identifier":
                        names.append(tree.text(name))
            case "class_declaration":
                names.append(tree.text(declaration.child_by_field_name("name")))
                names.extend(public_methods(tree, declaration))

    return names


def is_referenced(name: str, test_content: str) -> bool:
    escaped = re.escape(name)
    patterns = (rf"\b{escaped}\b", rf"['\"]{escaped}['\"]", rf"\.{escaped}\b")
    return any(re.search(p, test_content) for p in patterns)


def find_untested(exports: list[str], test_content: str) -> list[str]:
    """Exports never referenced by a test file (lifecycle hooks exempt)."""
    return [
        name for name in exports
        if name not in LIFECYCLE_METHODS and not is_referenced(name, test_content)
    ]


class MissingCoverageAuditor(Auditor):
    """Exports and methods never referenced in the sibling test file."""

    name = "Missing Coverage"
    category = AuditCategory.COVERAGE
    hint = "Exports/methods not referenced in corresponding test file"

    def test_file_for(self, absolute_path: Path) -> Path:
        extension = self.settings.source_extension
        return absolute_path.with_name(absolute_path.name[: -len(extension)] + ".test" + extension)

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        test_file = self.test_file_for(absolute_path)
        if not test_file.is_file():
            return []

        exports = extract_exports(content)
        if not exports:
            return []

        try:
            test_content = test_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._logger.warning("Failed to read test file", path=str(test_file), error=str(e))
            return []

        return [
            Issue(file=relative_path, message=name, rule="untested")
            for name in find_untested(exports, test_content)
        ]
