"""JavaScript AST provider built on tree-sitter.

Parses source text into a SourceTree with byte and line positions. Text
that does not parse cleanly yields None instead of a tree, so callers
degrade to "no issues" rather than crashing a run.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import structlog
from tree_sitter import Node, Tree

logger = structlog.get_logger()

COMMENT_TYPES = frozenset({"comment", "html_comment"})

# tree-sitter-javascript renamed `function` to `function_expression` in 0.21
FUNCTION_VALUE_TYPES = frozenset(
    {"arrow_function", "function", "function_expression", "generator_function"}
)


@dataclass
class SourceTree:
    """A parsed file: the tree-sitter tree plus the bytes it was built from."""

    tree: Tree
    source: bytes

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        """Get the source text covered by a node."""
        return self.source[node.start_byte:node.end_byte].decode("utf-8")


class JavaScriptParser:
    """Parses JavaScript source using tree-sitter."""

    def __init__(self):
        self._logger = logger.bind(component="JavaScriptParser")
        self._parser = None
        self._language = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        """Lazy initialization of tree-sitter."""
        if self._initialized:
            return

        try:
            import tree_sitter_javascript as tsjavascript
            from tree_sitter import Language, Parser

            self._language = Language(tsjavascript.language())
            self._parser = Parser(self._language)
            self._initialized = True
            self._logger.debug("Tree-sitter initialized")
        except Exception as e:
            self._logger.error("Failed to initialize tree-sitter", error=str(e))
            raise RuntimeError(f"tree-sitter initialization failed: {e}") from e

    def parse(self, code: str) -> SourceTree | None:
        """Parse source text.

        Args:
            code: JavaScript source

        Returns:
            SourceTree, or None when the text contains syntax errors
        """
        self._ensure_initialized()

        source = code.encode("utf-8")
        tree = self._parser.parse(source)

        if tree.root_node.has_error:
            self._logger.debug("Source did not parse cleanly")
            return None

        return SourceTree(tree=tree, source=source)


_default_parser = JavaScriptParser()


def parse_source(code: str) -> SourceTree | None:
    """Parse source text with the shared parser."""
    return _default_parser.parse(code)


def start_line(node: Node) -> int:
    """1-based line on which a node starts."""
    return node.start_point[0] + 1


def end_line(node: Node) -> int:
    """1-based line on which a node ends."""
    return node.end_point[0] + 1


def walk(root: Node) -> Iterator[Node]:
    """Iterate over a node and all of its descendants in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_nodes(root: Node, node_types: str | Iterable[str]) -> list[Node]:
    """Find all descendants of the given type(s)."""
    if isinstance(node_types, str):
        node_types = {node_types}
    else:
        node_types = set(node_types)

    return [node for node in walk(root) if node.type in node_types]


def string_value(tree: SourceTree, node: Node) -> str | None:
    """Literal value of a `string` node (quotes stripped), or None for other nodes."""
    if node is None or node.type != "string":
        return None
    return tree.text(node)[1:-1]


def is_comment(node: Node) -> bool:
    return node.type in COMMENT_TYPES
