"""Whitespace and structure canonicalizer.

Enforces a fixed blank-line grammar derived from the AST:
- 2 blank lines after the last import
- 2 blank lines between adjacent top-level functions/classes
- 1 blank line after a class opening brace and before its closing brace
- 2 blank lines between methods, 1 between a property and a method

Also strips trailing whitespace and normalizes the file to end with
exactly one newline. Unparsable input is left untouched.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, NamedTuple

from tree_sitter import Node

from cleaner.audit.base import Issue, RepairableAuditor, RepairResult
from cleaner.audit.parser import FUNCTION_VALUE_TYPES, end_line, is_comment, parse_source
from cleaner.categories import AuditCategory


class ElementKind(str, Enum):
    """Classification of a top-level statement."""

    IMPORT = "import"
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    OTHER = "other"


class MemberKind(str, Enum):
    """Classification of a class member."""

    METHOD = "method"
    PROPERTY = "property"
    OTHER = "other"


class GapContext(str, Enum):
    """Structural context of a blank-line gap."""

    AFTER_IMPORTS = "after imports"
    BETWEEN_DECLARATIONS = "between declarations"
    AFTER_CLASS_OPENING = "after class opening"
    BEFORE_CLASS_CLOSING = "before class closing"
    BETWEEN_METHODS = "between methods"
    BETWEEN_PROPERTY_AND_METHOD = "between property and method"


EXPECTED_GAPS: dict[GapContext, int] = {
    GapContext.AFTER_IMPORTS: 2,
    GapContext.BETWEEN_DECLARATIONS: 2,
    GapContext.AFTER_CLASS_OPENING: 1,
    GapContext.BEFORE_CLASS_CLOSING: 1,
    GapContext.BETWEEN_METHODS: 2,
    GapContext.BETWEEN_PROPERTY_AND_METHOD: 1,
}

DECLARATION_KINDS = frozenset({ElementKind.FUNCTION, ElementKind.CLASS})


@dataclass
class Position:
    """Line span (1-based, inclusive) of a top-level element."""

    kind: ElementKind
    start: int
    end: int


@dataclass
class MemberPosition:
    """Line span of a class member."""

    kind: MemberKind
    start: int
    end: int

    @property
    def is_method(self) -> bool:
        return self.kind == MemberKind.METHOD

    @property
    def is_property(self) -> bool:
        return self.kind == MemberKind.PROPERTY


@dataclass
class ClassPosition(Position):
    """A top-level class, with its body braces and members."""

    body_start: int = 0
    body_end: int = 0
    members: list[MemberPosition] = field(default_factory=list)


@dataclass
class StructurePositions:
    """Positions collected from one parse."""

    imports: list[Position] = field(default_factory=list)
    top_level: list[Position] = field(default_factory=list)
    classes: list[ClassPosition] = field(default_factory=list)


@dataclass(frozen=True)
class GapAdjustment:
    """A required change to the number of blank lines between two lines."""

    after_line: int
    before_line: int
    current_gap: int
    context: GapContext
    detail: str = ""

    @property
    def expected_gap(self) -> int:
        return EXPECTED_GAPS[self.context]

    @property
    def label(self) -> str:
        return self.detail or self.context.value

    def __str__(self) -> str:
        return f"line breaks {self.label}: {self.current_gap} → {self.expected_gap}"


class TextFix(NamedTuple):
    result: str
    modified: bool


class ProcessedContent(NamedTuple):
    result: str
    modified: bool
    issues: list[str]
    adjustments: list[GapAdjustment]


def fix_trailing_whitespace(content: str) -> TextFix:
    """Strip whitespace at the end of every line."""
    lines = content.split("\n")
    fixed = [line.rstrip() for line in lines]
    return TextFix("\n".join(fixed), fixed != lines)


def fix_eof_newline(content: str) -> TextFix:
    """Make the text end with exactly one newline."""
    result = content.rstrip("\n") + "\n"
    return TextFix(result, result != content)


def _significant_children(node: Node) -> Iterator[tuple[Node, int]]:
    """Named children that are not comments, each with its 1-based start line.

    A comment block directly above an element (no blank line in between)
    belongs to that element, so the start line moves up to the comment.
    Comments trailing on an element's last line are ignored.
    """
    block_start = block_end = None
    previous_end = None

    for child in node.named_children:
        if child.type == "hash_bang_line":
            continue

        if is_comment(child):
            row = child.start_point[0]
            if previous_end is not None and row == previous_end:
                continue
            if block_end is not None and row <= block_end + 1:
                block_end = child.end_point[0]
            else:
                block_start, block_end = row, child.end_point[0]
            continue

        start = child.start_point[0]
        if block_start is not None and start <= block_end + 1:
            start = block_start
        block_start = block_end = None
        previous_end = child.end_point[0]

        yield child, start + 1


def _declaration_kind(node: Node) -> ElementKind:
    match node.type:
        case "function_declaration" | "generator_function_declaration":
            return ElementKind.FUNCTION
        case "class_declaration" | "class":
            return ElementKind.CLASS
        case "lexical_declaration" | "variable_declaration":
            declarator = next(
                (c for c in node.named_children if c.type == "variable_declarator"), None
            )
            value = declarator.child_by_field_name("value") if declarator else None
            if value is not None and value.type in FUNCTION_VALUE_TYPES:
                return ElementKind.FUNCTION
            return ElementKind.VARIABLE
        case "function" | "function_expression" | "generator_function":
            # anonymous `export default function () {}`
            return ElementKind.FUNCTION
        case _:
            return ElementKind.OTHER


def _member_kind(node: Node) -> MemberKind:
    match node.type:
        case "method_definition":
            return MemberKind.METHOD
        case "field_definition" | "public_field_definition":
            return MemberKind.PROPERTY
        case _:
            return MemberKind.OTHER


def _class_position(class_node: Node, start: int, end: int) -> ClassPosition:
    body = class_node.child_by_field_name("body")
    position = ClassPosition(
        kind=ElementKind.CLASS,
        start=start,
        end=end,
        body_start=body.start_point[0] + 1,
        body_end=body.end_point[0] + 1,
    )
    for member, member_start in _significant_children(body):
        position.members.append(MemberPosition(_member_kind(member), member_start, end_line(member)))
    return position


def collect_positions(root: Node) -> StructurePositions:
    """Classify every top-level statement of a parsed program."""
    positions = StructurePositions()

    for node, start in _significant_children(root):
        end = end_line(node)

        if node.type == "import_statement":
            positions.imports.append(Position(ElementKind.IMPORT, start, end))
            continue

        declaration = node
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration") or node.child_by_field_name("value")
            if declaration is None:
                if node.child_by_field_name("source") is None:
                    # `export { a, b }` carries no declaration
                    continue
                declaration = node

        kind = _declaration_kind(declaration)
        if kind == ElementKind.CLASS:
            position = _class_position(declaration, start, end)
            positions.classes.append(position)
            positions.top_level.append(position)
        else:
            positions.top_level.append(Position(kind, start, end))

    return positions


def _gap_adjustment(
    lines: list[str],
    after_line: int,
    before_line: int,
    context: GapContext,
    detail: str = "",
) -> GapAdjustment | None:
    """Adjustment for a gap, or None when it is correct or not safely rewritable.

    Elements sharing a line, and regions holding anything but blank lines,
    are left alone.
    """
    gap = before_line - after_line - 1
    if gap < 0 or gap == EXPECTED_GAPS[context]:
        return None
    if any(lines[i].strip() for i in range(after_line, before_line - 1)):
        return None
    return GapAdjustment(after_line, before_line, gap, context, detail)


def _member_context(current: MemberPosition, following: MemberPosition) -> GapContext | None:
    if current.is_method and following.is_method:
        return GapContext.BETWEEN_METHODS
    if current.is_property != following.is_property and (current.is_method or following.is_method):
        return GapContext.BETWEEN_PROPERTY_AND_METHOD
    return None


def _class_adjustments(lines: list[str], position: ClassPosition) -> list[GapAdjustment]:
    if not position.members:
        return []

    candidates = [
        _gap_adjustment(
            lines, position.body_start, position.members[0].start, GapContext.AFTER_CLASS_OPENING
        ),
        _gap_adjustment(
            lines, position.members[-1].end, position.body_end, GapContext.BEFORE_CLASS_CLOSING
        ),
    ]

    for current, following in zip(position.members, position.members[1:]):
        context = _member_context(current, following)
        if context is not None:
            candidates.append(_gap_adjustment(lines, current.end, following.start, context))

    return [c for c in candidates if c is not None]


def analyze_line_breaks(content: str) -> list[GapAdjustment]:
    """Compute every blank-line adjustment the text needs.

    Args:
        content: JavaScript source

    Returns:
        Adjustments (empty when the text is canonical or does not parse)
    """
    tree = parse_source(content)
    if tree is None:
        return []

    positions = collect_positions(tree.root)
    lines = content.split("\n")
    candidates: list[GapAdjustment | None] = []

    # Step 1: imports
    if positions.imports:
        last_import = positions.imports[-1]
        following = next((p for p in positions.top_level if p.start > last_import.end), None)
        if following is not None:
            candidates.append(
                _gap_adjustment(lines, last_import.end, following.start, GapContext.AFTER_IMPORTS)
            )

    # Step 2: top-level declarations
    for current, following in zip(positions.top_level, positions.top_level[1:]):
        if current.kind in DECLARATION_KINDS and following.kind in DECLARATION_KINDS:
            candidates.append(
                _gap_adjustment(
                    lines,
                    current.end,
                    following.start,
                    GapContext.BETWEEN_DECLARATIONS,
                    detail=f"between {current.kind.value} and {following.kind.value}",
                )
            )

    # Step 3: class bodies
    for position in positions.classes:
        candidates.extend(_class_adjustments(lines, position))

    return [c for c in candidates if c is not None]


def fix_line_breaks(content: str, adjustments: list[GapAdjustment]) -> TextFix:
    """Apply adjustments bottom-up so pending line numbers stay valid."""
    if not adjustments:
        return TextFix(content, False)

    lines = content.split("\n")

    for adjustment in sorted(adjustments, key=lambda a: a.after_line, reverse=True):
        start = adjustment.after_line
        end = adjustment.before_line - 1
        if end < start or any(line.strip() for line in lines[start:end]):
            continue
        lines[start:end] = [""] * adjustment.expected_gap

    result = "\n".join(lines)
    return TextFix(result, result != content)


def process_content(content: str) -> ProcessedContent:
    """Run every whitespace fix on a file's text.

    Returns:
        The canonical text, whether it changed, one issue string per fix,
        and the blank-line adjustments that were applied
    """
    if parse_source(content) is None:
        return ProcessedContent(content, False, [], [])

    issues = []
    result = content

    trailing = fix_trailing_whitespace(result)
    if trailing.modified:
        result = trailing.result
        issues.append("trailing whitespace")

    eof = fix_eof_newline(result)
    if eof.modified:
        result = eof.result
        issues.append("EOF newline")

    adjustments = analyze_line_breaks(result)
    if adjustments:
        result = fix_line_breaks(result, adjustments).result
        issues.extend(str(adjustment) for adjustment in adjustments)

    return ProcessedContent(result, result != content, issues, adjustments)


class WhitespaceAuditor(RepairableAuditor):
    """Trailing whitespace, EOF newline and structural blank lines."""

    name = "Whitespace"
    category = AuditCategory.WHITESPACE

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        processed = process_content(content)
        textual = len(processed.issues) - len(processed.adjustments)
        lines = [None] * textual + [a.after_line for a in processed.adjustments]

        return [
            Issue(file=relative_path, message=text, line=line, rule="whitespace")
            for text, line in zip(processed.issues, lines)
        ]

    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        processed = process_content(content)
        if not processed.modified:
            return RepairResult.unchanged(content)

        return RepairResult(
            result=processed.result,
            fixed=True,
            fix_count=len(processed.issues),
        )
