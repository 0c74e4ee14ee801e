"""Comment removal.

Removes comments that carry no tooling meaning. Directives for linters,
type checkers, bundlers and coverage tools, plus `=== Section ===`
banners, are kept. Comments are found through the AST, so `//` inside
strings, templates and regex literals is never touched.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from cleaner.audit.base import Issue, RepairableAuditor, RepairResult
from cleaner.audit.parser import COMMENT_TYPES, SourceTree, find_nodes, parse_source, start_line
from cleaner.categories import AuditCategory

PROTECTED_COMMENT_PATTERNS = [
    re.compile(p)
    for p in (
        r"eslint-disable",
        r"eslint-enable",
        r"eslint-ignore",
        r"eslint-env",
        r"\bglobal\s+\w+",
        r"\bglobals\s+\w+",
        r"jshint",
        r"jslint",
        r"prettier-ignore",
        r"webpack",
        r"istanbul",
        r"\bc8\b",
        r"@ts-",
        r"@vite-ignore",
        r"@vitest-environment",
    )
]

SECTION_BANNER = re.compile(r"^\s*=+\s+.+\s+=+\s*$")

PREVIEW_LENGTH = 100


@dataclass(frozen=True)
class CommentSpan:
    """A removable comment."""

    start_byte: int
    end_byte: int
    line: int
    text: str

    @property
    def is_line_comment(self) -> bool:
        return self.text.startswith("//")

    @property
    def preview(self) -> str:
        text = " ".join(self.text.split())
        if len(text) > PREVIEW_LENGTH:
            return text[:PREVIEW_LENGTH] + "..."
        return text


def comment_body(text: str) -> str:
    """Comment text without its delimiters."""
    if text.startswith("//"):
        return text[2:]
    if text.startswith("/*"):
        return text[2:-2]
    if text.startswith("<!--"):
        return text[4:]
    return text


def is_protected_comment(text: str) -> bool:
    body = comment_body(text)
    if SECTION_BANNER.match(body):
        return True
    return any(p.search(body) for p in PROTECTED_COMMENT_PATTERNS)


def find_removable_comments(tree: SourceTree) -> list[CommentSpan]:
    """Comments of a parsed file that are not protected, in document order."""
    spans = []
    for node in find_nodes(tree.root, COMMENT_TYPES):
        text = tree.text(node)
        if is_protected_comment(text):
            continue
        spans.append(CommentSpan(node.start_byte, node.end_byte, start_line(node), text))
    return spans


def normalize_blank_lines(content: str) -> str:
    """Empty whitespace-only lines and collapse runs of blank lines to two."""
    content = re.sub(r"^[ \t]+$", "", content, flags=re.MULTILINE)
    return re.sub(r"\n{4,}", "\n\n\n", content)


def remove_comments(content: str) -> tuple[str, list[CommentSpan]]:
    """Remove every unprotected comment.

    A comment that ends its line takes the whitespace around it on that
    line along.

    Returns:
        New text and the removed comments (the text is unchanged when the
        source does not parse or holds no removable comment)
    """
    tree = parse_source(content)
    if tree is None:
        return content, []

    spans = find_removable_comments(tree)
    if not spans:
        return content, []

    source = bytearray(tree.source)
    for span in reversed(spans):
        start, end = span.start_byte, span.end_byte
        line_end = end
        while line_end < len(source) and source[line_end] in b" \t":
            line_end += 1
        if span.is_line_comment or line_end == len(source) or source[line_end] in b"\r\n":
            while start > 0 and source[start - 1] in b" \t":
                start -= 1
            del source[start:line_end]
            continue

        # keep `a/* x */b` as two tokens
        glued = 0 < start and end < len(source) and not (
            chr(source[start - 1]).isspace() or chr(source[end]).isspace()
        )
        source[start:end] = b" " if glued else b""

    return normalize_blank_lines(source.decode("utf-8")), spans


class CommentsAuditor(RepairableAuditor):
    """Comments that are not tooling directives."""

    name = "Comments"
    category = AuditCategory.COMMENTS
    hint = "Prefer self-explanatory names over comments"

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        tree = parse_source(content)
        if tree is None:
            return []

        return [
            Issue(file=relative_path, message=span.preview, line=span.line, rule="comment")
            for span in find_removable_comments(tree)
        ]

    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        result, removed = remove_comments(content)
        if not removed or result == content:
            return RepairResult.unchanged(content)

        return RepairResult(result=result, fixed=True, fix_count=len(removed))
