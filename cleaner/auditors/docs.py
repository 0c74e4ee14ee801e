"""Documentation link checking.

Doc and guide files link to other pages with `see('Name', {type: 'guide'})`
calls and inline `[[Name:type#section]]` references. Links are validated
against the docs index (a JSON file listing `docs` and `guides`).
"""

import json
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from cleaner.audit.base import Auditor, Issue
from cleaner.categories import AuditCategory

logger = structlog.get_logger()

DOC_SUFFIXES = (".doc.js", ".guide.js")

SEE_CALL = re.compile(r"""\bsee\s*\(\s*['"]([^'"]+)['"]\s*(?:,\s*\{([^}]*)\})?\s*\)""")
SEE_TYPE = re.compile(r"""type\s*:\s*['"]([^'"]+)['"]""")
INLINE_LINK = re.compile(
    r"\[\[([A-Za-z][A-Za-z0-9]*(?:@[a-z]+)?(?::[a-z]+)?(?:#[A-Za-z][A-Za-z0-9]*)?)\]\]"
)


@dataclass(frozen=True)
class DocLink:
    """A link found in a documentation file."""

    name: str
    type: str
    line: int


@dataclass
class DocTargets:
    """Valid link targets, keyed by lower-cased title, snake_cased title and guide id."""

    docs: set[str] = field(default_factory=set)
    guides: set[str] = field(default_factory=set)

    @classmethod
    def from_index(cls, data: dict[str, Any]) -> "DocTargets":
        targets = cls()
        for item in data.get("docs") or []:
            title = item.get("title", "")
            targets.docs.update({title.lower(), to_snake_case(title)})
        for item in data.get("guides") or []:
            title = item.get("title", "")
            targets.guides.update({title.lower(), to_snake_case(title)})
            if item.get("id"):
                targets.guides.add(item["id"])
        return targets

    def is_valid(self, link: DocLink) -> bool:
        keys = self.guides if link.type == "guide" else self.docs
        return link.name.lower() in keys or to_snake_case(link.name) in keys


def to_snake_case(text: str) -> str:
    text = re.sub(r"([a-z])([A-Z])", r"\1_\2", text)
    text = re.sub(r"([a-z])(\d+[A-Z])$", r"\1_\2", text)
    text = re.sub(r"(\d)([A-Z][a-z])", r"\1_\2", text)
    return text.lower()


def parse_inline_link(ref: str) -> tuple[str, str]:
    """Split `Name@variant:type#section` into (name, type)."""
    ref = ref.split("#", 1)[0]
    ref = ref.split("@", 1)[0]
    name, _, link_type = ref.partition(":")
    return name, link_type or "doc"


def _line_of(content: str, index: int) -> int:
    return content.count("\n", 0, index) + 1


def extract_links(content: str) -> list[DocLink]:
    """Every `see()` and `[[...]]` link, in that order."""
    links = []

    for match in SEE_CALL.finditer(content):
        type_match = SEE_TYPE.search(match.group(2) or "")
        link_type = type_match.group(1) if type_match else "doc"
        links.append(DocLink(match.group(1), link_type, _line_of(content, match.start())))

    for match in INLINE_LINK.finditer(content):
        name, link_type = parse_inline_link(match.group(1))
        links.append(DocLink(name, link_type, _line_of(content, match.start())))

    return links


class BrokenLinksAuditor(Auditor):
    """Documentation links pointing to pages that do not exist."""

    name = "Doc Links"
    category = AuditCategory.DOCS
    hint = "These documentation links point to non-existent targets"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.targets = DocTargets()

    def accepts(self, relative_path: str) -> bool:
        return relative_path.endswith(DOC_SUFFIXES)

    def prepare(self) -> None:
        self._run_discovery()
        self.targets = self._load_targets()

    def _run_discovery(self) -> None:
        command = self.settings.docs_discovery_command
        if not command:
            return
        try:
            subprocess.run(command, cwd=self.root_dir, capture_output=True, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            self._logger.warning("Docs discovery failed", command=command, error=str(e))

    def _load_targets(self) -> DocTargets:
        index_path = self.root_dir / self.settings.docs_index
        if not index_path.is_file():
            self._logger.warning("Docs index not found", path=str(index_path))
            return DocTargets()

        try:
            data = json.loads(index_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._logger.warning("Docs index unreadable", path=str(index_path), error=str(e))
            return DocTargets()

        if not isinstance(data, dict):
            self._logger.warning("Docs index is not an object", path=str(index_path))
            return DocTargets()

        return DocTargets.from_index(data)

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        return [
            Issue(file=relative_path, message=f"{link.name} ({link.type})", line=link.line, rule="doc-link")
            for link in extract_links(content)
            if not self.targets.is_valid(link)
        ]
