"""Exclusion matching.

Decides whether a file (path relative to the scan root, posix separators)
is in scope for an auditor category. Every category has a built-in
rule-set; the project configuration can add `excludeDirs` and
`excludeFiles` globs per category.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from cleaner.categories import AuditCategory
from cleaner.config import CleanerConfig


class RuleKind(str, Enum):
    """How an exclusion rule matches a path."""

    LITERAL = "literal"
    PATTERN = "pattern"


@dataclass(frozen=True)
class ExclusionRule:
    """A single exclusion rule.

    A literal rule matches a path equal to the literal or ending with
    `/` + literal. A pattern rule is a regular expression searched in the path.
    """

    kind: RuleKind
    value: str

    def matches(self, relative_path: str) -> bool:
        match self.kind:
            case RuleKind.LITERAL:
                return relative_path == self.value or relative_path.endswith("/" + self.value)
            case RuleKind.PATTERN:
                return re.search(self.value, relative_path) is not None


def literal(value: str) -> ExclusionRule:
    return ExclusionRule(RuleKind.LITERAL, value)


def pattern(regex: str) -> ExclusionRule:
    return ExclusionRule(RuleKind.PATTERN, regex)


@dataclass(frozen=True)
class ExclusionRules:
    """The rule-set of one category."""

    rules: tuple[ExclusionRule, ...] = field(default_factory=tuple)

    def matches(self, relative_path: str) -> bool:
        return any(rule.matches(relative_path) for rule in self.rules)

    def __add__(self, other: "ExclusionRules") -> "ExclusionRules":
        return ExclusionRules(self.rules + other.rules)


TEST_FILES = pattern(r"\.test\.js$")
DOC_FILES = pattern(r"\.doc\.js$")
GUIDE_FILES = pattern(r"\.guide\.js$")

DEFAULT_RULES = ExclusionRules((pattern(r"\.min\.js$"),))


def builtin_rules(category: AuditCategory) -> ExclusionRules:
    """Built-in rule-set for a category.

    Raises:
        ValueError: If the category is not an AuditCategory member
    """
    match category:
        case AuditCategory.WHITESPACE | AuditCategory.IMPORTS | AuditCategory.ESLINT | AuditCategory.DOCS:
            return DEFAULT_RULES
        case AuditCategory.COMMENTS:
            return DEFAULT_RULES + ExclusionRules((TEST_FILES,))
        case AuditCategory.COVERAGE:
            return DEFAULT_RULES + ExclusionRules((
                TEST_FILES,
                DOC_FILES,
                GUIDE_FILES,
                pattern(r"^scripts/"),
                pattern(r"^examples/"),
                pattern(r"^doc/"),
            ))
        case AuditCategory.FILESCORE:
            return DEFAULT_RULES + ExclusionRules((
                TEST_FILES,
                DOC_FILES,
                GUIDE_FILES,
                pattern(r"^scripts/"),
            ))
        case _:
            raise ValueError(f"Unknown audit category: {category!r}")


def _glob_to_regex(glob: str) -> str:
    """Translate a glob into a regex fragment (`**` any depth, `*` one segment)."""
    parts = []
    i = 0
    while i < len(glob):
        char = glob[i]
        if glob.startswith("**/", i):
            parts.append("(.*/)?")
            i += 3
            continue
        if glob.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


def dir_rule(glob: str) -> ExclusionRule:
    """Rule excluding every file below a configured directory."""
    glob = glob.strip().rstrip("/")
    if glob.startswith("**/"):
        return pattern(r"(^|/)" + _glob_to_regex(glob[3:]) + "/")
    if "*" in glob or "?" in glob:
        return pattern("^" + _glob_to_regex(glob) + "/")
    return pattern("^" + re.escape(glob) + "/")


def file_rule(glob: str) -> ExclusionRule:
    """Rule excluding a configured file."""
    glob = glob.strip()
    if glob.startswith("**/"):
        return pattern(r"(^|/)" + _glob_to_regex(glob[3:]) + "$")
    if "*" in glob or "?" in glob:
        return pattern("^" + _glob_to_regex(glob) + "$")
    return literal(glob)


class ExclusionMatcher:
    """Combines built-in and configured rules for every category."""

    def __init__(self, config: CleanerConfig | None = None):
        config = config or CleanerConfig()
        self._rules: dict[AuditCategory, ExclusionRules] = {}

        for category in AuditCategory:
            section = config.for_category(category)
            configured = tuple(dir_rule(d) for d in section.exclude_dirs) + tuple(
                file_rule(f) for f in section.exclude_files
            )
            self._rules[category] = builtin_rules(category) + ExclusionRules(configured)

    def is_excluded(self, category: AuditCategory, relative_path: str) -> bool:
        """Check whether a path is out of scope for a category."""
        return self._rules[category].matches(relative_path)
