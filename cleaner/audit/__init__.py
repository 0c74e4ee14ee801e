"""Audit framework for source health checks.

- Parser: tree-sitter JavaScript parsing helpers
- Exclusions: built-in and configured path exclusions per category
- Scanner: source file discovery
- Base: the auditor contract and its result types

The registry, orchestrator and reporter import the concrete auditors and
are imported from their own modules.
"""

from .parser import (
    JavaScriptParser,
    SourceTree,
    find_nodes,
    parse_source,
)
from .exclusions import (
    ExclusionMatcher,
    ExclusionRule,
    ExclusionRules,
    RuleKind,
    builtin_rules,
)
from .scanner import (
    find_source_files,
    relative_posix,
)
from .base import (
    AuditOptions,
    AuditResult,
    Auditor,
    FileIssues,
    FixResult,
    Issue,
    RepairableAuditor,
    RepairResult,
    auditor_key,
)

__all__ = [
    # Parser
    "JavaScriptParser",
    "SourceTree",
    "find_nodes",
    "parse_source",
    # Exclusions
    "ExclusionMatcher",
    "ExclusionRule",
    "ExclusionRules",
    "RuleKind",
    "builtin_rules",
    # Scanner
    "find_source_files",
    "relative_posix",
    # Base
    "AuditOptions",
    "AuditResult",
    "Auditor",
    "FileIssues",
    "FixResult",
    "Issue",
    "RepairableAuditor",
    "RepairResult",
    "auditor_key",
]
