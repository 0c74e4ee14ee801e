"""Audit categories.

Every auditor belongs to exactly one category. Exclusion rules and
configuration sections are keyed by category.
"""

from enum import Enum


class AuditCategory(str, Enum):
    """Categories of auditors."""

    WHITESPACE = "whitespace"
    COMMENTS = "comments"
    IMPORTS = "imports"
    ESLINT = "eslint"
    COVERAGE = "coverage"
    DOCS = "docs"
    FILESCORE = "filescore"
