"""Tests for the auditor contract and the registries."""

from pathlib import Path

import pytest

from cleaner.audit.base import AuditOptions, Auditor, Issue, RepairableAuditor, RepairResult, auditor_key
from cleaner.audit.registry import (
    AUDIT_AUDITORS,
    FIX_AUDITORS,
    AuditorRegistry,
    audit_registry,
    fix_registry,
)
from cleaner.auditors.comments import CommentsAuditor
from cleaner.auditors.imports import ImportsAuditor
from cleaner.auditors.lint import SwitchesAuditor
from cleaner.auditors.whitespace import WhitespaceAuditor
from cleaner.categories import AuditCategory
from cleaner.errors import CapabilityError

MALFORMED_INPUTS = ["function (", "class {", "import { from", "", "\x00\x01"]
TEXT_AUDITORS = [CommentsAuditor, ImportsAuditor, WhitespaceAuditor]


class TodoAuditor(Auditor):
    name = "Todo Markers (Test)"
    category = AuditCategory.COMMENTS

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        return [Issue(file=relative_path, message="TODO") for line in content.splitlines() if "TODO" in line]


class UpperAuditor(RepairableAuditor):
    name = "Upper"
    category = AuditCategory.WHITESPACE

    def analyze(self, content: str, relative_path: str, absolute_path: Path) -> list[Issue]:
        return [] if content == content.upper() else [Issue(file=relative_path, message="lower case")]

    def repair(self, content: str, relative_path: str, absolute_path: Path) -> RepairResult:
        if content == content.upper():
            return RepairResult.unchanged(content)
        return RepairResult(result=content.upper(), fixed=True, fix_count=1)


class TestAuditorKey:
    """Tests for registry keys."""

    @pytest.mark.parametrize(
        ("name", "key"),
        [
            ("Whitespace", "whitespace"),
            ("ESLint Errors", "eslint_errors"),
            ("Todo Markers (Test)", "todo_markers_test"),
        ],
    )
    def test_key(self, name: str, key: str):
        assert auditor_key(name) == key


class TestCapability:
    """Tests for the fix capability split."""

    def test_fix_on_read_only_auditor_raises(self, tmp_path):
        """Test that asking a read-only auditor to fix is loud."""
        with pytest.raises(CapabilityError) as exc_info:
            SwitchesAuditor(tmp_path).fix()

        assert exc_info.value.auditor_name == "Switch Statements"

    def test_fix_registry_holds_only_repairable(self):
        """Test that every fix auditor can repair."""
        assert all(issubclass(a, RepairableAuditor) for a in FIX_AUDITORS)
        assert len(fix_registry.repairable()) == len(fix_registry)

    def test_can_fix_flag(self):
        assert WhitespaceAuditor.can_fix
        assert not SwitchesAuditor.can_fix


class TestRegistry:
    """Tests for AuditorRegistry."""

    def test_default_order(self):
        """Test the registration order of the audit registry."""
        assert [a.name for a in audit_registry.all()] == [a.name for a in AUDIT_AUDITORS]
        assert [a.name for a in fix_registry.all()][-1] == "Whitespace"

    def test_get_by_key(self):
        assert audit_registry.get("eslint_errors").name == "ESLint Errors"
        assert audit_registry.get("missing") is None

    def test_duplicate_key_rejected(self):
        """Test that two auditors cannot share a key."""
        registry = AuditorRegistry([TodoAuditor])

        with pytest.raises(ValueError):
            registry.register(TodoAuditor)

    def test_repairable_filter(self):
        registry = AuditorRegistry([TodoAuditor, UpperAuditor])

        assert registry.repairable() == [UpperAuditor]


class TestDrivers:
    """Tests for the generic audit and fix drivers."""

    def test_audit_counts(self, make_project):
        """Test files scanned, files with issues and issue count."""
        root = make_project({
            "a.js": "// TODO one\n// TODO two\n",
            "b.js": "const b = 1;\n",
            "c.test.js": "// TODO excluded\n",
        })

        result = TodoAuditor(root).audit()

        assert result.files_scanned == 2
        assert result.files_with_issues == 1
        assert result.issue_count == 2
        assert not result.clean

    def test_target_path_restricts_scan(self, make_project):
        """Test that a target path narrows the scan."""
        root = make_project({"lib/a.js": "x", "src/b.js": "x"})

        result = UpperAuditor(root, options=AuditOptions(target_path="lib")).audit()

        assert result.files_scanned == 1
        assert result.files[0].file == "lib/a.js"

    def test_dry_run_matches_real_fix(self, make_project):
        """Test that dry-run reports the counts a real fix achieves, without writing."""
        root = make_project({"a.js": "abc", "b.js": "DEF"})

        dry = UpperAuditor(root, options=AuditOptions(dry_run=True)).fix()
        assert (root / "a.js").read_text() == "abc"

        real = UpperAuditor(root).fix()
        assert (root / "a.js").read_text() == "ABC"
        assert (dry.files_fixed, dry.fix_count, dry.files) == (real.files_fixed, real.fix_count, real.files)

    def test_dry_run_edits_shared_through_overlay(self, make_project):
        """Test that a dry-run fix keeps its result in memory for the next auditor."""
        root = make_project({"a.js": "abc // todo later\n"})
        overlay: dict[Path, str] = {}
        options = AuditOptions(dry_run=True)

        UpperAuditor(root, options=options, overlay=overlay).fix()
        after = TodoAuditor(root, options=options, overlay=overlay).audit()

        assert overlay == {(root / "a.js").resolve(): "ABC // TODO LATER\n"}
        assert (root / "a.js").read_text() == "abc // todo later\n"
        assert after.issue_count == 1

    def test_undecodable_file_recorded(self, make_project):
        """Test that read failures are recorded and the run continues."""
        root = make_project({"b.js": "abc"})
        (root / "a.js").write_bytes(b"\xff\xfe\xfa")

        result = UpperAuditor(root).audit()

        assert result.files_scanned == 2
        assert len(result.errors) == 1
        assert result.errors[0].startswith("a.js")
        assert result.issue_count == 1


class TestBuiltinAuditorContract:
    """Contract properties of the text-based built-in auditors."""

    @pytest.mark.parametrize("auditor_cls", TEXT_AUDITORS)
    def test_idempotent_fix(self, make_project, messy_module: str, helper_module: str, auditor_cls):
        """Test that a second fix pass finds nothing to fix."""
        root = make_project({"lib/main.js": messy_module, "lib/helper.js": helper_module})

        first = auditor_cls(root).fix()
        second = auditor_cls(root).fix()

        assert first.fix_count > 0
        assert second.fix_count == 0
        assert second.files_fixed == 0

    @pytest.mark.parametrize("auditor_cls", TEXT_AUDITORS)
    def test_dry_run_non_mutation(self, make_project, messy_module: str, helper_module: str, auditor_cls):
        """Test that dry-run writes nothing and reports the real counts."""
        root = make_project({"lib/main.js": messy_module, "lib/helper.js": helper_module})

        dry = auditor_cls(root, options=AuditOptions(dry_run=True)).fix()
        assert (root / "lib/main.js").read_text() == messy_module

        real = auditor_cls(root).fix()
        assert (dry.files_fixed, dry.fix_count) == (real.files_fixed, real.fix_count)

    @pytest.mark.parametrize("auditor_cls", TEXT_AUDITORS)
    def test_deterministic_audit(self, make_project, messy_module: str, auditor_cls):
        """Test that two audits of unchanged files agree."""
        root = make_project({"lib/main.js": messy_module})

        first = auditor_cls(root).audit()
        second = auditor_cls(root).audit()

        assert first.to_dict() == second.to_dict()

    @pytest.mark.parametrize("auditor_cls", AUDIT_AUDITORS)
    @pytest.mark.parametrize("content", MALFORMED_INPUTS)
    def test_malformed_input_never_raises(self, tmp_path, settings, auditor_cls, content: str):
        """Test that analyze and repair tolerate malformed input."""
        auditor = auditor_cls(tmp_path, settings=settings)
        path = tmp_path / "bad.js"

        assert isinstance(auditor.analyze(content, "bad.js", path), list)
        if isinstance(auditor, RepairableAuditor):
            repaired = auditor.repair(content, "bad.js", path)
            if not repaired.fixed:
                assert repaired.result == content
