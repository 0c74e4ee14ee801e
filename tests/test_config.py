"""Tests for settings and the project configuration file."""

import json

import pytest
from pydantic import ValidationError

from cleaner.audit.base import AuditOptions
from cleaner.categories import AuditCategory
from cleaner.config import CategoryConfig, CleanerSettings, find_config_file, load_cleaner_config
from cleaner.errors import ConfigError


class TestCleanerSettings:
    """Tests for runtime settings."""

    def test_defaults(self):
        """Test the default conventions."""
        settings = CleanerSettings()

        assert settings.source_extension == ".js"
        assert settings.index_file == "index.js"
        assert settings.lint_command == ["npx", "eslint"]

    def test_environment_override(self, monkeypatch):
        """Test that CLEANER_* variables override defaults."""
        monkeypatch.setenv("CLEANER_GIT_EXECUTABLE", "/opt/git/bin/git")
        monkeypatch.setenv("CLEANER_LINT_COMMAND", '["eslint"]')

        settings = CleanerSettings()

        assert settings.git_executable == "/opt/git/bin/git"
        assert settings.lint_command == ["eslint"]

    def test_lowercase_environment_names(self, monkeypatch):
        monkeypatch.setenv("cleaner_docs_index", "docs/index.json")

        assert CleanerSettings().docs_index == "docs/index.json"


class TestModels:
    """Tests for the configuration and option models."""

    def test_category_by_field_name_or_alias(self):
        """Test that both spellings load and unknown keys are dropped."""
        by_alias = CategoryConfig.model_validate({"excludeDirs": ["vendor"], "comment": "x"})
        by_name = CategoryConfig(exclude_files=["a.js"])

        assert by_alias.exclude_dirs == ["vendor"]
        assert not hasattr(by_alias, "comment")
        assert by_name.exclude_files == ["a.js"]

    def test_options_frozen(self):
        options = AuditOptions(dry_run=True)

        with pytest.raises(ValidationError):
            options.dry_run = False


class TestLoadCleanerConfig:
    """Tests for loading the per-project configuration."""

    def test_missing_file_gives_empty_config(self, tmp_path):
        """Test that a project without configuration has no exclusions."""
        config = load_cleaner_config(tmp_path)

        assert config.source is None
        assert config.for_category(AuditCategory.WHITESPACE).exclude_dirs == []

    def test_yaml_file(self, tmp_path):
        """Test loading YAML with the camelCase keys."""
        (tmp_path / "cleaner.config.yaml").write_text(
            "whitespace:\n"
            "  excludeDirs: [vendor]\n"
            "  excludeFiles: ['**/generated.js']\n"
            "comments:\n"
        )

        config = load_cleaner_config(tmp_path)

        section = config.for_category(AuditCategory.WHITESPACE)
        assert section.exclude_dirs == ["vendor"]
        assert section.exclude_files == ["**/generated.js"]
        assert config.for_category(AuditCategory.COMMENTS).exclude_dirs == []
        assert config.source.endswith("cleaner.config.yaml")

    def test_json_file(self, tmp_path):
        """Test loading JSON configuration."""
        (tmp_path / "cleaner.config.json").write_text(
            json.dumps({"coverage": {"excludeDirs": ["legacy"]}})
        )

        config = load_cleaner_config(tmp_path)

        assert config.for_category(AuditCategory.COVERAGE).exclude_dirs == ["legacy"]

    def test_yaml_preferred_over_json(self, tmp_path):
        """Test the candidate file order."""
        (tmp_path / "cleaner.config.yaml").write_text("whitespace: {}\n")
        (tmp_path / "cleaner.config.json").write_text("{}")

        assert find_config_file(tmp_path).name == "cleaner.config.yaml"

    def test_unknown_category_ignored(self, tmp_path):
        """Test that unknown sections are skipped rather than rejected."""
        (tmp_path / "cleaner.config.yaml").write_text("spelling:\n  excludeDirs: [x]\n")

        config = load_cleaner_config(tmp_path)

        assert config.categories == {}

    @pytest.mark.parametrize(
        "content",
        [
            "whitespace: [unclosed\n",
            "- whitespace\n- comments\n",
            "whitespace: 3\n",
            "whitespace:\n  excludeDirs: 5\n",
        ],
    )
    def test_malformed_file_raises(self, tmp_path, content: str):
        """Test that unparsable or invalid configuration raises ConfigError."""
        (tmp_path / "cleaner.config.yaml").write_text(content)

        with pytest.raises(ConfigError):
            load_cleaner_config(tmp_path)
