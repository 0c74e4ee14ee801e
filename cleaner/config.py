"""Configuration for the cleaner.

Two layers:
- CleanerSettings: runtime settings (tool commands, file conventions),
  overridable through CLEANER_* environment variables.
- CleanerConfig: the optional per-project configuration file at the scan
  root, holding per-category exclusion lists.
"""

import json
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cleaner.categories import AuditCategory
from cleaner.errors import ConfigError

logger = structlog.get_logger()


class CleanerSettings(BaseSettings):
    """Runtime settings."""

    source_extension: str = ".js"
    index_file: str = "index.js"
    ignored_dirs: list[str] = Field(default_factory=lambda: ["node_modules"])
    config_files: list[str] = Field(
        default_factory=lambda: [
            "cleaner.config.yaml",
            "cleaner.config.yml",
            "cleaner.config.json",
        ]
    )
    lint_command: list[str] = Field(default_factory=lambda: ["npx", "eslint"])
    git_executable: str = "git"
    docs_index: str = "doc/docs.json"
    docs_discovery_command: list[str] = Field(default_factory=list)
    log_level: str = "WARNING"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="CLEANER_", case_sensitive=False)


class CategoryConfig(BaseModel):
    """Exclusion lists for one audit category."""

    exclude_dirs: list[str] = Field(default_factory=list, alias="excludeDirs")
    exclude_files: list[str] = Field(default_factory=list, alias="excludeFiles")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CleanerConfig(BaseModel):
    """Per-project configuration loaded from the scan root."""

    categories: dict[AuditCategory, CategoryConfig] = Field(default_factory=dict)
    source: str | None = None

    def for_category(self, category: AuditCategory) -> CategoryConfig:
        """Get the exclusion lists for a category (empty when not configured)."""
        return self.categories.get(category) or CategoryConfig()


def find_config_file(root_dir: str | Path, settings: CleanerSettings | None = None) -> Path | None:
    """Return the first configuration file present at the root, if any."""
    settings = settings or CleanerSettings()
    root = Path(root_dir)

    for name in settings.config_files:
        candidate = root / name
        if candidate.is_file():
            return candidate

    return None


def load_cleaner_config(
    root_dir: str | Path,
    settings: CleanerSettings | None = None,
) -> CleanerConfig:
    """Load the project configuration from the scan root.

    A missing configuration file is not an error: every category then has
    empty exclusion lists.

    Args:
        root_dir: Scan root
        settings: Runtime settings (candidate file names)

    Returns:
        Parsed CleanerConfig

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated
    """
    path = find_config_file(root_dir, settings)
    if path is None:
        return CleanerConfig()

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(str(path), str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping of categories")

    categories: dict[AuditCategory, CategoryConfig] = {}
    for key, section in data.items():
        try:
            category = AuditCategory(key)
        except ValueError:
            logger.warning("Unknown configuration category ignored", category=key, path=str(path))
            continue

        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ConfigError(str(path), f"section '{key}' must be a mapping")

        try:
            categories[category] = CategoryConfig.model_validate(section)
        except ValidationError as e:
            raise ConfigError(str(path), f"section '{key}': {e}") from e

    logger.debug("Configuration loaded", path=str(path), categories=len(categories))
    return CleanerConfig(categories=categories, source=str(path))
