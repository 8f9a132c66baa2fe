"""Unified configuration loaded from .sheetpress.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.

The resolved configuration is frozen into a :class:`RunContext` once per run,
together with the repository root and the run date, and passed explicitly to
every component.
"""

from __future__ import annotations

import logging
import os
import tomllib
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from sheetpress.errors import ConfigError
from sheetpress.retry import RetryPolicy

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".sheetpress.toml"
DEFAULT_CREDENTIALS_FILE = "automation/secrets/service-account.json"


class QueueConfig(BaseModel):
    """[queue] section."""

    sheet_id: str = ""
    sheet_name: str = "Queue"
    credentials_file: str = DEFAULT_CREDENTIALS_FILE


class GenerationConfig(BaseModel):
    """[generation] section."""

    model: str = "sonnet"
    max_turns: int = 15
    timeout: int = 1800
    forbid_api_key: bool = True
    disallowed_tools: list[str] = Field(default_factory=lambda: ["Bash", "WebFetch", "WebSearch"])


class GitConfig(BaseModel):
    """[git] section."""

    branch: str = "main"
    remote: str = "origin"


class SiteConfig(BaseModel):
    """[site] section: identity used by prompts, extraction and sitemap."""

    name: str = "Coursework Ninja"
    base_url: str = "https://coursework.ninja"
    domain: str = "coursework.ninja"

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class SheetpressConfig(BaseModel):
    """Top-level configuration model."""

    queue: QueueConfig = Field(default_factory=QueueConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)


class RunContext(BaseModel):
    """Immutable per-run snapshot of root directory, run date and config."""

    model_config = ConfigDict(frozen=True)

    root: Path
    today: date
    config: SheetpressConfig

    @property
    def today_iso(self) -> str:
        return self.today.isoformat()

    @property
    def credentials_path(self) -> Path:
        path = Path(self.config.queue.credentials_file)
        return path if path.is_absolute() else self.root / path


def load_config(path: str | Path | None = None, *, root: Path | None = None) -> SheetpressConfig:
    """Load configuration from a TOML file, then overlay environment variables.

    Search order when no explicit path is given:
    1. .sheetpress.toml in ``root`` (defaults to CWD)
    2. ~/.config/sheetpress/config.toml
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        candidates = [
            (root or Path(".")) / CONFIG_FILENAME,
            Path.home() / ".config" / "sheetpress" / "config.toml",
        ]
        for candidate in candidates:
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break

    config = SheetpressConfig.model_validate(data) if data else SheetpressConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: SheetpressConfig, **cli_kwargs: object) -> SheetpressConfig:
    """Overlay explicitly-set CLI flags (non-None values) onto the config."""
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "sheet_id": ("queue", "sheet_id"),
        "sheet_name": ("queue", "sheet_name"),
        "credentials_file": ("queue", "credentials_file"),
        "model": ("generation", "model"),
        "max_turns": ("generation", "max_turns"),
        "branch": ("git", "branch"),
        "base_url": ("site", "base_url"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = value

    return SheetpressConfig.model_validate(data)


def build_run_context(
    config: SheetpressConfig,
    *,
    root: Path,
    today: date | None = None,
    require_queue: bool = True,
) -> RunContext:
    """Freeze config into a RunContext, validating what a run cannot start without.

    Raises:
        ConfigError: If the sheet id is unset or the credential file is
            missing (only when ``require_queue`` is True).
    """
    ctx = RunContext(root=root.resolve(), today=today or date.today(), config=config)
    if require_queue:
        if not config.queue.sheet_id:
            raise ConfigError("Missing env: SEO_SHEET_ID\nSet it to your Google Sheet ID.")
        if not ctx.credentials_path.exists():
            raise ConfigError(
                f"Missing service account key file: {ctx.credentials_path}\n"
                f"Set GOOGLE_APPLICATION_CREDENTIALS or place it at {DEFAULT_CREDENTIALS_FILE}"
            )
    return ctx


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: SheetpressConfig) -> SheetpressConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "SEO_SHEET_ID": ("queue", "sheet_id"),
        "SEO_SHEET_NAME": ("queue", "sheet_name"),
        "GOOGLE_APPLICATION_CREDENTIALS": ("queue", "credentials_file"),
        "CLAUDE_MODEL": ("generation", "model"),
        "SHEETPRESS_BRANCH": ("git", "branch"),
        "SHEETPRESS_BASE_URL": ("site", "base_url"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value:
            data[section][field] = value

    turns_raw = os.environ.get("CLAUDE_MAX_TURNS")
    if turns_raw:
        try:
            data["generation"]["max_turns"] = int(turns_raw)
        except ValueError:
            raise ConfigError(f"CLAUDE_MAX_TURNS must be an integer, got {turns_raw!r}") from None

    return SheetpressConfig.model_validate(data)
