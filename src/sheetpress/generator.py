"""Page generator: the headless ``claude`` CLI run as a sandboxed subprocess.

The orchestrator only depends on the :class:`Generator` protocol; the
subprocess's own reasoning is opaque.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from sheetpress.config import GenerationConfig, SiteConfig
from sheetpress.errors import ConfigError, GenerationError
from sheetpress.prompts import build_generation_prompt
from sheetpress.tasks.models import TaskBatch
from sheetpress.tasks.services import TASKS_FILE

logger = logging.getLogger(__name__)


class GenerationResult(BaseModel):
    """Free-text summary printed by the generator."""

    output: str = ""


class Generator(Protocol):
    def check_environment(self) -> None:
        """Raise ConfigError if generation cannot safely run here."""
        ...

    def generate(self, batch: TaskBatch) -> GenerationResult: ...


class ClaudeGenerator:
    """Runs ``claude -p`` against the repo with a fixed tool deny-list."""

    def __init__(self, config: GenerationConfig, site: SiteConfig, root: Path) -> None:
        self.config = config
        self.site = site
        self.root = root

    def command(self) -> list[str]:
        return [
            "claude",
            "-p",
            "--model",
            self.config.model,
            "--max-turns",
            str(self.config.max_turns),
            "--permission-mode",
            "acceptEdits",
            "--disallowedTools",
            ",".join(self.config.disallowed_tools),
        ]

    def check_environment(self) -> None:
        """Refuse to run when an API key would silently switch billing mode.

        Raises:
            ConfigError: If ANTHROPIC_API_KEY is set and the config forbids it.
        """
        if self.config.forbid_api_key and os.environ.get("ANTHROPIC_API_KEY"):
            raise ConfigError(
                "ANTHROPIC_API_KEY is set.\n"
                "Unset it to use subscription auth instead of API billing, "
                "or set generation.forbid_api_key = false."
            )

    def generate(self, batch: TaskBatch) -> GenerationResult:
        """Run one generation pass over the batch already written to disk.

        Raises:
            GenerationError: Binary missing (not retryable), timeout or
                non-zero exit (retryable).
        """
        prompt = build_generation_prompt(self.site, TASKS_FILE.as_posix())
        # Filter CLAUDECODE env var to prevent recursive Claude invocations
        env = {k: v for k, v in os.environ.items() if k != "CLAUDECODE"}

        logger.info("Running Claude Code for %d task(s)...", len(batch))
        logger.info("  Model: %s", self.config.model)
        logger.info("  Max turns: %d", self.config.max_turns)

        try:
            result = subprocess.run(
                self.command(),
                cwd=self.root,
                input=prompt,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
                env=env,
            )
        except FileNotFoundError as exc:
            raise GenerationError(
                "Claude CLI not found; is 'claude' on the PATH?", retryable=False
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise GenerationError(f"Claude CLI timed out after {self.config.timeout}s") from exc

        if result.returncode != 0:
            raise GenerationError(
                f"Claude CLI failed (exit {result.returncode}): {result.stderr[:500]}"
            )

        logger.info("--- Claude Output ---\n%s\n--- End Claude Output ---", result.stdout)
        return GenerationResult(output=result.stdout.strip())
