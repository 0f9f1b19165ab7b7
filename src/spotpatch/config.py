"""Configuration settings for spotpatch."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from spotpatch.errors import ConfigError

# Environment overrides
ENV_HTTP_TIMEOUT = "SPOTPATCH_HTTP_TIMEOUT"
ENV_MAX_WORKERS = "SPOTPATCH_MAX_WORKERS"

DEFAULT_DOCUMENT = "spotpatch.toml"


@dataclass(frozen=True)
class Settings:
    """Runtime settings."""

    # Network
    http_timeout: float = 30.0
    user_agent: str = "spotpatch/0.1.0"

    # Payload resolution (1 = sequential)
    max_workers: int = 1

    # CLI
    default_document: str = DEFAULT_DOCUMENT

    def __post_init__(self):
        if not self.http_timeout > 0:
            raise ConfigError(f"http_timeout must be positive, got {self.http_timeout}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings, applying SPOTPATCH_* environment overrides."""
        env = os.environ if environ is None else environ
        settings = cls()

        timeout = env.get(ENV_HTTP_TIMEOUT)
        if timeout:
            try:
                settings = replace(settings, http_timeout=float(timeout))
            except ValueError as e:
                raise ConfigError(
                    f"{ENV_HTTP_TIMEOUT} must be a number, got {timeout!r}"
                ) from e

        workers = env.get(ENV_MAX_WORKERS)
        if workers:
            try:
                settings = replace(settings, max_workers=int(workers))
            except ValueError as e:
                raise ConfigError(
                    f"{ENV_MAX_WORKERS} must be an integer, got {workers!r}"
                ) from e

        return settings

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with non-None overrides applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
