"""Generator options.

Defaults can be overridden from the environment:
  BURRITO_ASYNC_AND_SYNC       emit a sync twin for async routes (default 1)
  BURRITO_NAMING_CONVENTIONS   snake_case record attributes (default 0)
  BURRITO_PROBE_TIMEOUT        seconds per probe request (default 10)
  BURRITO_MAX_CONCURRENCY      simultaneous probe requests (default 8)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

TEMPLATE_DIR = Path(__file__).parent / "templates"

DEFAULT_PROBE_TIMEOUT = 10.0
DEFAULT_MAX_CONCURRENCY = 8


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class GeneratorOptions:
    generate_async_and_sync: bool = True
    follow_naming_conventions: bool = False
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> GeneratorOptions:
        """Build options from BURRITO_* environment variables."""
        return cls(
            generate_async_and_sync=_env_flag("BURRITO_ASYNC_AND_SYNC", True),
            follow_naming_conventions=_env_flag("BURRITO_NAMING_CONVENTIONS", False),
            probe_timeout=float(
                os.environ.get("BURRITO_PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT)
            ),
            max_concurrency=max(
                1, int(os.environ.get("BURRITO_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY))
            ),
        )
