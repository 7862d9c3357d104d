"""Observability configuration, env-var driven.

All settings have safe defaults. Zero config required for basic
structured logging to stderr.

    Formatter:   LOREWEAVE_LOG_FORMATTER=structlog (default) | stdlib
    Destination: LOREWEAVE_LOG_DESTINATION=stderr (default) | jsonl
    Renderer:    LOREWEAVE_LOG_FORMAT=json (default) | console
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class ObservabilityConfig:
    """Observability configuration, env-var driven."""

    log_formatter: str = field(
        default_factory=lambda: os.environ.get("LOREWEAVE_LOG_FORMATTER", "structlog")
    )  # "structlog" | "stdlib"

    log_destination: str = field(
        default_factory=lambda: os.environ.get("LOREWEAVE_LOG_DESTINATION", "stderr")
    )  # "stderr" | "jsonl"

    log_level: str = field(
        default_factory=lambda: os.environ.get("LOREWEAVE_LOG_LEVEL", "INFO")
    )

    log_format: str = field(
        default_factory=lambda: os.environ.get("LOREWEAVE_LOG_FORMAT", "json")
    )  # "json" | "console"

    jsonl_path: str | None = field(
        default_factory=lambda: os.environ.get("LOREWEAVE_LOG_PATH")
    )
