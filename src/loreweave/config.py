"""Layered configuration: YAML file + env var overrides.

Priority: env var > YAML file > default.
Env vars use LOREWEAVE_{FIELD_NAME} (e.g. LOREWEAVE_PROVIDER=openai).
YAML file default: ~/.loreweave/config.yaml

Library classes never read this themselves; the CLI loads it once and
hands the derived pieces (ProviderConfig, RetrievalConfig, IndexOptions)
to the objects it builds.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from loreweave.errors import ConfigError
from loreweave.indexing.indexer import IndexOptions
from loreweave.retrieval.orchestrator import RetrievalConfig
from loreweave.vec.embeddings import MAX_EMBED_CHARS, ProviderConfig

_TRUTHY = {"1", "true", "on", "yes"}
_FALSY = {"0", "false", "off", "no"}
_DEFAULT_PATH = Path("~/.loreweave/config.yaml").expanduser()
_ENV_PREFIX = "LOREWEAVE_"


def _parse_bool(name: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    val = str(raw).strip().lower()
    if val in _TRUTHY:
        return True
    if val in _FALSY:
        return False
    raise ConfigError(f"{name}={raw!r} is not a valid boolean")


def _parse_int(name: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"{name}={raw!r} is not a valid integer")
    try:
        return int(raw)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name}={raw!r} is not a valid integer") from err


def _parse_float(name: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ConfigError(f"{name}={raw!r} is not a valid number")
    try:
        return float(raw)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name}={raw!r} is not a valid number") from err


def _parse_str(name: str, raw: Any) -> str:
    return str(raw)


def _parse_optional_str(name: str, raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw)
    return text or None


# Annotations are strings under `from __future__ import annotations`
_PARSERS = {
    "bool": _parse_bool,
    "int": _parse_int,
    "float": _parse_float,
    "str": _parse_str,
    "str | None": _parse_optional_str,
}


@dataclass
class LoreweaveConfig:
    # Embedding provider
    provider: str = "none"  # openai | custom | ollama | sentence-transformers | none
    embed_model: str = ""  # empty: provider default
    api_key: str | None = field(default=None, repr=False)
    base_url: str | None = None
    max_embed_chars: int = MAX_EMBED_CHARS

    # Retrieval
    rag_enabled: bool = True
    top_k_chapters: int = 3
    top_k_characters: int = 5
    top_k_wiki: int = 5
    vector_weight: float = 0.6
    keyword_weight: float = 0.4
    similarity_floor: float = 0.3
    dedup_threshold: float = 0.7
    graph_depth: int = 2
    graph_bonus: float = 0.2

    # Query cache
    cache_ttl_seconds: float = 3600
    cache_max_size: int = 100

    # Indexing
    chunk_size: int = 1500
    chunk_overlap: int = 200
    excerpt_chars: int = 2500
    store_path: str = ".loreweave/vectors.db"

    @classmethod
    def load(cls, path: Path | None = None) -> LoreweaveConfig:
        """Load from the YAML file, then override with env vars.

        Raises:
            ConfigError: malformed YAML or a value of the wrong type.
        """
        file_path = path or _DEFAULT_PATH
        file_values: dict[str, Any] = {}

        if file_path.exists():
            try:
                raw = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as err:
                raise ConfigError(f"{file_path}: invalid YAML: {err}") from err
            if not isinstance(raw, dict):
                raise ConfigError(f"{file_path}: expected a mapping at top level")
            file_values = raw

        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            parse = _PARSERS[str(f.type)]
            env_key = f"{_ENV_PREFIX}{f.name.upper()}"
            if env_key in os.environ:
                kwargs[f.name] = parse(env_key, os.environ[env_key])
            elif f.name in file_values:
                kwargs[f.name] = parse(f"{file_path}:{f.name}", file_values[f.name])
            # else: dataclass default

        config = cls(**kwargs)
        if config.api_key is None and config.provider == "openai":
            config.api_key = os.environ.get("OPENAI_API_KEY") or None
        return config

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        if redact and out.get("api_key"):
            out["api_key"] = "***"
        return out

    # ------------------------------------------------------------------
    # Derived component configs
    # ------------------------------------------------------------------

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider=self.provider,
            model=self.embed_model,
            api_key=self.api_key,
            base_url=self.base_url,
            max_chars=self.max_embed_chars,
        )

    def retrieval_config(self) -> RetrievalConfig:
        return RetrievalConfig(
            enabled=self.rag_enabled,
            top_k_chapters=self.top_k_chapters,
            top_k_characters=self.top_k_characters,
            top_k_wiki=self.top_k_wiki,
            vector_weight=self.vector_weight,
            keyword_weight=self.keyword_weight,
            similarity_floor=self.similarity_floor,
            dedup_threshold=self.dedup_threshold,
            graph_depth=self.graph_depth,
            graph_bonus=self.graph_bonus,
        )

    def index_options(self, chunk: bool = True, force: bool = False) -> IndexOptions:
        return IndexOptions(
            chunk=chunk,
            force=force,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            excerpt_chars=self.excerpt_chars,
        )


# Singleton (CLI only)
_config: LoreweaveConfig | None = None


def get_config(path: Path | None = None) -> LoreweaveConfig:
    """Get the process-wide LoreweaveConfig, loading it on first use."""
    global _config
    if _config is None:
        _config = LoreweaveConfig.load(path)
    return _config


def reset_config() -> None:
    """Reset for testing."""
    global _config
    _config = None
