"""Exception hierarchy.

Most of these never reach a caller of the public API: the Indexer and
Retriever catch them at their boundary and report a degraded outcome.
"""

from __future__ import annotations


class LoreweaveError(Exception):
    """Base class for loreweave errors."""


class ConfigError(LoreweaveError):
    """Invalid configuration value (bad env var, malformed YAML)."""


class ProviderError(LoreweaveError):
    """An embedding backend failed. Normalized to an empty vector by the adapter."""


class StoreError(LoreweaveError):
    """A vector store read or write failed."""


class ProjectLoadError(LoreweaveError):
    """A project snapshot file could not be read or parsed."""
