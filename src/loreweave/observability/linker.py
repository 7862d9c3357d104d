"""LoreweaveEventLinker: isolated event namespace for loreweave.

All loreweave subscribers register here, separate from any other
pyventus usage in the process.
"""

from __future__ import annotations

from pyventus.events import EventLinker


class LoreweaveEventLinker(EventLinker):
    """Isolated event namespace for loreweave observability."""

    pass
