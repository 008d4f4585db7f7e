"""The single "try the remote model, else use local rules" control-flow shape."""

from __future__ import annotations

from typing import Callable, TypeVar

from ..logging import get_logger

LOG = get_logger("ai-fallback")

T = TypeVar("T")


def with_fallback(remote: Callable[[], T], local: Callable[[], T], *, label: str = "remote call") -> T:
    """Return ``remote()``; on any failure log it and return ``local()`` instead.

    No retries: one failed attempt goes straight to the local strategy.
    """
    try:
        return remote()
    except Exception as exc:
        LOG.warning("%s failed (%s: %s); using local fallback", label, exc.__class__.__name__, exc)
        return local()
