"""A span that records nothing but still carries its context."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from .model import Endpoint, SpanContext


class NoopSpan:
    """A span that discards everything recorded on it.

    The span context is still available so that it can be propagated, and
    the number of discarded operations is kept in ``discarded``.
    """

    __slots__ = ("_context", "_discarded")

    def __init__(self, context: Optional[SpanContext] = None) -> None:
        self._context = context if context is not None else SpanContext()
        self._discarded = 0

    @property
    def discarded(self) -> int:
        """Number of recording calls this span has dropped."""
        return self._discarded

    def _drop(self) -> None:
        self._discarded += 1

    def context(self) -> SpanContext:
        """Return the span context this span propagates."""
        return self._context

    def set_name(self, name: str) -> None:
        """Drop the name."""
        self._drop()

    def set_remote_endpoint(self, endpoint: Optional[Endpoint]) -> None:
        """Drop the remote endpoint."""
        self._drop()

    def annotate(self, timestamp: datetime, value: str) -> None:
        """Drop the annotation."""
        self._drop()

    def tag(self, key: str, value: str) -> None:
        """Drop the tag."""
        self._drop()

    def finish(self) -> None:
        """Drop the finish; nothing is reported."""
        self._drop()

    def finished_with_duration(self, duration: timedelta) -> None:
        """Drop the finish; nothing is reported."""
        self._drop()

    def flush(self) -> None:
        """Drop the flush; nothing is reported."""
        self._drop()

    def __repr__(self) -> str:
        return "NoopSpan(" + repr(self._context) + ")"


def is_noop(span: Any) -> bool:
    """Return True if ``span`` records nothing."""
    return isinstance(span, NoopSpan)