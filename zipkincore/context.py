"""Carrying the active span in a context."""

from __future__ import annotations

import contextvars
from typing import Any, Optional

from .model import BaggageFields
from .noop import NoopSpan

_current_span: contextvars.ContextVar[Any] = contextvars.ContextVar("zipkincore_span")
_DEFAULT_NOOP_SPAN = NoopSpan()


def span_from_context(ctx: Optional[contextvars.Context] = None) -> Any:
    """Return the span stored in ``ctx`` (or the current context), or None."""
    if ctx is None:
        return _current_span.get(None)
    return ctx.get(_current_span)


def span_or_noop_from_context(ctx: Optional[contextvars.Context] = None) -> Any:
    """Return the stored span, or a shared no-op span when there is none."""
    span = span_from_context(ctx)
    return _DEFAULT_NOOP_SPAN if span is None else span


def new_context(ctx: Optional[contextvars.Context], span: Any) -> contextvars.Context:
    """Return a copy of ``ctx`` (or the current context) holding ``span``."""
    derived = contextvars.copy_context() if ctx is None else ctx.copy()
    derived.run(_current_span.set, span)
    return derived


def baggage_from_context(ctx: Optional[contextvars.Context] = None) -> Optional[BaggageFields]:
    """Return the baggage of the stored span, or None."""
    span = span_from_context(ctx)
    if span is None:
        return None
    return span.context().baggage