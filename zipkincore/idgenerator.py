"""Generators for trace and span identifiers."""

from __future__ import annotations

import random
import threading
import time
from abc import ABC, abstractmethod

from .ids import TraceID

# One shared, seeded source; random.Random is guarded by a lock so the
# generators can be used from several threads at once.
_rng = random.Random(time.time_ns())
_rng_lock = threading.Lock()


def _int63() -> int:
    with _rng_lock:
        return _rng.getrandbits(63)


def _span_id_for(trace_id: TraceID) -> int:
    """Root spans reuse the low trace bits; otherwise draw a fresh id."""
    if not trace_id.empty():
        return trace_id.low
    return _int63()


class IDGenerator(ABC):
    """Produces trace identifiers and span identifiers for a tracer."""

    @abstractmethod
    def trace_id(self) -> TraceID:
        """Generate a new trace identifier."""

    @abstractmethod
    def span_id(self, trace_id: TraceID) -> int:
        """Generate a span identifier, given the trace it belongs to."""


class Random64(IDGenerator):
    """Random 64-bit trace identifiers and 64-bit span identifiers."""

    def trace_id(self) -> TraceID:
        return TraceID(low=_int63())

    def span_id(self, trace_id: TraceID) -> int:
        return _span_id_for(trace_id)


class Random128(IDGenerator):
    """Random 128-bit trace identifiers and 64-bit span identifiers."""

    def trace_id(self) -> TraceID:
        with _rng_lock:
            high = _rng.getrandbits(63)
            low = _rng.getrandbits(63)
        return TraceID(high=high, low=low)

    def span_id(self, trace_id: TraceID) -> int:
        return _span_id_for(trace_id)


class RandomTimestamped(IDGenerator):
    """Time-sortable 128-bit trace identifiers and 64-bit span identifiers.

    The upper 32 bits of ``high`` hold the Unix time in seconds.
    """

    def trace_id(self) -> TraceID:
        with _rng_lock:
            high = (int(time.time()) << 32) + _rng.getrandbits(31)
            low = _rng.getrandbits(63)
        return TraceID(high=high, low=low)

    def span_id(self, trace_id: TraceID) -> int:
        return _span_id_for(trace_id)


def new_random64() -> IDGenerator:
    """Return a generator of 64-bit trace and span identifiers."""
    return Random64()


def new_random128() -> IDGenerator:
    """Return a generator of 128-bit trace and 64-bit span identifiers."""
    return Random128()


def new_random_timestamped() -> IDGenerator:
    """Return a generator of time-sortable 128-bit trace identifiers."""
    return RandomTimestamped()