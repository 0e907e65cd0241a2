"""Client-side HTTP instrumentation helpers: trace hooks, body closer, sampling."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _with_fraction(value: int, unit: int) -> str:
    whole, part = divmod(value, unit)
    if part == 0:
        return str(whole)
    digits = len(str(unit)) - 1
    fraction = f"{part:0{digits}d}".rstrip("0")
    return f"{whole}.{fraction}"


def _format_duration(duration: timedelta) -> str:
    nanos = ((duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds) * 1000
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos == 0:
        return "0s"
    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_with_fraction(nanos, 1_000)}µs"
    if nanos < 1_000_000_000:
        return f"{sign}{_with_fraction(nanos, 1_000_000)}ms"
    hours, rest = divmod(nanos, 3600 * 1_000_000_000)
    minutes, rest = divmod(rest, 60 * 1_000_000_000)
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + _with_fraction(rest, 1_000_000_000) + "s"


class SpanTrace:
    """Records the stages of an outgoing HTTP request on a span."""

    def __init__(self, span: Any) -> None:
        self.span = span

    def _annotate(self, value: str) -> None:
        self.span.annotate(_now(), value)

    def get_conn(self, host_port: str) -> None:
        self._annotate("Connecting")
        self.span.tag("httptrace.get_connection.host_port", host_port)

    def got_conn(self, reused: bool, was_idle: bool, idle_time: timedelta) -> None:
        self._annotate("Connected")
        self.span.tag("httptrace.got_connection.reused", str(bool(reused)).lower())
        self.span.tag("httptrace.got_connection.was_idle", str(bool(was_idle)).lower())
        if was_idle:
            self.span.tag("httptrace.got_connection.idle_time", _format_duration(idle_time))

    def put_idle_conn(self, err: Optional[BaseException]) -> None:
        self._annotate("Put Idle Connection")
        if err is not None:
            self.span.tag("httptrace.put_idle_connection.error", str(err))

    def got_first_response_byte(self) -> None:
        self._annotate("First Response Byte")

    def got_100_continue(self) -> None:
        self._annotate("Got 100 Continue")

    def dns_start(self, host: str) -> None:
        self._annotate("DNS Start")
        self.span.tag("httptrace.dns_start.host", host)

    def dns_done(self, addrs: Iterable[Any], err: Optional[BaseException]) -> None:
        self._annotate("DNS Done")
        self.span.tag("httptrace.dns_done.addrs", " , ".join(str(a) for a in addrs))
        if err is not None:
            self.span.tag("httptrace.dns_done.error", str(err))

    def connect_start(self, network: str, addr: str) -> None:
        self._annotate("Connect Start")
        self.span.tag("httptrace.connect_start.network", network)
        self.span.tag("httptrace.connect_start.addr", addr)

    def connect_done(self, network: str, addr: str, err: Optional[BaseException]) -> None:
        self._annotate("Connect Done")
        self.span.tag("httptrace.connect_done.network", network)
        self.span.tag("httptrace.connect_done.addr", addr)
        if err is not None:
            self.span.tag("httptrace.connect_done.error", str(err))

    def tls_handshake_start(self) -> None:
        self._annotate("TLS Handshake Start")

    def tls_handshake_done(self, err: Optional[BaseException]) -> None:
        self._annotate("TLS Handshake Done")
        if err is not None:
            self.span.tag("httptrace.tls_handshake_done.error", str(err))

    def wrote_headers(self) -> None:
        self._annotate("Wrote Headers")

    def wait_100_continue(self) -> None:
        self._annotate("Wait 100 Continue")

    def wrote_request(self, err: Optional[BaseException]) -> None:
        self._annotate("Wrote Request")
        if err is not None:
            self.span.tag("httptrace.wrote_request.error", str(err))


class SpanCloser:
    """Wraps a response body and finishes the span when the body is closed."""

    def __init__(self, body: Any, span: Any, trace_enabled: bool = False) -> None:
        self._body = body
        self._span = span
        self._trace_enabled = trace_enabled

    def read(self, *args: Any) -> Any:
        """Read from the wrapped body."""
        return self._body.read(*args)

    def close(self) -> None:
        """Close the body, then finish the span even if closing fails."""
        if self._trace_enabled:
            self._span.annotate(_now(), "Body Close")
        try:
            self._body.close()
        finally:
            self._span.finish()

    def __enter__(self) -> SpanCloser:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def sample() -> Optional[bool]:
    """A request-sampler decision that forces sampling."""
    return True


def discard() -> Optional[bool]:
    """A request-sampler decision that forces the request not to be sampled."""
    return False