"""The Zipkin V2 span model and its JSON representation."""

from __future__ import annotations

import ipaddress
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from .ids import TraceID, format_span_id, parse_span_id

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)
_MAX_UINT64 = (1 << 64) - 1


class ModelError(ValueError):
    """Raised when a span model cannot be encoded or decoded."""

    default_message = "invalid span model"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class InvalidTimestampError(ModelError):
    default_message = "valid annotation timestamp required"


class InvalidDurationError(ModelError):
    default_message = "valid duration required"


class InvalidTraceIDError(ModelError):
    default_message = "valid traceId required"


class InvalidSpanIDError(ModelError):
    default_message = "valid span id required"


class Kind(str, Enum):
    """Clarifies the context of timestamp, duration and remote endpoint."""

    UNDETERMINED = ""
    CLIENT = "CLIENT"
    SERVER = "SERVER"
    PRODUCER = "PRODUCER"
    CONSUMER = "CONSUMER"


@runtime_checkable
class BaggageFields(Protocol):
    """Fields propagated alongside a trace for use in application logic."""

    def get(self, key: str) -> list[str]:
        """Return the values stored for ``key``."""

    def add(self, key: str, *values: str) -> bool:
        """Append values to ``key``; False if the key is not accepted."""

    def set(self, key: str, *values: str) -> bool:
        """Replace the values of ``key``; False if the key is not accepted."""

    def delete(self, key: str) -> bool:
        """Remove ``key``; False if the key is not accepted."""

    def items(self) -> Iterator[tuple[str, list[str]]]:
        """Yield every field as a (key, values) pair."""


@runtime_checkable
class BaggageHandler(Protocol):
    """Creates fresh baggage for each incoming request."""

    def new(self) -> BaggageFields:
        """Return an empty BaggageFields primed for one request."""


def _to_micros(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.astimezone(timezone.utc)
    return (moment - _EPOCH) // _MICROSECOND


def _from_micros(micros: int) -> datetime:
    return _EPOCH + timedelta(microseconds=micros)


def _get_uint(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ModelError(f"{key} must be an integer")
    if not 0 <= value <= _MAX_UINT64:
        raise ModelError(f"{key} must be a non-negative 64-bit integer")
    return value


def _get_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ModelError(f"{key} must be a string")
    return value


def _get_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ModelError(f"{key} must be a boolean")
    return value


def _parse_span_id_field(value: Any, key: str) -> int:
    if not isinstance(value, str):
        raise InvalidSpanIDError(f"{key} must be a hex string")
    try:
        return parse_span_id(value)
    except ValueError as exc:
        raise InvalidSpanIDError(str(exc)) from exc


def _parse_trace_id_field(value: Any) -> TraceID:
    if not isinstance(value, str) or not value:
        raise InvalidTraceIDError()
    try:
        return TraceID.from_hex(value)
    except ValueError as exc:
        raise InvalidTraceIDError(str(exc)) from exc


@dataclass
class Annotation:
    """An event explaining latency, with the moment it happened."""

    timestamp: datetime
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the Zipkin V2 JSON object for this annotation."""
        return {"timestamp": _to_micros(self.timestamp), "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Annotation:
        """Build an annotation from its Zipkin V2 JSON object."""
        if not isinstance(data, Mapping):
            raise ModelError("annotation must be a JSON object")
        raw = data.get("timestamp", 0)
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ModelError("annotation timestamp must be an integer")
        if raw < 1:
            raise InvalidTimestampError()
        return cls(timestamp=_from_micros(raw), value=_get_str(data, "value"))


@dataclass
class Endpoint:
    """The network context of a node in the service graph."""

    service_name: str = ""
    ipv4: Optional[ipaddress.IPv4Address] = None
    ipv6: Optional[ipaddress.IPv6Address] = None
    port: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.ipv4, str):
            self.ipv4 = ipaddress.IPv4Address(self.ipv4)
        if isinstance(self.ipv6, str):
            self.ipv6 = ipaddress.IPv6Address(self.ipv6)
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise TypeError("port must be an integer")
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")

    def empty(self) -> bool:
        """Return True when no property is set."""
        return (
            self.service_name == ""
            and self.port == 0
            and self.ipv4 is None
            and self.ipv6 is None
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the Zipkin V2 JSON object, omitting unset properties."""
        out: dict[str, Any] = {}
        name = self.service_name.lower()
        if name:
            out["serviceName"] = name
        if self.ipv4 is not None:
            out["ipv4"] = str(self.ipv4)
        if self.ipv6 is not None:
            out["ipv6"] = str(self.ipv6)
        if self.port:
            out["port"] = self.port
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Endpoint:
        """Build an endpoint from its Zipkin V2 JSON object."""
        if not isinstance(data, Mapping):
            raise ModelError("endpoint must be a JSON object")
        ipv4 = data.get("ipv4")
        ipv6 = data.get("ipv6")
        port = _get_uint(data, "port")
        if port > 0xFFFF:
            raise ModelError(f"port out of range: {port}")
        try:
            return cls(
                service_name=_get_str(data, "serviceName"),
                ipv4=None if ipv4 is None else ipaddress.IPv4Address(ipv4),
                ipv6=None if ipv6 is None else ipaddress.IPv6Address(ipv6),
                port=port,
            )
        except ValueError as exc:
            raise ModelError(str(exc)) from exc


def endpoint_is_empty(endpoint: Optional[Endpoint]) -> bool:
    """Return True for a missing endpoint or one with nothing set."""
    return endpoint is None or endpoint.empty()


def _get_endpoint(data: Mapping[str, Any], key: str) -> Optional[Endpoint]:
    value = data.get(key)
    if value is None:
        return None
    endpoint = Endpoint.from_dict(value)
    return None if endpoint.empty() else endpoint


@dataclass
class SpanContext:
    """The identifying context of a span and its propagation state."""

    trace_id: TraceID = field(default_factory=TraceID)
    id: int = 0
    parent_id: Optional[int] = None
    debug: bool = False
    sampled: Optional[bool] = None
    err: Optional[BaseException] = None
    baggage: Optional[BaggageFields] = None


@dataclass
class SpanModel:
    """A Zipkin V2 span.

    ``duration`` is held in nanoseconds; timestamps are datetimes, naive
    ones being read as local time.
    """

    context: SpanContext = field(default_factory=SpanContext)
    name: str = ""
    kind: Kind = Kind.UNDETERMINED
    timestamp: Optional[datetime] = None
    duration: int = 0
    shared: bool = False
    local_endpoint: Optional[Endpoint] = None
    remote_endpoint: Optional[Endpoint] = None
    annotations: list[Annotation] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.kind = Kind(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Return the Zipkin V2 JSON object for this span."""
        out: dict[str, Any] = {}
        if self.timestamp is not None:
            micros = _to_micros(self.timestamp)
            if micros < 1_000_000:
                raise InvalidTimestampError()
            out["timestamp"] = micros

        duration = self.duration
        if duration < 1000:
            if duration < 0:
                raise InvalidDurationError()
            if duration > 0:
                duration = 1000
        else:
            duration += 500
        if duration // 1000:
            out["duration"] = duration // 1000

        ctx = self.context
        out["traceId"] = str(ctx.trace_id)
        out["id"] = format_span_id(ctx.id)
        if ctx.parent_id is not None:
            out["parentId"] = format_span_id(ctx.parent_id)
        if ctx.debug:
            out["debug"] = True

        name = self.name.lower()
        if name:
            out["name"] = name
        if self.kind is not Kind.UNDETERMINED:
            out["kind"] = self.kind.value
        if self.shared:
            out["shared"] = True
        if not endpoint_is_empty(self.local_endpoint):
            out["localEndpoint"] = self.local_endpoint.to_dict()
        if not endpoint_is_empty(self.remote_endpoint):
            out["remoteEndpoint"] = self.remote_endpoint.to_dict()
        if self.annotations:
            out["annotations"] = [a.to_dict() for a in self.annotations]
        if self.tags:
            out["tags"] = dict(self.tags)
        return out

    def to_json(self) -> str:
        """Encode as compact Zipkin V2 JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SpanModel:
        """Build a span from its Zipkin V2 JSON object."""
        if not isinstance(data, Mapping):
            raise ModelError("span must be a JSON object")

        timestamp_us = _get_uint(data, "timestamp")
        duration_us = _get_uint(data, "duration")

        trace_id = TraceID()
        if "traceId" in data:
            trace_id = _parse_trace_id_field(data["traceId"])
        raw_id = data.get("id")
        span_id = 0 if raw_id is None else _parse_span_id_field(raw_id, "id")
        raw_parent = data.get("parentId")
        parent_id = None if raw_parent is None else _parse_span_id_field(raw_parent, "parentId")

        kind_text = _get_str(data, "kind")
        try:
            kind = Kind(kind_text)
        except ValueError as exc:
            raise ModelError(f"unknown span kind {kind_text!r}") from exc

        raw_annotations = data.get("annotations")
        if raw_annotations is None:
            raw_annotations = []
        if not isinstance(raw_annotations, list):
            raise ModelError("annotations must be a JSON array")
        annotations = [Annotation.from_dict(item) for item in raw_annotations]

        raw_tags = data.get("tags")
        if raw_tags is None:
            raw_tags = {}
        if not isinstance(raw_tags, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in raw_tags.items()
        ):
            raise ModelError("tags must map strings to strings")

        span = cls(
            context=SpanContext(
                trace_id=trace_id,
                id=span_id,
                parent_id=parent_id,
                debug=_get_bool(data, "debug"),
            ),
            name=_get_str(data, "name"),
            kind=kind,
            shared=_get_bool(data, "shared"),
            local_endpoint=_get_endpoint(data, "localEndpoint"),
            remote_endpoint=_get_endpoint(data, "remoteEndpoint"),
            annotations=annotations,
            tags=dict(raw_tags),
        )
        if span_id < 1:
            raise InvalidSpanIDError()
        if timestamp_us > 0:
            span.timestamp = _from_micros(timestamp_us)
        span.duration = duration_us * 1000
        return span

    @classmethod
    def from_json(cls, text: str) -> SpanModel:
        """Decode a span from Zipkin V2 JSON text."""
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ModelError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)