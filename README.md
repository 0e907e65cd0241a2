# zipkincore

Core building blocks for Zipkin V2 tracing: the span model and its JSON
encoding, 64/128-bit trace identifiers, random ID generators, endpoint
resolution, no-op spans, context propagation helpers and HTTP client tracing
hooks. It has no dependencies beyond the standard library.

## Installation

```
pip install zipkincore
```

## Trace and span identifiers

`zipkincore.ids` holds the frozen `TraceID` dataclass (`high` and `low`
64-bit halves) and helpers for 64-bit span identifiers, which are plain ints.

```python
from zipkincore.ids import TraceID, format_span_id, parse_span_id

trace_id = TraceID.from_hex("00000000000000010000000000000002")
assert str(trace_id) == "00000000000000010000000000000002"
assert trace_id.to_json() == '"00000000000000010000000000000002"'
assert TraceID.from_json('"0000000000000002"') == TraceID(low=2)
assert TraceID().empty()

assert format_span_id(1) == "0000000000000001"
assert parse_span_id("00000000000003eb") == 1003
```

A trace identifier whose `high` half is zero prints as 16 hex digits,
otherwise as 32. Malformed hex raises `ValueError`.

## The span model

`zipkincore.model` defines `SpanModel`, `SpanContext`, `Endpoint`,
`Annotation` and the `Kind` enum. `SpanModel` turns into a Zipkin V2 JSON
document (`to_dict`, `to_json`) and back (`from_dict`, `from_json`).

- Timestamps are datetimes, reported as microseconds since the epoch; naive
  datetimes are read as local time.
- `duration` is held in nanoseconds and rounded to the nearest microsecond on
  output; a positive duration under one microsecond is reported as 1.
- Span and endpoint service names are lower-cased on output.
- Endpoints with nothing set are left out (`endpoint_is_empty`).

```python
from zipkincore.model import SpanModel, Kind

span = SpanModel.from_json('{"traceId": "1", "id": "1", "kind": "SERVER"}')
assert span.kind is Kind.SERVER
print(span.to_json())
```

Invalid documents and values raise subclasses of `ModelError` (itself a
`ValueError`): `InvalidTimestampError`, `InvalidDurationError`,
`InvalidTraceIDError` and `InvalidSpanIDError`.

`BaggageFields` and `BaggageHandler` are protocols describing propagated
baggage fields and the factory that creates them per request; the package
ships no implementation of either.

## ID generators

```python
from zipkincore.idgenerator import new_random64, new_random128, new_random_timestamped

gen = new_random_timestamped()
trace_id = gen.trace_id()
root_span_id = gen.span_id(trace_id)  # equals trace_id.low for a non-empty trace id
```

`Random64`, `Random128` and `RandomTimestamped` implement the `IDGenerator`
base class. Timestamped trace identifiers carry the Unix time in seconds in
the upper 32 bits of `high`, so they sort by creation time.

## Endpoints

```python
from zipkincore.endpoint import new_endpoint, EndpointError

ep = new_endpoint("my_service", "127.0.0.1:8081")
assert ep.port == 8081
```

`new_endpoint` returns `None` when both the service name and the address are
empty. A host without a port gets port 0. Host names are resolved, keeping the
first IPv4 and first IPv6 address found. It raises `EndpointError` for
malformed addresses, out-of-range or non-numeric ports, and failed host
lookups.

## Context and no-op spans

The active span is kept in a `contextvars` context. Every function takes a
`contextvars.Context`, or `None` for the current one.

```python
from zipkincore.context import new_context, span_from_context, span_or_noop_from_context
from zipkincore.noop import NoopSpan, is_noop

assert span_from_context(None) is None or True  # depends on the caller's context
span = NoopSpan()
ctx = new_context(None, span)
assert span_from_context(ctx) is span
assert is_noop(span_or_noop_from_context(ctx))
```

`baggage_from_context` returns the baggage of the stored span's context, or
`None`. `NoopSpan` drops every recording call and counts them in `discarded`.

## HTTP tracing helpers

`zipkincore.httptrace` holds:

- `SpanTrace`, whose methods (`get_conn`, `got_conn`, `dns_start`,
  `dns_done`, `connect_start`, `connect_done`, `tls_handshake_start`,
  `tls_handshake_done`, `wrote_headers`, `wrote_request` and others) record
  the stages of an outgoing request as annotations and tags on a span;
- `SpanCloser`, which wraps a response body and finishes the span when the
  body is closed, usable as a context manager;
- `sample()` and `discard()`, decisions a request sampler can return to force
  or refuse sampling.

## What this package does not do

There is no tracer, no span recorder, no reporter that sends spans to a
Zipkin server, no header propagation format, and no HTTP or gRPC middleware.
The helpers here work with any span object that has `annotate`, `tag`,
`finish` and `context` methods, which the caller supplies.