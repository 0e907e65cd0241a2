import ipaddress
from datetime import datetime, timedelta, timezone

import pytest

from zipkincore.ids import TraceID
from zipkincore.model import (
    Annotation,
    Endpoint,
    InvalidDurationError,
    InvalidSpanIDError,
    InvalidTimestampError,
    InvalidTraceIDError,
    Kind,
    ModelError,
    SpanContext,
    SpanModel,
    endpoint_is_empty,
)


def _now():
    return datetime.now(timezone.utc)


def test_annotation_negative_timestamp():
    with pytest.raises(ModelError):
        SpanModel.from_json('{"annotations":[{"timestamp":-1}]}')


def test_annotation_zero_timestamp():
    with pytest.raises(InvalidTimestampError):
        SpanModel.from_json('{"annotations":[{"timestamp":0}]}')


def test_annotation_round_trip():
    ann = Annotation(timestamp=datetime(2020, 1, 2, 3, 4, 5, 6, tzinfo=timezone.utc), value="ev")
    assert Annotation.from_dict(ann.to_dict()) == ann


def test_empty_endpoint():
    assert endpoint_is_empty(None) is True
    assert Endpoint().empty() is True
    assert Endpoint(ipv4=ipaddress.IPv4Address("0.0.0.0")).empty() is False
    assert Endpoint(ipv6=ipaddress.IPv6Address("::")).empty() is False


def test_endpoint_to_dict_lowercases_and_omits():
    ep = Endpoint(service_name="MyService", ipv4="127.0.0.1", port=8081)
    assert ep.to_dict() == {"serviceName": "myservice", "ipv4": "127.0.0.1", "port": 8081}
    assert Endpoint().to_dict() == {}


def test_endpoint_invalid_port():
    with pytest.raises(ValueError):
        Endpoint(port=65536)


def test_span_json_round_trip():
    timestamp = _now() - timedelta(milliseconds=100)
    ann_time = _now() - timedelta(milliseconds=90)
    tags = {"myKey": "myValue", "another": "tag"}
    span1 = SpanModel(
        context=SpanContext(
            trace_id=TraceID(high=1001, low=1002),
            id=1004,
            parent_id=1003,
            debug=True,
            sampled=True,
            err=RuntimeError("dummy"),
        ),
        name="myMethod",
        kind=Kind.SERVER,
        timestamp=timestamp,
        duration=50_000_000,
        shared=True,
        local_endpoint=Endpoint(
            service_name="myService",
            ipv4=ipaddress.IPv4Address("127.0.0.1"),
            ipv6=ipaddress.IPv6Address("::1"),
        ),
        remote_endpoint=None,
        annotations=[Annotation(ann_time, "myAnnotation")],
        tags=tags,
    )

    span2 = SpanModel.from_json(span1.to_json())

    expected = SpanModel(
        context=SpanContext(
            trace_id=TraceID(high=1001, low=1002),
            id=1004,
            parent_id=1003,
            debug=True,
        ),
        name="mymethod",
        kind=Kind.SERVER,
        timestamp=timestamp,
        duration=50_000_000,
        shared=True,
        local_endpoint=Endpoint(
            service_name="myservice",
            ipv4=ipaddress.IPv4Address("127.0.0.1"),
            ipv6=ipaddress.IPv6Address("::1"),
        ),
        annotations=[Annotation(ann_time, "myAnnotation")],
        tags=dict(tags),
    )
    assert span2 == expected


def test_minimal_span_dict():
    span = SpanModel(context=SpanContext(trace_id=TraceID(low=1), id=2))
    assert span.to_dict() == {"traceId": "0000000000000001", "id": "0000000000000002"}


def test_empty_trace_id():
    with pytest.raises(InvalidTraceIDError):
        SpanModel.from_json('{"traceId":"","id":"1"}')


def test_empty_span_id():
    with pytest.raises(InvalidSpanIDError):
        SpanModel.from_json('{"traceId":"1","id":""}')


def test_span_empty_timestamp():
    span1 = SpanModel(context=SpanContext(trace_id=TraceID(low=1), id=1))
    span2 = SpanModel.from_json(span1.to_json())
    assert span2.timestamp is None


@pytest.mark.parametrize(
    "nano, micro",
    [
        (0, 0),
        (1, 1000),
        (999, 1000),
        (1000, 1000),
        (1001, 1000),
        (1499, 1000),
        (1500, 2000),
        (2000, 2000),
        (2001, 2000),
        (2499, 2000),
        (2500, 3000),
        (2999, 3000),
        (3000, 3000),
    ],
)
def test_span_duration_rounding(nano, micro):
    span = SpanModel(
        context=SpanContext(trace_id=TraceID(low=1), id=1),
        timestamp=_now(),
        duration=nano,
    )
    span2 = SpanModel.from_json(span.to_json())
    assert span2.duration == micro


def test_span_negative_duration():
    with pytest.raises(ModelError):
        SpanModel.from_json('{"duration":-1}')

    span = SpanModel(
        context=SpanContext(trace_id=TraceID(low=1), id=1),
        timestamp=_now(),
        duration=-1,
    )
    with pytest.raises(InvalidDurationError) as info:
        span.to_json()
    assert str(info.value) == "valid duration required"


def test_span_negative_timestamp():
    with pytest.raises(ModelError):
        SpanModel.from_json('{"timestamp":-1}')

    span = SpanModel(
        context=SpanContext(trace_id=TraceID(low=1), id=1),
        timestamp=datetime(1969, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
    )
    with pytest.raises(InvalidTimestampError) as info:
        span.to_json()
    assert str(info.value) == "valid annotation timestamp required"


def test_empty_endpoints_dropped_on_decode():
    span = SpanModel.from_json('{"traceId":"1","id":"1","localEndpoint":{},"remoteEndpoint":{}}')
    assert span.local_endpoint is None
    assert span.remote_endpoint is None


def test_invalid_json_text():
    with pytest.raises(ModelError):
        SpanModel.from_json("{not json")


def test_unknown_kind_rejected():
    with pytest.raises(ModelError):
        SpanModel.from_json('{"traceId":"1","id":"1","kind":"SIDEWAYS"}')


def test_kind_values():
    assert Kind("CLIENT") is Kind.CLIENT
    assert SpanModel(kind="PRODUCER").kind is Kind.PRODUCER