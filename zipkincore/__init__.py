"""Zipkin V2 span model, identifiers, ID generators and tracing helpers."""

__version__ = "0.1.0"

__all__ = [
    "context",
    "endpoint",
    "httptrace",
    "idgenerator",
    "ids",
    "model",
    "noop",
]