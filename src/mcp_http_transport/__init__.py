"""HTTP/SSE transport client for MCP (JSON-RPC) servers.

Exports:
  - HTTPTransport: start / send / request / open_stream / close
  - HTTPTransportConfig: connection settings
  - StructuredMessage, RawPayload, DecodedEvent: events read from a stream
  - TransportError and its subclasses
"""

from .cancellation import CancellationController, CancellationScope, IdleTimer
from .client import HTTPTransport
from .errors import (
    AbortedError,
    ConfigurationError,
    HTTPStatusError,
    NoResponseBodyError,
    NotStartedError,
    TransportError,
)
from .types import (
    DecodedEvent,
    HTTPTransportConfig,
    RawPayload,
    ResponseFormat,
    StructuredMessage,
    TransportAdapter,
)

__version__ = "0.1.0"
__all__ = [
    "AbortedError",
    "CancellationController",
    "CancellationScope",
    "ConfigurationError",
    "DecodedEvent",
    "HTTPStatusError",
    "HTTPTransport",
    "HTTPTransportConfig",
    "IdleTimer",
    "NoResponseBodyError",
    "NotStartedError",
    "RawPayload",
    "ResponseFormat",
    "StructuredMessage",
    "TransportAdapter",
    "TransportError",
]
