"""Streaming module for the MCP HTTP transport.

This module provides the incremental SSE framing used by
``HTTPTransport.open_stream`` and the pure classification of payloads
into decoded events.
"""

from .sse import SSEDecoder, classify_payload, is_message_shaped

__all__ = ["SSEDecoder", "classify_payload", "is_message_shaped"]
