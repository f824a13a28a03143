"""Type definitions for the MCP HTTP transport."""

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

ResponseFormat = Literal["json", "text", "binary"]


@dataclass(frozen=True)
class HTTPTransportConfig:
    """Configuration for an HTTP transport instance."""

    base_url: str = ""
    """Base URL of the MCP server (e.g., "http://localhost:3000/api")"""

    timeout: float = 10.0
    """Default idle timeout in seconds for requests and streams"""

    headers: Mapping[str, str] = field(default_factory=dict)
    """Headers included in every request"""

    follow_redirects: bool = True
    """Whether redirects are followed or returned as errors"""

    max_redirects: int = 5
    """Maximum number of redirects to follow"""


class StructuredMessage(BaseModel):
    """A stream payload recognized as a JSON-RPC message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["message"] = "message"
    message: dict[str, Any]


class RawPayload(BaseModel):
    """A stream payload that is not a JSON-RPC message, kept verbatim."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["raw"] = "raw"
    data: str


DecodedEvent = Annotated[StructuredMessage | RawPayload, Field(discriminator="kind")]


class TransportAdapter(Protocol):
    """Protocol for transports that issue unary requests and open push streams.

    Examples:
        >>> body = await transport.request("http://h/api/status")
        >>> async for event in transport.open_stream("http://h/api/sse"):
        ...     print(event)
        >>> await transport.close()
    """

    async def request(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        timeout: float | None = None,
        response_format: ResponseFormat = "json",
    ) -> Any: ...

    def open_stream(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[StructuredMessage | RawPayload]: ...

    async def close(self) -> None: ...
