"""Error types raised by the HTTP transport."""


class TransportError(Exception):
    """Base error for every failure surfaced by the transport.

    Attributes:
        code: Machine-readable error code (e.g. "HTTP_ERROR")
    """

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {str(self)!r})"


class ConfigurationError(TransportError):
    """The configured base address cannot be turned into an endpoint URL."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIGURATION_ERROR")


class NotStartedError(TransportError):
    """A message was sent before ``start()`` resolved the endpoint."""

    def __init__(self, message: str = "Transport not started or endpoint not set") -> None:
        super().__init__(message, "NOT_STARTED")


class HTTPStatusError(TransportError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, reason_phrase: str) -> None:
        super().__init__(f"HTTP error {status_code}: {reason_phrase}", "HTTP_ERROR")
        self.status_code = status_code
        self.reason_phrase = reason_phrase


class NoResponseBodyError(TransportError):
    """A stream was accepted but the response carries no readable body."""

    def __init__(self, message: str = "Response body is empty") -> None:
        super().__init__(message, "NO_RESPONSE_BODY")


class AbortedError(TransportError):
    """The operation's cancellation scope fired (idle timeout or close)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Operation aborted: {reason}", "ABORTED")
        self.reason = reason
