"""Custom exception hierarchy for pypond."""

from __future__ import annotations


class PondError(Exception):
    """Base exception for all pypond errors."""


class PondConfigError(PondError):
    """Invalid or missing configuration.

    Configuration errors are never absorbed by the cache: they indicate a
    setup mistake and surface immediately at the call site.
    """


class UnknownMetricError(PondConfigError):
    """A read was requested for a metric name that does not exist."""

    def __init__(self, name: object) -> None:
        self.name = name
        super().__init__(f"Unknown metric: {name!r}")


class PondFetchError(PondError):
    """A single refresh from the sensor endpoint failed.

    Fetch errors are recoverable.  The fetcher returns them as values and
    the cache records the latest one for observability; they never reach
    ``read`` callers as exceptions.
    """

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class PondTransportError(PondFetchError):
    """HTTP-level failure (connection refused, DNS, non-200 status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, url=url)


class PondDecodeError(PondFetchError):
    """Response body is not a JSON object."""


class PondTimeoutError(PondFetchError):
    """The sensor endpoint did not answer within the configured timeout."""
