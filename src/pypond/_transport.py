"""HTTP fetcher for the pond sensor endpoint."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Protocol

import aiohttp
from pydantic import ValidationError

from pypond._constants import USER_AGENT
from pypond._redact import preview, redact_url
from pypond.exceptions import (
    PondDecodeError,
    PondFetchError,
    PondTimeoutError,
    PondTransportError,
)
from pypond.models.payload import RawPayload

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of one fetch: exactly one of ``payload`` / ``error`` is set."""

    payload: RawPayload | None = None
    error: PondFetchError | None = None

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.error is None):
            raise ValueError("FetchResult needs exactly one of payload or error")

    @property
    def ok(self) -> bool:
        return self.payload is not None


class Fetcher(Protocol):
    """Structural fetcher interface used by the cache.

    Implementations must return a :class:`FetchResult` for every failure
    instead of raising.
    """

    async def fetch(self, source_url: str, timeout: float) -> FetchResult:
        ...


class HttpFetcher:
    """Fetch the sensor JSON document with a caller-owned aiohttp session."""

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def fetch(self, source_url: str, timeout: float) -> FetchResult:
        """GET *source_url* once and decode the JSON object it returns.

        Only HTTP 200 counts as success; any other status, including other
        2xx codes, is reported as :class:`PondTransportError`.
        """
        try:
            payload = await self._get_payload(source_url, timeout)
        except PondFetchError as exc:
            return FetchResult(error=exc)
        return FetchResult(payload=payload)

    async def _get_payload(self, source_url: str, timeout: float) -> RawPayload:
        safe_url = redact_url(source_url)
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("GET %s", safe_url)

        try:
            async with self._http.get(
                source_url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise PondTransportError(
                        f"HTTP {resp.status} from {safe_url}: {preview(text)}",
                        status_code=resp.status,
                        url=safe_url,
                    )
        except PondTransportError:
            raise
        except TimeoutError as exc:
            raise PondTimeoutError(
                f"No response from {safe_url} within {timeout:g}s",
                url=safe_url,
            ) from exc
        except (aiohttp.ClientError, UnicodeDecodeError) as exc:
            raise PondTransportError(
                f"Request to {safe_url} failed: {exc}",
                url=safe_url,
            ) from exc

        try:
            body = json.loads(text)
        except (ValueError, RecursionError) as exc:  # JSONDecodeError, int digit limit, deep nesting
            raise PondDecodeError(
                f"Invalid JSON from {safe_url}: {preview(text)}",
                url=safe_url,
            ) from exc

        if not isinstance(body, dict):
            raise PondDecodeError(
                f"Expected a JSON object from {safe_url}, got {type(body).__name__}",
                url=safe_url,
            )

        _logger.debug("Payload from %s: %s", safe_url, preview(body))
        try:
            return RawPayload.from_api(body)
        except ValidationError as exc:
            raise PondDecodeError(
                f"Unusable payload from {safe_url}: {exc.error_count()} validation error(s)",
                url=safe_url,
            ) from exc
