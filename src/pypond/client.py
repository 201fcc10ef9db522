"""High-level async client for a pond sensor endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

import aiohttp

from pypond._cache import TelemetryCache
from pypond._constants import DEFAULT_TIMEOUT
from pypond._redact import redact_url
from pypond._transport import Fetcher, HttpFetcher
from pypond.config import PondConfig
from pypond.exceptions import PondConfigError, PondError
from pypond.models.metrics import Metric, MetricValue
from pypond.models.reading import CacheStatus, MetricReading

_logger = logging.getLogger(__name__)


class PondClient:
    """Async client for a pond sensor endpoint.

    The client owns one :class:`TelemetryCache`; every read goes through it,
    so concurrent reads share a single HTTP request.

    Usage::

        async with PondClient(PondConfig(source_url="192.168.1.7")) as client:
            level = await client.read("waterLevel")
    """

    def __init__(
        self,
        config: PondConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._external_fetcher = fetcher is not None
        self._fetcher = fetcher
        self._cache: TelemetryCache | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PondClient:
        self._loop = asyncio.get_running_loop()
        if not self._external_fetcher:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._fetcher = HttpFetcher(self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._cache is not None:
            await self._cache.close()
            self._cache = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_fetcher:
            self._fetcher = None
        self._loop = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> PondConfig | None:
        return self._config

    def configure(
        self,
        source_url: str,
        *,
        correction_offset: float = 0.0,
        reference_distance: float = 0.0,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> PondConfig:
        """Install a new configuration.

        Other settings (fallbacks, name...) are kept from the current
        configuration.  The cached payload is discarded because it belongs
        to the previous source.
        """
        if self._cache is not None and self._cache.refresh_in_flight:
            raise PondConfigError("Cannot reconfigure while a refresh is in flight")
        base = self._config if self._config is not None else PondConfig()
        self._config = base.replace(
            source_url=source_url,
            correction_offset=correction_offset,
            reference_distance=reference_distance,
            timeout=timeout,
        )
        self._cache = None
        _logger.debug(
            "%s configured: url=%s correction_offset=%s reference_distance=%s timeout=%ss",
            self._config.name,
            redact_url(self._config.source_url),
            self._config.correction_offset,
            self._config.reference_distance,
            self._config.timeout,
        )
        return self._config

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_cache(self) -> TelemetryCache:
        if self._cache is not None:
            return self._cache
        if self._fetcher is None:
            raise PondError("Client not initialized. Use 'async with PondClient(...) as client:'")
        if self._config is None:
            raise PondConfigError("Client not configured. Pass a PondConfig or call configure() first")
        self._cache = TelemetryCache(self._fetcher, self._config)
        return self._cache

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read(self, metric: Metric | str) -> MetricValue:
        """Return the current value of *metric*, or ``NO_DATA``.

        Raises :class:`~pypond.exceptions.UnknownMetricError` for names that
        are not a :class:`Metric`.  Network failures never raise here.
        """
        resolved = Metric.parse(metric)
        _logger.debug("read requested metric=%s", resolved)
        return await self._require_cache().read(resolved)

    async def read_reading(self, metric: Metric | str) -> MetricReading:
        resolved = Metric.parse(metric)
        _logger.debug("read requested metric=%s", resolved)
        return await self._require_cache().read_reading(resolved)

    async def read_all(self, metrics: Iterable[Metric | str] | None = None) -> dict[Metric, MetricValue]:
        """Read *metrics* (default: all of them) from one refresh."""
        selected = list(Metric) if metrics is None else [Metric.parse(m) for m in metrics]
        return await self._require_cache().read_many(selected)

    def read_blocking(self, metric: Metric | str, timeout: float | None = None) -> MetricValue:
        """Read from a thread other than the client's event loop.

        Blocks the calling thread until the cache resolves the read.  The
        cache always resolves within the fetch timeout; *timeout* adds an
        extra bound and raises :class:`TimeoutError` when exceeded.
        """
        resolved = Metric.parse(metric)
        loop = self._loop
        if loop is None or loop.is_closed():
            raise PondError("Client not initialized. Use 'async with PondClient(...) as client:'")
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            raise PondError("read_blocking() called from the event loop thread; use 'await read()'")

        future = asyncio.run_coroutine_threadsafe(self.read(resolved), loop)
        try:
            return future.result(timeout)
        except TimeoutError:
            future.cancel()
            raise

    def status(self) -> CacheStatus:
        return self._require_cache().status()
