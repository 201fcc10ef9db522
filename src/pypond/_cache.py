"""Read-through telemetry cache with request coalescing.

Every read registers a waiter future.  The first waiter of a cycle starts a
single refresh task; later waiters ride along until that task completes.
Completion updates :class:`CacheState` and resolves all waiters of the cycle
from the same payload snapshot, without awaiting in between.  All state is
confined to one event loop, which is what serializes the mutations.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from pypond._transport import FetchResult, Fetcher
from pypond.config import PondConfig
from pypond.exceptions import PondFetchError
from pypond.models.metrics import Metric, MetricSpec, MetricValue, build_metric_specs
from pypond.models.payload import RawPayload
from pypond.models.reading import CacheStatus, MetricReading, ReadingSource

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _ReadWaiter:
    """A pending read registered against the next completed refresh."""

    metric: Metric
    future: asyncio.Future[MetricReading]
    created_at: float = field(default_factory=time.monotonic)


@dataclass
class CacheState:
    """Mutable cache state.  Only :class:`TelemetryCache` touches it."""

    last_payload: RawPayload | None = None
    last_fetch_error: PondFetchError | None = None
    refresh_in_flight: bool = False
    waiters: list[_ReadWaiter] = field(default_factory=list)
    last_success_at: float | None = None
    last_attempt_at: float | None = None
    fetch_count: int = 0
    failure_count: int = 0
    failure_streak: int = 0
    last_values: dict[Metric, float] = field(default_factory=dict)


class TelemetryCache:
    """Coalescing read-through cache in front of a :class:`Fetcher`.

    Usage::

        cache = TelemetryCache(fetcher, config)
        value = await cache.read("waterLevel")
    """

    def __init__(
        self,
        fetcher: Fetcher,
        config: PondConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._config = config
        self._specs: Mapping[Metric, MetricSpec] = build_metric_specs(config)
        self._clock = clock
        self._state = CacheState()
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def config(self) -> PondConfig:
        return self._config

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def refresh_in_flight(self) -> bool:
        return self._state.refresh_in_flight

    def spec(self, metric: Metric | str) -> MetricSpec:
        """Return the :class:`MetricSpec` for *metric* or raise ``UnknownMetricError``."""
        return self._specs[Metric.parse(metric)]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read(self, metric: Metric | str) -> MetricValue:
        """Return the current value of *metric*, or ``NO_DATA``."""
        reading = await self.read_reading(metric)
        return reading.metric_value

    async def read_reading(self, metric: Metric | str) -> MetricReading:
        """Like :meth:`read` but with provenance attached."""
        future = self._enqueue(Metric.parse(metric))
        return await future

    async def read_many(self, metrics: Iterable[Metric | str]) -> dict[Metric, MetricValue]:
        """Read several metrics in one refresh cycle."""
        resolved = [Metric.parse(m) for m in metrics]
        futures = {metric: self._enqueue(metric) for metric in dict.fromkeys(resolved)}
        results: dict[Metric, MetricValue] = {}
        for metric, future in futures.items():
            reading = await future
            results[metric] = reading.metric_value
        return results

    def _enqueue(self, metric: Metric) -> asyncio.Future[MetricReading]:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[MetricReading] = loop.create_future()
        self._state.waiters.append(_ReadWaiter(metric=metric, future=future))

        if self._state.refresh_in_flight:
            _logger.debug(
                "read metric=%s joined in-flight refresh (%d waiting)",
                metric,
                len(self._state.waiters),
            )
        else:
            _logger.debug("read metric=%s starting refresh", metric)
            self._state.refresh_in_flight = True
            self._refresh_task = loop.create_task(self._refresh(), name="pypond-refresh")
        return future

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    async def _refresh(self) -> None:
        self._state.last_attempt_at = self._clock()
        self._state.fetch_count += 1
        result: FetchResult | None = None
        try:
            result = await self._fetcher.fetch(self._config.source_url, self._config.timeout)
        except asyncio.CancelledError:
            result = FetchResult(error=PondFetchError("Refresh cancelled", url=self._config.source_url))
            raise
        except Exception as exc:  # fetchers must not raise; contain it anyway
            _logger.debug("Fetcher raised instead of returning a result", exc_info=True)
            result = FetchResult(error=PondFetchError(f"Fetcher failed: {exc}", url=self._config.source_url))
        finally:
            if result is None:
                result = FetchResult(error=PondFetchError("Refresh aborted", url=self._config.source_url))
            self._complete(result)

    def _complete(self, result: FetchResult) -> None:
        state = self._state
        if result.payload is not None:
            state.last_payload = result.payload
            state.last_fetch_error = None
            state.last_success_at = self._clock()
            if state.failure_streak:
                _logger.info(
                    "%s: sensor reachable again after %d failed refresh(es)",
                    self._config.name,
                    state.failure_streak,
                )
            state.failure_streak = 0
        else:
            state.last_fetch_error = result.error
            state.failure_count += 1
            state.failure_streak += 1
            level = logging.WARNING if state.failure_streak == 1 else logging.DEBUG
            _logger.log(
                level,
                "%s: refresh failed, serving cached values: %s",
                self._config.name,
                result.error,
            )

        waiters = state.waiters
        state.waiters = []
        state.refresh_in_flight = False
        self._refresh_task = None

        payload = state.last_payload
        for waiter in waiters:
            if waiter.future.done():
                continue
            waiter.future.set_result(self._resolve(waiter.metric, payload))

    def _resolve(self, metric: Metric, payload: RawPayload | None) -> MetricReading:
        spec = self._specs[metric]
        error = self._state.last_fetch_error
        error_text = str(error) if error is not None else None
        age = None
        if payload is not None and self._state.last_success_at is not None:
            age = max(0.0, self._clock() - self._state.last_success_at)

        if payload is not None:
            value = spec.derive(payload)
            if value is not None:
                self._state.last_values[metric] = value
                source = ReadingSource.FRESH if error is None else ReadingSource.STALE
                return MetricReading(metric=metric, value=value, source=source, error=error_text, payload_age=age)
            if spec.keep_last_known and metric in self._state.last_values:
                return MetricReading(
                    metric=metric,
                    value=self._state.last_values[metric],
                    source=ReadingSource.LAST_KNOWN,
                    error=error_text,
                    payload_age=age,
                )

        if spec.stale_fallback is not None:
            return MetricReading(
                metric=metric,
                value=spec.stale_fallback,
                source=ReadingSource.FALLBACK,
                error=error_text,
                payload_age=age,
            )
        return MetricReading(
            metric=metric,
            value=None,
            source=ReadingSource.NO_DATA,
            error=error_text,
            payload_age=age,
        )

    # ------------------------------------------------------------------
    # Observability / lifecycle
    # ------------------------------------------------------------------

    def status(self) -> CacheStatus:
        state = self._state
        last_success_age = None
        if state.last_success_at is not None:
            last_success_age = max(0.0, self._clock() - state.last_success_at)
        return CacheStatus(
            has_payload=state.last_payload is not None,
            refresh_in_flight=state.refresh_in_flight,
            pending_waiters=sum(1 for w in state.waiters if not w.future.done()),
            fetch_count=state.fetch_count,
            failure_count=state.failure_count,
            last_error=str(state.last_fetch_error) if state.last_fetch_error is not None else None,
            last_success_age=last_success_age,
        )

    async def close(self) -> None:
        """Cancel an in-flight refresh.  Its waiters still resolve (from cached data)."""
        task = self._refresh_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        # A task cancelled before its first step never reaches _complete.
        if self._state.refresh_in_flight:
            self._complete(FetchResult(error=PondFetchError("Refresh cancelled", url=self._config.source_url)))
