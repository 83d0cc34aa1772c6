"""Runtime compartido de proveedores.

Por qué un wrapper y no una clase base:
- Los adaptadores solo implementan `execute_real` y `generate_mock`
  (`ProviderBackend`); todo lo transversal vive aquí y se aplica por
  composición a cualquier backend.
- Permite testear la política (caché, rate limit, reintentos, fallback)
  con backends falsos y un `sleep` inyectado.

`ProviderRuntime.execute` es total: nunca lanza por fallos del proveedor.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence, TypeVar

from core.config import AppSettings
from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.models import ProviderConfig, ProviderQuery, ProviderResult, RateLimitInfo
from core.interfaces.persistence import InvestigationStore
from core.interfaces.provider import InvestigationProvider, ProviderBackend

if TYPE_CHECKING:
    from core.services.cost_tracker import CostTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


def compute_backoff_delay(
    attempt: int,
    *,
    base_ms: int,
    jitter_ms: int,
    rng: random.Random | None = None,
) -> float:
    """Espera (segundos) tras el intento fallido número `attempt` (1-indexed).

    `base_ms * 2**(attempt-1)` más jitter uniforme en `[0, jitter_ms)`.
    """

    if attempt < 1:
        raise ValueError("attempt starts at 1")
    jitter = (rng or random).uniform(0, jitter_ms) if jitter_ms else 0.0
    return (base_ms * 2 ** (attempt - 1) + jitter) / 1000.0


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    base_ms: int,
    jitter_ms: int,
    sleep: SleepFn = asyncio.sleep,
    label: str = "call",
) -> T:
    """Ejecuta `fn` hasta `max_attempts` veces; relanza el último error."""

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as exc:
            logger.warning("[%s] attempt %d/%d failed: %s", label, attempt, max_attempts, exc)
            if attempt >= max_attempts:
                raise
            await sleep(compute_backoff_delay(attempt, base_ms=base_ms, jitter_ms=jitter_ms))
            attempt += 1


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class ProviderRuntime(InvestigationProvider):
    """Envuelve un `ProviderBackend` con la política compartida.

    Pasos de `execute`:
    1. Config (caché read-through con TTL; `invalidate_config` la limpia).
    2. Sin config usable -> mock.
    3. Rate limit (ventana de 60s y día local) -> mock con nota.
    4. Llamada real con reintentos; éxito -> costo + gasto mensual.
    5. Reintentos agotados -> mock con el mensaje de error original.
    """

    def __init__(
        self,
        backend: ProviderBackend,
        store: InvestigationStore,
        cost_tracker: CostTracker | None = None,
        settings: AppSettings | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._backend = backend
        self._store = store
        self._cost_tracker = cost_tracker
        self._settings = settings or AppSettings()
        self._sleep = sleep
        self._clock = clock

        self._config: ProviderConfig | None = None
        self._config_loaded_at: float | None = None

    # -- identidad -----------------------------------------------------------

    @property
    def backend(self) -> ProviderBackend:
        return self._backend

    @property
    def name(self) -> ApiProvider:
        return self._backend.name

    @property
    def display_name(self) -> str:
        return self._backend.display_name

    @property
    def category(self) -> ApiCategory:
        return self._backend.category

    def available_queries(self) -> Sequence[QueryType]:
        return tuple(self._backend.available_queries)

    def __repr__(self) -> str:
        return f"ProviderRuntime({self.name.value})"

    # -- configuración -------------------------------------------------------

    def invalidate_config(self) -> None:
        self._config = None
        self._config_loaded_at = None

    def _cache_fresh(self) -> bool:
        if self._config_loaded_at is None:
            return False
        ttl = self._settings.provider_config_ttl_seconds
        if ttl is None:
            return True
        return (time.monotonic() - self._config_loaded_at) < ttl

    async def load_config(self) -> ProviderConfig | None:
        if self._cache_fresh():
            return self._config
        try:
            config = await self._store.get_provider_config(self.name)
        except Exception:
            # Sin caché: el próximo acceso vuelve a intentar.
            logger.exception("[%s] failed to load provider config", self.name.value)
            return None
        self._config = config
        self._config_loaded_at = time.monotonic()
        return config

    async def is_configured(self) -> bool:
        config = await self.load_config()
        return config is not None and config.usable

    async def estimate_cost(self, query_type: QueryType) -> float:
        config = await self.load_config()
        if config is not None and config.cost_per_query:
            return float(config.cost_per_query)
        return float(self._settings.query_type_costs.get(query_type, 0.0))

    # -- rate limit ----------------------------------------------------------

    async def get_rate_limit(self) -> RateLimitInfo:
        config = await self.load_config()
        per_min = config.rate_limit_per_min if config else None
        per_day = config.rate_limit_per_day if config else None

        now = self._clock()
        minute_usage = 0
        day_usage = 0
        if per_min is not None or per_day is not None:
            try:
                minute_usage, day_usage = await asyncio.gather(
                    self._store.count_queries(self.name, now - timedelta(seconds=60)),
                    self._store.count_queries(self.name, _start_of_day(now)),
                )
            except Exception as exc:
                logger.warning("[%s] rate-limit usage unavailable, not limiting: %s", self.name.value, exc)
                minute_usage, day_usage = 0, 0

        minute_limited = per_min is not None and minute_usage >= per_min
        day_limited = per_day is not None and day_usage >= per_day

        resets_at: datetime | None = None
        if day_limited:
            resets_at = _start_of_day(now) + timedelta(days=1)
        elif minute_limited:
            resets_at = now.replace(second=0, microsecond=0) + timedelta(minutes=1)

        return RateLimitInfo(
            requests_per_minute=per_min,
            requests_per_day=per_day,
            current_minute_usage=minute_usage,
            current_day_usage=day_usage,
            is_limited=minute_limited or day_limited,
            resets_at=resets_at,
        )

    # -- ejecución -----------------------------------------------------------

    def _mock(self, query: ProviderQuery, *, error: str | None = None, elapsed_ms: int | None = None) -> ProviderResult:
        result = self._backend.generate_mock(query)
        update: dict[str, object] = {"is_mock": True, "cost": 0.0}
        if error is not None:
            update["error_message"] = error
        if elapsed_ms is not None:
            update["response_time_ms"] = elapsed_ms
        return result.model_copy(update=update)

    async def execute(self, query: ProviderQuery) -> ProviderResult:
        label = self.name.value
        config = await self.load_config()

        if config is None or not config.usable:
            logger.info("[%s] not configured, returning mock data", label)
            return self._mock(query)

        rate = await self.get_rate_limit()
        if rate.is_limited:
            logger.warning("[%s] rate limited, returning mock data", label)
            resets = rate.resets_at.isoformat() if rate.resets_at else "unknown"
            return self._mock(query, error=f"Rate limited. Resets at {resets}")

        if (
            self._settings.block_on_exhausted_budget
            and config.monthly_budget
            and config.monthly_spent >= config.monthly_budget
        ):
            logger.warning("[%s] monthly budget exhausted, returning mock data", label)
            return self._mock(query, error="Monthly budget exhausted. Queries blocked until next period")

        started = time.perf_counter()
        try:
            result = await retry_with_backoff(
                lambda: self._backend.execute_real(query, config),
                max_attempts=self._settings.retry_max_attempts,
                base_ms=self._settings.retry_base_delay_ms,
                jitter_ms=self._settings.retry_jitter_ms,
                sleep=self._sleep,
                label=label,
            )
        except Exception as exc:
            elapsed = int((time.perf_counter() - started) * 1000)
            logger.error("[%s] %s failed after retries (%dms): %s", label, query.query_type.value, elapsed, exc)
            return self._mock(query, error=str(exc) or exc.__class__.__name__, elapsed_ms=elapsed)

        elapsed = int((time.perf_counter() - started) * 1000)
        cost = await self.estimate_cost(query.query_type)
        await self._track_cost(cost)
        logger.info("[%s] %s completed in %dms (cost: R$%.4f)", label, query.query_type.value, elapsed, cost)

        return result.model_copy(update={"response_time_ms": elapsed, "cost": cost, "is_mock": False})

    async def _track_cost(self, cost: float) -> None:
        if self._cost_tracker is None or cost <= 0:
            return
        # Las alertas resultantes ya quedan logueadas por el tracker.
        try:
            await self._cost_tracker.track_cost(self.name, cost)
        except Exception:
            logger.exception("[%s] failed to track query cost", self.name.value)
