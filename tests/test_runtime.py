from __future__ import annotations

import random
from datetime import datetime, timedelta

import pytest

from adapters.memory_store import InMemoryStore
from conftest import FakeBackend, make_config, make_query
from core.config import AppSettings
from core.domain.enums import ApiProvider, QueryStatus, QueryType
from core.domain.models import QueryExecutionRecord
from core.services.runtime import ProviderRuntime, compute_backoff_delay, retry_with_backoff

_PROVIDER = ApiProvider.BRASILAPI


def _backend(**kwargs) -> FakeBackend:
    return FakeBackend(_PROVIDER, [QueryType.CONSULTA_CNPJ], **kwargs)


async def _executed_record(store, executed_at: datetime) -> None:
    await store.create_query_record(
        QueryExecutionRecord(
            id=f"r-{executed_at.timestamp()}",
            investigation_id="inv",
            provider=_PROVIDER,
            query_type=QueryType.CONSULTA_CNPJ,
            status=QueryStatus.CONCLUIDA,
            executed_at=executed_at,
        )
    )


@pytest.mark.asyncio
async def test_unconfigured_provider_returns_free_mock(runtime_factory):
    backend = _backend()
    runtime = runtime_factory(backend)

    result = await runtime.execute(make_query())

    assert result.is_mock and result.success
    assert result.cost == 0
    assert result.error_message is None
    assert backend.calls == 0


@pytest.mark.asyncio
async def test_inactive_provider_returns_mock(store, runtime_factory):
    await store.upsert_provider_config(make_config(_PROVIDER, is_active=False))
    backend = _backend()

    result = await runtime_factory(backend).execute(make_query())

    assert result.is_mock
    assert backend.calls == 0


@pytest.mark.asyncio
async def test_real_call_tracks_configured_cost(store, runtime_factory):
    await store.upsert_provider_config(make_config(_PROVIDER, cost_per_query=0.5, monthly_budget=100))
    runtime = runtime_factory(_backend())

    result = await runtime.execute(make_query())

    assert result.success and not result.is_mock
    assert result.cost == pytest.approx(0.5)
    config = await store.get_provider_config(_PROVIDER)
    assert config.monthly_spent == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_three_failures_fall_back_to_mock_with_error(store, runtime_factory, sleep):
    await store.upsert_provider_config(make_config(_PROVIDER, cost_per_query=1.0))
    backend = _backend(fail_times=3, error=RuntimeError("HTTP 503 from upstream"))

    result = await runtime_factory(backend).execute(make_query())

    assert backend.calls == 3
    assert result.is_mock and result.success
    assert result.cost == 0
    assert "HTTP 503" in result.error_message
    assert len(sleep.delays) == 2
    config = await store.get_provider_config(_PROVIDER)
    assert config.monthly_spent == 0


@pytest.mark.asyncio
async def test_transient_failure_is_retried(store, runtime_factory, sleep):
    await store.upsert_provider_config(make_config(_PROVIDER))
    backend = _backend(fail_times=1)

    result = await runtime_factory(backend).execute(make_query())

    assert backend.calls == 2
    assert not result.is_mock
    assert sleep.delays == [pytest.approx(1.0)]


def test_backoff_base_delay_doubles_per_attempt():
    delays = [compute_backoff_delay(attempt, base_ms=1000, jitter_ms=0) for attempt in (1, 2, 3)]

    assert delays == [1.0, 2.0, 4.0]


def test_backoff_jitter_stays_within_bounds():
    rng = random.Random(7)
    jitter_max = 0.5
    for _ in range(200):
        first = compute_backoff_delay(1, base_ms=1000, jitter_ms=500, rng=rng)
        second = compute_backoff_delay(2, base_ms=1000, jitter_ms=500, rng=rng)
        assert 1.0 <= first < 1.5
        assert 2.0 <= second < 2.5
        assert second >= 2 * first - 2 * jitter_max


def test_backoff_rejects_attempt_zero():
    with pytest.raises(ValueError):
        compute_backoff_delay(0, base_ms=1000, jitter_ms=0)


@pytest.mark.asyncio
async def test_retry_with_backoff_reraises_last_error(sleep):
    calls = []

    async def always_fails():
        calls.append(1)
        raise ValueError(f"boom {len(calls)}")

    with pytest.raises(ValueError, match="boom 2"):
        await retry_with_backoff(always_fails, max_attempts=2, base_ms=10, jitter_ms=0, sleep=sleep)
    assert sleep.delays == [pytest.approx(0.01)]


@pytest.mark.asyncio
async def test_minute_rate_limit_returns_mock(store, runtime_factory):
    await store.upsert_provider_config(make_config(_PROVIDER, rate_limit_per_min=2))
    now = datetime.now()
    await _executed_record(store, now - timedelta(seconds=5))
    await _executed_record(store, now - timedelta(seconds=10))
    backend = _backend()

    runtime = runtime_factory(backend)
    rate = await runtime.get_rate_limit()
    result = await runtime.execute(make_query())

    assert rate.is_limited and rate.current_minute_usage == 2
    assert result.is_mock
    assert result.error_message.startswith("Rate limited")
    assert backend.calls == 0


@pytest.mark.asyncio
async def test_old_queries_do_not_count_towards_minute_window(store, runtime_factory):
    await store.upsert_provider_config(make_config(_PROVIDER, rate_limit_per_min=1))
    await _executed_record(store, datetime.now() - timedelta(minutes=5))

    rate = await runtime_factory(_backend()).get_rate_limit()

    assert not rate.is_limited
    assert rate.current_minute_usage == 0


class _UsageUnavailableStore(InMemoryStore):
    async def count_queries(self, provider, since):
        raise ConnectionError("usage table locked")


@pytest.mark.asyncio
async def test_unreadable_usage_counts_do_not_limit(sleep):
    store = _UsageUnavailableStore([make_config(_PROVIDER, rate_limit_per_min=1, rate_limit_per_day=1)])
    backend = _backend()
    runtime = ProviderRuntime(backend, store, settings=AppSettings(), sleep=sleep)

    rate = await runtime.get_rate_limit()
    result = await runtime.execute(make_query())

    assert not rate.is_limited
    assert (rate.current_minute_usage, rate.current_day_usage) == (0, 0)
    assert backend.calls == 1
    assert not result.is_mock


@pytest.mark.asyncio
async def test_retry_with_backoff_requires_an_attempt(sleep):
    async def never_called():
        raise AssertionError("should not run")

    with pytest.raises(ValueError):
        await retry_with_backoff(never_called, max_attempts=0, base_ms=0, jitter_ms=0, sleep=sleep)


@pytest.mark.asyncio
async def test_exhausted_budget_blocks_only_when_enabled(store, sleep):
    await store.upsert_provider_config(make_config(_PROVIDER, monthly_budget=10, monthly_spent=10))
    backend = _backend()

    lenient = ProviderRuntime(backend, store, settings=AppSettings(), sleep=sleep)
    strict = ProviderRuntime(backend, store, settings=AppSettings(block_on_exhausted_budget=True), sleep=sleep)

    assert not (await lenient.execute(make_query())).is_mock
    blocked = await strict.execute(make_query())
    assert blocked.is_mock
    assert "budget" in blocked.error_message.lower()


@pytest.mark.asyncio
async def test_config_cache_until_invalidated(store, runtime_factory):
    runtime = runtime_factory(_backend())
    assert not await runtime.is_configured()

    await store.upsert_provider_config(make_config(_PROVIDER))
    assert not await runtime.is_configured()

    runtime.invalidate_config()
    assert await runtime.is_configured()


@pytest.mark.asyncio
async def test_config_cache_ttl(store, sleep):
    cached = ProviderRuntime(_backend(), store, settings=AppSettings(provider_config_ttl_seconds=3600), sleep=sleep)
    expired = ProviderRuntime(_backend(), store, settings=AppSettings(provider_config_ttl_seconds=0), sleep=sleep)
    assert not await cached.is_configured()
    assert not await expired.is_configured()

    await store.upsert_provider_config(make_config(_PROVIDER))

    assert not await cached.is_configured()
    assert await expired.is_configured()


@pytest.mark.asyncio
async def test_estimate_cost_falls_back_to_query_type_table(store):
    settings = AppSettings(query_type_costs={QueryType.CONSULTA_CNPJ: 0.25})
    runtime = ProviderRuntime(_backend(), store, settings=settings)

    assert await runtime.estimate_cost(QueryType.CONSULTA_CNPJ) == pytest.approx(0.25)
    assert await runtime.estimate_cost(QueryType.CONSULTA_PROCESSO) == 0.0
