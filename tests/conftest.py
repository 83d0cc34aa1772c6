"""Fakes compartidos: backends programables, sleep instantáneo y store en memoria."""

from __future__ import annotations

from typing import Sequence

import pytest

from adapters.memory_store import InMemoryStore
from core.config import AppSettings
from core.domain.enums import ApiCategory, ApiProvider, QueryType, TargetType
from core.domain.models import ProviderConfig, ProviderQuery, ProviderResult
from core.services.cost_tracker import CostTracker
from core.services.mock_data import generate_mock_result
from core.services.registry import ProviderRegistry
from core.services.runtime import ProviderRuntime


class FakeBackend:
    """Backend cuyo `execute_real` falla `fail_times` veces y luego responde."""

    def __init__(
        self,
        name: ApiProvider,
        queries: Sequence[QueryType],
        *,
        fail_times: int = 0,
        error: Exception | None = None,
        result_fields: dict | None = None,
        success: bool = True,
        category: ApiCategory = ApiCategory.CADASTRAL,
    ) -> None:
        self.name = name
        self.display_name = name.value.title()
        self.category = category
        self.available_queries = tuple(queries)
        self.fail_times = fail_times
        self.error = error or RuntimeError("upstream down")
        self.result_fields = result_fields if result_fields is not None else {"data": {"ok": True}}
        self.success = success
        self.calls = 0

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        self.calls += 1
        if self.calls <= self.fail_times:
            raise self.error
        return ProviderResult(success=self.success, provider=self.name, query_type=query.query_type, **self.result_fields)

    def generate_mock(self, query: ProviderQuery) -> ProviderResult:
        return generate_mock_result(self.name, query)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_config(provider: ApiProvider, **overrides) -> ProviderConfig:
    fields = {
        "provider": provider,
        "display_name": provider.value.title(),
        "category": ApiCategory.CADASTRAL,
        "api_key": "secret",
        "is_configured": True,
    }
    fields.update(overrides)
    return ProviderConfig(**fields)


def make_query(query_type: QueryType = QueryType.CONSULTA_CNPJ, document: str = "11222333000181") -> ProviderQuery:
    target_type = TargetType.PF if len(document) == 11 else TargetType.PJ
    return ProviderQuery(query_type=query_type, target_document=document, target_type=target_type)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        retry_max_attempts=3,
        retry_base_delay_ms=1000,
        retry_jitter_ms=0,
        scan_batch_size=5,
        provider_config_ttl_seconds=None,
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def runtime_factory(store: InMemoryStore, settings: AppSettings, sleep: RecordingSleep):
    """Arma runtimes sobre el mismo store/tracker, con sleep instantáneo."""

    tracker = CostTracker(store, settings)

    def _build(backend: FakeBackend) -> ProviderRuntime:
        return ProviderRuntime(backend, store, tracker, settings, sleep=sleep)

    return _build


@pytest.fixture
def registry_factory(runtime_factory):
    def _build(*backends: FakeBackend) -> ProviderRegistry:
        return ProviderRegistry(runtime_factory(backend) for backend in backends)

    return _build
