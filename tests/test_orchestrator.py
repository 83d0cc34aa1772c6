from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from adapters.memory_store import InMemoryStore
from conftest import FakeBackend, make_config
from core.domain.enums import (
    ApiCategory,
    ApiProvider,
    DebtType,
    DepthLevel,
    InvestigationStatus,
    LawsuitRelevance,
    LegalBasis,
    ProgressStatus,
    QueryStatus,
    QueryType,
    TargetType,
)
from core.domain.errors import InvestigationNotFoundError, ProviderNotFoundError, UnsupportedQueryError
from core.domain.models import (
    AnalysisResult,
    DepthProviderMap,
    NormalizedCorporateLink,
    NormalizedDebt,
    NormalizedLawsuit,
    ProviderQuery,
    ProviderResult,
    RateLimitInfo,
)
from core.services.orchestrator import ANALYSIS_PENDING_NOTE, InvestigationOrchestrator, terminal_status
from core.services.registry import ProviderRegistry
from core.services.runtime import ProviderRuntime

pytestmark = pytest.mark.asyncio

_CNPJ = "11222333000181"


class FlakyProvider:
    """Proveedor cuyo `execute` lanza las primeras `failures` veces."""

    category = ApiCategory.JUDICIAL

    def __init__(self, name: ApiProvider, queries: Sequence[QueryType], failures: int) -> None:
        self.name = name
        self.display_name = name.value.title()
        self._queries = tuple(queries)
        self.failures = failures
        self.calls = 0

    def available_queries(self) -> Sequence[QueryType]:
        return self._queries

    async def is_configured(self) -> bool:
        return True

    async def execute(self, query: ProviderQuery) -> ProviderResult:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("connection reset")
        return ProviderResult(success=True, provider=self.name, query_type=query.query_type, data={"ok": True})

    async def estimate_cost(self, query_type: QueryType) -> float:
        return 0.0

    async def get_rate_limit(self) -> RateLimitInfo:
        return RateLimitInfo()

    def invalidate_config(self) -> None:
        pass


class RecordingCompliance:
    def __init__(self) -> None:
        self.calls: list[tuple[QueryType, str, LegalBasis]] = []

    async def log_query(self, query, result, user_id, legal_basis, *, query_record_id=None) -> None:
        self.calls.append((query.query_type, user_id, legal_basis))


class StaticAnalyzer:
    async def analyze(self, investigation_id: str) -> AnalysisResult:
        return AnalysisResult(
            risk_score=72.5,
            summary="Patrimonio rural relevante com execucoes fiscais ativas.",
            recommendations=["Pedir penhora das fazendas"],
            risk_classification="ALTO",
        )


class BrokenAnalyzer:
    async def analyze(self, investigation_id: str) -> AnalysisResult:
        raise RuntimeError("analysis backend offline")


def _cnpj_backend(**kwargs) -> FakeBackend:
    return FakeBackend(ApiProvider.BRASILAPI, [QueryType.CONSULTA_CNPJ], **kwargs)


def _lawsuit_backend(**kwargs) -> FakeBackend:
    return FakeBackend(ApiProvider.DATAJUD, [QueryType.CONSULTA_PROCESSO], category=ApiCategory.JUDICIAL, **kwargs)


async def _investigation(store, depth: DepthLevel = DepthLevel.BASICA):
    return await store.create_investigation(_CNPJ, TargetType.PJ, depth=depth)


async def test_unconfigured_scan_completes_with_mock_findings(store, registry_factory, settings):
    compliance = RecordingCompliance()
    registry = registry_factory(_cnpj_backend(), _lawsuit_backend())
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings, compliance_logger=compliance)
    investigation = await _investigation(store)

    progress = await orchestrator.run_scan(investigation.id)
    await orchestrator.tasks.drain()

    assert progress.status is ProgressStatus.COMPLETED
    assert (progress.total_queries, progress.completed_queries, progress.failed_queries) == (2, 2, 0)
    records = await store.list_query_records(investigation.id)
    assert {r.status for r in records} == {QueryStatus.MOCK}
    assert all(r.retention_until is not None for r in records)

    final = await store.get_investigation(investigation.id)
    assert final.status is InvestigationStatus.CONSULTAS_CONCLUIDAS
    assert final.total_cost == 0
    assert await store.list_lawsuits(investigation.id)
    assert await store.list_corporate_links(investigation.id)

    assert sorted(call[0].value for call in compliance.calls) == ["CONSULTA_CNPJ", "CONSULTA_PROCESSO"]
    assert {call[1:] for call in compliance.calls} == {("system", LegalBasis.PROTECAO_CREDITO)}


async def test_scan_where_every_real_call_fails_still_completes(store, registry_factory, settings):
    for provider in (ApiProvider.BRASILAPI, ApiProvider.DATAJUD):
        await store.upsert_provider_config(make_config(provider))
    registry = registry_factory(_cnpj_backend(fail_times=3), _lawsuit_backend(fail_times=3))
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    progress = await orchestrator.run_scan(investigation.id)

    assert progress.status is ProgressStatus.COMPLETED
    records = await store.list_query_records(investigation.id)
    assert all(r.status is QueryStatus.MOCK and r.error_message for r in records)


async def test_scan_with_only_raising_providers_fails(store, settings):
    registry = ProviderRegistry(
        [
            FlakyProvider(ApiProvider.BRASILAPI, [QueryType.CONSULTA_CNPJ], failures=99),
            FlakyProvider(ApiProvider.DATAJUD, [QueryType.CONSULTA_PROCESSO], failures=99),
        ]
    )
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings, analyzer=StaticAnalyzer())
    investigation = await _investigation(store)

    progress = await orchestrator.run_scan(investigation.id)
    await orchestrator.tasks.drain()

    assert progress.status is ProgressStatus.FAILED
    assert progress.failed_queries == 2
    final = await store.get_investigation(investigation.id)
    assert final.status is InvestigationStatus.FALHA
    assert final.risk_score is None
    records = await store.list_query_records(investigation.id)
    assert {r.status for r in records} == {QueryStatus.ERRO}
    assert all(r.error_message == "connection reset" for r in records)


async def test_unsuccessful_result_makes_scan_partial(store, registry_factory, settings):
    await store.upsert_provider_config(make_config(ApiProvider.BRASILAPI))
    registry = registry_factory(_cnpj_backend(success=False, result_fields={}), _lawsuit_backend())
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    progress = await orchestrator.run_scan(investigation.id)

    assert progress.status is ProgressStatus.PARTIAL
    assert (progress.completed_queries, progress.failed_queries) == (1, 1)
    statuses = {r.provider: r.status for r in await store.list_query_records(investigation.id)}
    assert statuses == {ApiProvider.BRASILAPI: QueryStatus.ERRO, ApiProvider.DATAJUD: QueryStatus.MOCK}
    assert (await store.get_investigation(investigation.id)).status is InvestigationStatus.CONSULTAS_CONCLUIDAS


async def test_real_result_without_findings_is_sem_dados(store, registry_factory, settings):
    await store.upsert_provider_config(make_config(ApiProvider.BRASILAPI, cost_per_query=0.3))
    registry = registry_factory(_cnpj_backend(result_fields={}), _lawsuit_backend())
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    progress = await orchestrator.run_scan(investigation.id)

    assert progress.status is ProgressStatus.COMPLETED
    records = {r.provider: r for r in await store.list_query_records(investigation.id)}
    assert records[ApiProvider.BRASILAPI].status is QueryStatus.SEM_DADOS
    assert (await store.get_investigation(investigation.id)).total_cost == pytest.approx(0.3)


async def test_analysis_runs_in_background(store, registry_factory, settings):
    registry = registry_factory(_cnpj_backend(), _lawsuit_backend())
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings, analyzer=StaticAnalyzer())
    investigation = await _investigation(store)

    await orchestrator.run_scan(investigation.id)
    await orchestrator.tasks.drain()

    final = await store.get_investigation(investigation.id)
    assert final.status is InvestigationStatus.CONCLUIDA
    assert final.risk_score == pytest.approx(72.5)
    assert final.recommendations == ["Pedir penhora das fazendas"]
    assert final.completed_at is not None


async def test_failed_analysis_leaves_pending_note(store, registry_factory, settings):
    registry = registry_factory(_cnpj_backend(), _lawsuit_backend())
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings, analyzer=BrokenAnalyzer())
    investigation = await _investigation(store)

    await orchestrator.run_scan(investigation.id)
    await orchestrator.tasks.drain()

    final = await store.get_investigation(investigation.id)
    assert final.status is InvestigationStatus.CONSULTAS_CONCLUIDAS
    assert final.notes.startswith(ANALYSIS_PENDING_NOTE)


async def test_retry_reuses_failed_records(store, registry_factory, runtime_factory, settings):
    flaky = FlakyProvider(ApiProvider.DATAJUD, [QueryType.CONSULTA_PROCESSO], failures=1)
    registry = ProviderRegistry([runtime_factory(_cnpj_backend()), flaky])
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    first = await orchestrator.run_scan(investigation.id)
    retried = await orchestrator.retry_failed_queries(investigation.id)
    again = await orchestrator.retry_failed_queries(investigation.id)

    assert first.status is ProgressStatus.PARTIAL
    assert (retried.status, retried.total_queries, retried.completed_queries) == (ProgressStatus.COMPLETED, 1, 1)
    assert (again.status, again.total_queries) == (ProgressStatus.COMPLETED, 0)
    records = await store.list_query_records(investigation.id)
    assert len(records) == 2
    assert {r.provider: r.status for r in records}[ApiProvider.DATAJUD] is QueryStatus.CONCLUIDA


async def test_progress_is_rebuilt_from_records(store, registry_factory, settings):
    registry = registry_factory(_cnpj_backend(), _lawsuit_backend())
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    await orchestrator.run_scan(investigation.id)
    progress = await orchestrator.get_progress(investigation.id)

    assert progress.status is ProgressStatus.COMPLETED
    assert (progress.total_queries, progress.completed_queries, progress.failed_queries) == (2, 2, 0)


async def test_unknown_investigation_is_reported(store, registry_factory, settings):
    orchestrator = InvestigationOrchestrator(store, registry_factory(_cnpj_backend()), settings=settings)

    with pytest.raises(InvestigationNotFoundError):
        await orchestrator.run_scan("missing")
    with pytest.raises(InvestigationNotFoundError):
        await orchestrator.get_progress("missing")


async def test_single_query_validations(store, registry_factory, settings):
    orchestrator = InvestigationOrchestrator(store, registry_factory(_lawsuit_backend()), settings=settings)
    investigation = await _investigation(store)

    with pytest.raises(UnsupportedQueryError):
        await orchestrator.execute_single_query(investigation.id, ApiProvider.DATAJUD, QueryType.CONSULTA_CNPJ)
    with pytest.raises(ProviderNotFoundError):
        await orchestrator.execute_single_query(investigation.id, ApiProvider.ESCAVADOR, QueryType.CONSULTA_PROCESSO)
    assert await store.list_query_records(investigation.id) == []


async def test_single_query_findings_are_deduplicated(store, registry_factory, settings):
    await store.upsert_provider_config(make_config(ApiProvider.DATAJUD))
    lawsuit = NormalizedLawsuit(
        case_number="0001234-56.2021.8.16.0017",
        court="TJPR",
        class_="Execucao Fiscal",
        role="REU",
        relevance=LawsuitRelevance.CRITICA,
        source_provider=ApiProvider.DATAJUD,
    )
    backend = _lawsuit_backend(result_fields={"normalized_lawsuits": [lawsuit]})
    orchestrator = InvestigationOrchestrator(store, registry_factory(backend), settings=settings)
    investigation = await _investigation(store)

    for _ in range(2):
        result = await orchestrator.execute_single_query(
            investigation.id, ApiProvider.DATAJUD, QueryType.CONSULTA_PROCESSO, {"tribunal": "tjpr"}
        )
        assert result.success and not result.is_mock

    assert len(await store.list_query_records(investigation.id)) == 2
    assert await store.list_lawsuits(investigation.id) == [lawsuit]
    records = await store.list_query_records(investigation.id)
    assert records[0].input_params["params"] == {"tribunal": "tjpr"}


async def test_estimate_scan_cost_uses_plan(store, registry_factory, settings):
    await store.upsert_provider_config(make_config(ApiProvider.DATAJUD, cost_per_query=1.25))
    orchestrator = InvestigationOrchestrator(
        store, registry_factory(_cnpj_backend(), _lawsuit_backend()), settings=settings
    )
    investigation = await _investigation(store)

    assert await orchestrator.estimate_scan_cost(investigation.id) == pytest.approx(1.25)


@pytest.mark.parametrize(
    ("total", "failed", "expected"),
    [
        (3, 0, ProgressStatus.COMPLETED),
        (0, 0, ProgressStatus.COMPLETED),
        (3, 1, ProgressStatus.PARTIAL),
        (3, 3, ProgressStatus.FAILED),
    ],
)
async def test_terminal_status(total, failed, expected):
    assert terminal_status(total, failed) is expected


async def test_retry_that_fails_again_keeps_investigation_status(store, runtime_factory, settings):
    always_down = FlakyProvider(ApiProvider.DATAJUD, [QueryType.CONSULTA_PROCESSO], failures=99)
    registry = ProviderRegistry([runtime_factory(_cnpj_backend()), always_down])
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    scanned = await orchestrator.run_scan(investigation.id)
    retried = await orchestrator.retry_failed_queries(investigation.id)

    assert scanned.status is ProgressStatus.PARTIAL
    assert (retried.status, retried.failed_queries) == (ProgressStatus.FAILED, 1)
    final = await store.get_investigation(investigation.id)
    assert final.status is InvestigationStatus.CONSULTAS_CONCLUIDAS
    assert final.completed_at is None
    assert (await orchestrator.get_progress(investigation.id)).status is ProgressStatus.PARTIAL
    assert await store.list_corporate_links(investigation.id)


class _DebtsTableDownStore(InMemoryStore):
    async def insert_debts(self, investigation_id, items):
        raise ConnectionError("debts table unavailable")


async def test_failed_collection_insert_does_not_block_others(settings, sleep):
    store = _DebtsTableDownStore([make_config(ApiProvider.ASSERTIVA)])
    debt = NormalizedDebt(
        debt_type=DebtType.PROTESTO,
        creditor="Banco do Brasil",
        original_value=1200.0,
        case_number="PROT-1",
        source_provider=ApiProvider.ASSERTIVA,
    )
    lawsuit = NormalizedLawsuit(
        case_number="5000123-45.2022.8.16.0001",
        court="TJPR",
        role="REU",
        source_provider=ApiProvider.ASSERTIVA,
    )
    link = NormalizedCorporateLink(
        company_name="Horizonte Participacoes Ltda",
        company_cnpj="11444777000161",
        role="Socio",
        source_provider=ApiProvider.ASSERTIVA,
    )
    backend = FakeBackend(
        ApiProvider.ASSERTIVA,
        [QueryType.CONSULTA_PROTESTO],
        result_fields={
            "normalized_debts": [debt],
            "normalized_lawsuits": [lawsuit],
            "normalized_corporate_links": [link],
        },
    )
    registry = ProviderRegistry([ProviderRuntime(backend, store, settings=settings, sleep=sleep)])
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings)
    investigation = await _investigation(store)

    result = await orchestrator.execute_single_query(investigation.id, ApiProvider.ASSERTIVA, QueryType.CONSULTA_PROTESTO)

    assert result.success
    assert await store.list_debts(investigation.id) == []
    assert await store.list_lawsuits(investigation.id) == [lawsuit]
    assert await store.list_corporate_links(investigation.id) == [link]
    (record,) = await store.list_query_records(investigation.id)
    assert record.status is QueryStatus.CONCLUIDA


class GateProvider(FlakyProvider):
    """Registra entradas y salidas; cede el loop para que el lote se solape."""

    def __init__(self, name: ApiProvider, events: list[tuple[str, ApiProvider]], *, raises: bool = False) -> None:
        super().__init__(name, [QueryType.CONSULTA_PROCESSO], failures=0)
        self._events = events
        self._raises = raises

    async def execute(self, query: ProviderQuery) -> ProviderResult:
        self._events.append(("enter", self.name))
        for _ in range(3):
            await asyncio.sleep(0)
        if self._raises:
            self._events.append(("raise", self.name))
            raise RuntimeError("tribunal offline")
        self._events.append(("exit", self.name))
        return ProviderResult(success=True, provider=self.name, query_type=query.query_type, data={"ok": True})


async def test_scan_runs_batches_of_five_in_order(store, settings):
    names = [
        ApiProvider.BRASILAPI,
        ApiProvider.CNPJA,
        ApiProvider.DATAJUD,
        ApiProvider.CVM_DADOS_ABERTOS,
        ApiProvider.BACEN,
        ApiProvider.ESCAVADOR,
        ApiProvider.INFOSIMPLES,
    ]
    events: list[tuple[str, ApiProvider]] = []
    registry = ProviderRegistry(
        GateProvider(name, events, raises=name is ApiProvider.CNPJA) for name in names
    )
    depth_map = {
        DepthLevel.BASICA: DepthProviderMap(providers=tuple(names), query_types=frozenset({QueryType.CONSULTA_PROCESSO}))
    }
    orchestrator = InvestigationOrchestrator(store, registry, settings=settings, depth_map=depth_map)
    investigation = await _investigation(store)

    progress = await orchestrator.run_scan(investigation.id)

    first_batch, second_batch = names[:5], names[5:]
    assert [name for kind, name in events[:5]] == first_batch
    assert all(kind == "enter" for kind, _ in events[:5])
    finished_first = [name for kind, name in events if kind in ("exit", "raise") and name in first_batch]
    assert sorted(finished_first) == sorted(first_batch)
    last_first_batch_finish = max(
        i for i, (kind, name) in enumerate(events) if kind in ("exit", "raise") and name in first_batch
    )
    first_second_batch_enter = min(i for i, (kind, name) in enumerate(events) if name in second_batch)
    assert last_first_batch_finish < first_second_batch_enter
    assert (progress.status, progress.total_queries, progress.failed_queries) == (ProgressStatus.PARTIAL, 7, 1)
    statuses = {r.provider: r.status for r in await store.list_query_records(investigation.id)}
    assert statuses[ApiProvider.CNPJA] is QueryStatus.ERRO
    assert statuses[ApiProvider.BACEN] is QueryStatus.CONCLUIDA
