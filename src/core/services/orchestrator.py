"""Orquestación de scans de investigación.

Este módulo concentra el flujo completo de un scan para que la CLI (u otra
entrada: API, jobs, tests) solo delegue:

1. Carga la investigación y la marca EM_ANDAMENTO.
2. Construye el plan (planner) según el nivel de profundidad.
3. Ejecuta el plan en lotes de `scan_batch_size` consultas concurrentes; un
   lote espera a todas sus consultas antes de empezar el siguiente y un fallo
   nunca cancela a sus hermanas.
4. Por consulta: registro de ejecución, hallazgos normalizados (cada
   colección por separado, omitiendo duplicados) y log LGPD en segundo plano.
5. Recalcula totales desde el store y fija el estado terminal.
6. Entrega la investigación al analizador en segundo plano; si falla, queda
   en CONSULTAS_CONCLUIDAS con la nota de análisis pendiente.

Errores por consulta nunca abortan el scan; identificadores desconocidos sí
llegan al llamador.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Sequence, TypeVar

from core.config import AppSettings
from core.domain.enums import (
    COMPLETED_QUERY_STATUSES,
    FAILED_QUERY_STATUSES,
    RUNNING_QUERY_STATUSES,
    ApiProvider,
    DepthLevel,
    InvestigationStatus,
    LegalBasis,
    ProgressStatus,
    QueryStatus,
    QueryType,
)
from core.domain.errors import InvestigationNotFoundError, UnsupportedQueryError
from core.domain.models import (
    DepthProviderMap,
    Investigation,
    InvestigationProgress,
    ProviderQuery,
    ProviderResult,
    QueryExecutionRecord,
)
from core.domain.retention import retention_deadline
from core.interfaces.collaborators import ComplianceLogger, InvestigationAnalyzer
from core.interfaces.persistence import InvestigationStore
from core.services.background import BackgroundTaskRunner
from core.services.cost_tracker import CostTracker
from core.services.planner import build_query_plan
from core.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYSIS_PENDING_NOTE = "Consultas concluidas; analise pendente"


def batched(items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def terminal_status(total: int, failed: int) -> ProgressStatus:
    """COMPLETED sin fallos, FAILED si todo falló, PARTIAL en otro caso."""

    if failed == 0:
        return ProgressStatus.COMPLETED
    if failed >= total:
        return ProgressStatus.FAILED
    return ProgressStatus.PARTIAL


def _record_status(result: ProviderResult) -> QueryStatus:
    if not result.success:
        return QueryStatus.ERRO
    if result.is_mock:
        return QueryStatus.MOCK
    if result.finding_count == 0 and not result.data:
        return QueryStatus.SEM_DADOS
    return QueryStatus.CONCLUIDA


class InvestigationOrchestrator:
    def __init__(
        self,
        store: InvestigationStore,
        registry: ProviderRegistry,
        cost_tracker: CostTracker | None = None,
        settings: AppSettings | None = None,
        *,
        compliance_logger: ComplianceLogger | None = None,
        analyzer: InvestigationAnalyzer | None = None,
        tasks: BackgroundTaskRunner | None = None,
        depth_map: Mapping[DepthLevel, DepthProviderMap] | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._settings = settings or AppSettings()
        self._cost_tracker = cost_tracker or CostTracker(store, self._settings)
        self._compliance_logger = compliance_logger
        self._analyzer = analyzer
        self._tasks = tasks or BackgroundTaskRunner()
        self._depth_map = depth_map
        self._live: dict[str, InvestigationProgress] = {}

    @property
    def tasks(self) -> BackgroundTaskRunner:
        return self._tasks

    # -- helpers -------------------------------------------------------------

    async def _load(self, investigation_id: str) -> Investigation:
        investigation = await self._store.get_investigation(investigation_id)
        if investigation is None:
            raise InvestigationNotFoundError(investigation_id)
        return investigation

    def _resolve_actor(
        self, investigation: Investigation, user_id: str | None, legal_basis: LegalBasis | None
    ) -> tuple[str, LegalBasis]:
        return (
            user_id or investigation.requested_by or self._settings.default_user_id,
            legal_basis or investigation.legal_basis or self._settings.default_legal_basis,
        )

    async def _update_investigation(self, investigation_id: str, **changes: Any) -> Investigation:
        current = await self._load(investigation_id)
        updated = current.model_copy(update=changes)
        await self._store.save_investigation(updated)
        return updated

    # -- ejecución por consulta ---------------------------------------------

    async def _dispatch(
        self,
        investigation: Investigation,
        provider_name: ApiProvider,
        query: ProviderQuery,
        *,
        user_id: str,
        legal_basis: LegalBasis,
        record: QueryExecutionRecord | None = None,
    ) -> tuple[QueryExecutionRecord, ProviderResult]:
        """execute -> registro -> hallazgos -> log LGPD.

        Lanza solo si el proveedor no está registrado o si falla el propio
        registro de ejecución; en ese caso el registro queda en ERRO.
        """

        provider = self._registry.require(provider_name)

        if record is None:
            record = await self._store.create_query_record(
                QueryExecutionRecord(
                    id=uuid.uuid4().hex,
                    investigation_id=investigation.id,
                    provider=provider_name,
                    query_type=query.query_type,
                    input_params={
                        "target_document": query.target_document,
                        "target_type": query.target_type.value,
                        "params": dict(query.params),
                    },
                    status=QueryStatus.EXECUTANDO,
                    legal_basis=legal_basis,
                    executed_by=user_id,
                )
            )
        else:
            record = record.model_copy(
                update={"status": QueryStatus.EXECUTANDO, "error_message": None, "executed_by": user_id}
            )
            await self._store.update_query_record(record)

        live = self._live.get(investigation.id)
        if live is not None:
            live.current_provider = provider_name

        try:
            result = await provider.execute(query)
        except Exception as exc:
            now = datetime.now()
            await self._store.update_query_record(
                record.model_copy(
                    update={
                        "status": QueryStatus.ERRO,
                        "error_message": str(exc) or exc.__class__.__name__,
                        "executed_at": now,
                        "retention_until": retention_deadline(query.query_type, now),
                    }
                )
            )
            raise

        now = datetime.now()
        record = record.model_copy(
            update={
                "status": _record_status(result),
                "raw_response": result.raw_response,
                "parsed_data": result.data,
                "response_time_ms": result.response_time_ms,
                "cost": result.cost,
                "is_mock": result.is_mock,
                "error_message": result.error_message,
                "executed_at": now,
                "retention_until": retention_deadline(query.query_type, now),
            }
        )
        await self._store.update_query_record(record)
        await self._persist_findings(investigation.id, record.id, result)

        if self._compliance_logger is not None:
            self._tasks.submit(
                self._compliance_logger.log_query(
                    query, result, user_id, legal_basis, query_record_id=record.id
                ),
                name=f"lgpd:{record.id}",
            )
        return record, result

    async def _persist_findings(self, investigation_id: str, record_id: str, result: ProviderResult) -> None:
        assets = [
            asset if asset.source_query_id else asset.model_copy(update={"source_query_id": record_id})
            for asset in result.normalized_assets
        ]
        collections = (
            ("assets", assets, self._store.insert_assets),
            ("debts", result.normalized_debts, self._store.insert_debts),
            ("lawsuits", result.normalized_lawsuits, self._store.insert_lawsuits),
            ("corporate_links", result.normalized_corporate_links, self._store.insert_corporate_links),
        )
        for label, items, insert in collections:
            if not items:
                continue
            try:
                inserted = await insert(investigation_id, items)
            except Exception:
                logger.exception(
                    "[%s] failed to persist %d %s for query %s",
                    result.provider.value,
                    len(items),
                    label,
                    record_id,
                )
                continue
            logger.debug("[%s] persisted %d/%d %s", result.provider.value, inserted, len(items), label)

    async def _recompute_totals(self, investigation_id: str) -> Investigation:
        assets_total, debts_total, records = await asyncio.gather(
            self._store.sum_asset_values(investigation_id),
            self._store.sum_debt_values(investigation_id),
            self._store.list_query_records(investigation_id),
        )
        return await self._update_investigation(
            investigation_id,
            total_estimated_value=assets_total,
            total_debts=debts_total,
            total_cost=sum(r.cost for r in records),
        )

    # -- progreso ------------------------------------------------------------

    @staticmethod
    def _estimate_remaining_ms(progress: InvestigationProgress, now: datetime) -> int | None:
        done = progress.completed_queries + progress.failed_queries
        remaining = progress.total_queries - done
        if done == 0 or remaining <= 0:
            return None
        elapsed_ms = (now - progress.started_at).total_seconds() * 1000
        return int(elapsed_ms / done * remaining)

    async def get_progress(self, investigation_id: str) -> InvestigationProgress:
        live = self._live.get(investigation_id)
        if live is not None:
            return live.model_copy()

        investigation = await self._load(investigation_id)
        records = await self._store.list_query_records(investigation_id)
        completed = sum(1 for r in records if r.status in COMPLETED_QUERY_STATUSES)
        failed = sum(1 for r in records if r.status in FAILED_QUERY_STATUSES)
        running = sum(1 for r in records if r.status in RUNNING_QUERY_STATUSES)

        started_at = min((r.created_at for r in records), default=None)
        progress = InvestigationProgress(
            investigation_id=investigation_id,
            total_queries=len(records),
            completed_queries=completed,
            failed_queries=failed,
            started_at=started_at or investigation.started_at or investigation.created_at,
        )
        if running:
            progress.status = ProgressStatus.RUNNING
            progress.estimated_completion_ms = self._estimate_remaining_ms(progress, datetime.now())
        else:
            progress.status = terminal_status(len(records), failed)
        return progress

    # -- operaciones públicas ----------------------------------------------

    async def estimate_scan_cost(self, investigation_id: str, depth: DepthLevel | None = None) -> float:
        """Costo estimado (BRL) de un scan, sin ejecutar nada."""

        investigation = await self._load(investigation_id)
        plan = build_query_plan(
            depth or investigation.depth,
            investigation.target_type,
            self._registry,
            target_document=investigation.target_document,
            depth_map=self._depth_map,
        )
        return await self._cost_tracker.estimate_plan_cost(plan, self._registry)

    async def run_scan(
        self,
        investigation_id: str,
        depth: DepthLevel | None = None,
        *,
        user_id: str | None = None,
        legal_basis: LegalBasis | None = None,
    ) -> InvestigationProgress:
        investigation = await self._load(investigation_id)
        depth = depth or investigation.depth
        user, basis = self._resolve_actor(investigation, user_id, legal_basis)
        started = datetime.now()

        investigation = await self._update_investigation(
            investigation_id,
            status=InvestigationStatus.EM_ANDAMENTO,
            depth=depth,
            legal_basis=basis,
            started_at=started,
        )

        plan = build_query_plan(
            depth,
            investigation.target_type,
            self._registry,
            target_document=investigation.target_document,
            depth_map=self._depth_map,
        )
        progress = InvestigationProgress(
            investigation_id=investigation_id,
            total_queries=len(plan),
            started_at=started,
        )
        self._live[investigation_id] = progress
        logger.info(
            "scan %s started: depth=%s target=%s queries=%d",
            investigation_id,
            depth.value,
            investigation.target_type.value,
            len(plan),
        )

        try:
            for batch in batched(plan, self._settings.scan_batch_size):
                outcomes = await asyncio.gather(
                    *(
                        self._dispatch(investigation, item.provider, item.query, user_id=user, legal_basis=basis)
                        for item in batch
                    ),
                    return_exceptions=True,
                )
                for item, outcome in zip(batch, outcomes):
                    if isinstance(outcome, BaseException):
                        progress.failed_queries += 1
                        logger.error(
                            "[%s] %s failed: %s", item.provider.value, item.query_type.value, outcome
                        )
                    elif not outcome[1].success:
                        progress.failed_queries += 1
                    else:
                        progress.completed_queries += 1
                progress.estimated_completion_ms = self._estimate_remaining_ms(progress, datetime.now())

            progress.status = terminal_status(progress.total_queries, progress.failed_queries)
            progress.current_provider = None
            progress.estimated_completion_ms = 0
            await self._finish(investigation_id, progress)
        finally:
            self._live.pop(investigation_id, None)

        logger.info(
            "scan %s finished: %s (%d ok, %d failed)",
            investigation_id,
            progress.status.value,
            progress.completed_queries,
            progress.failed_queries,
        )
        return progress

    async def _finish(self, investigation_id: str, progress: InvestigationProgress) -> None:
        await self._recompute_totals(investigation_id)
        if progress.status is ProgressStatus.FAILED:
            await self._update_investigation(
                investigation_id, status=InvestigationStatus.FALHA, completed_at=datetime.now()
            )
            return
        await self._update_investigation(investigation_id, status=InvestigationStatus.CONSULTAS_CONCLUIDAS)
        if self._analyzer is not None:
            self._tasks.submit(
                self._run_analysis(investigation_id, self._analyzer), name=f"analysis:{investigation_id}"
            )

    async def _run_analysis(self, investigation_id: str, analyzer: InvestigationAnalyzer) -> None:
        await self._update_investigation(investigation_id, status=InvestigationStatus.ANALISE_IA)
        try:
            analysis = await analyzer.analyze(investigation_id)
        except Exception as exc:
            logger.warning("analysis for %s failed, left pending: %s", investigation_id, exc)
            await self._update_investigation(
                investigation_id,
                status=InvestigationStatus.CONSULTAS_CONCLUIDAS,
                notes=f"{ANALYSIS_PENDING_NOTE}: {exc}",
            )
            return
        await self._update_investigation(
            investigation_id,
            status=InvestigationStatus.CONCLUIDA,
            risk_score=analysis.risk_score,
            risk_classification=analysis.risk_classification,
            ai_summary=analysis.summary,
            recommendations=list(analysis.recommendations),
            completed_at=datetime.now(),
        )
        logger.info("analysis for %s stored (risk %.1f)", investigation_id, analysis.risk_score)

    async def execute_single_query(
        self,
        investigation_id: str,
        provider: ApiProvider,
        query_type: QueryType,
        params: Mapping[str, Any] | None = None,
        *,
        user_id: str | None = None,
        legal_basis: LegalBasis | None = None,
    ) -> ProviderResult:
        investigation = await self._load(investigation_id)
        runtime = self._registry.require(provider)
        if query_type not in runtime.available_queries():
            raise UnsupportedQueryError(runtime.name.value, query_type.value)

        user, basis = self._resolve_actor(investigation, user_id, legal_basis)
        query = ProviderQuery(
            query_type=query_type,
            target_document=investigation.target_document,
            target_type=investigation.target_type,
            params=dict(params or {}),
        )
        _, result = await self._dispatch(investigation, runtime.name, query, user_id=user, legal_basis=basis)
        await self._recompute_totals(investigation_id)
        return result

    async def retry_failed_queries(
        self,
        investigation_id: str,
        *,
        user_id: str | None = None,
        legal_basis: LegalBasis | None = None,
    ) -> InvestigationProgress:
        """Re-despacha, en secuencia, los registros en ERRO/TIMEOUT.

        Reutiliza el mismo registro; los hallazgos se insertan omitiendo
        duplicados, así que reintentar es idempotente. Solo recalcula totales:
        el estado de la investigación no cambia. El progreso devuelto cubre
        únicamente los registros reintentados.
        """

        investigation = await self._load(investigation_id)
        records = await self._store.list_query_records(investigation_id)
        failed_records = [r for r in records if r.status in FAILED_QUERY_STATUSES]

        progress = InvestigationProgress(
            investigation_id=investigation_id,
            total_queries=len(failed_records),
            started_at=datetime.now(),
        )
        if not failed_records:
            progress.status = ProgressStatus.COMPLETED
            return progress

        user, basis = self._resolve_actor(investigation, user_id, legal_basis)
        self._live[investigation_id] = progress
        try:
            for record in failed_records:
                if record.provider not in self._registry:
                    progress.failed_queries += 1
                    continue
                query = ProviderQuery(
                    query_type=record.query_type,
                    target_document=investigation.target_document,
                    target_type=investigation.target_type,
                    params=dict(record.input_params.get("params") or {}),
                )
                try:
                    _, result = await self._dispatch(
                        investigation, record.provider, query, user_id=user, legal_basis=basis, record=record
                    )
                except Exception as exc:
                    progress.failed_queries += 1
                    logger.error("[%s] retry of %s failed: %s", record.provider.value, record.id, exc)
                    continue
                if result.success:
                    progress.completed_queries += 1
                else:
                    progress.failed_queries += 1

            progress.status = terminal_status(progress.total_queries, progress.failed_queries)
            progress.current_provider = None
            await self._recompute_totals(investigation_id)
        finally:
            self._live.pop(investigation_id, None)
        logger.info(
            "retry for %s finished: %d ok, %d still failing",
            investigation_id,
            progress.completed_queries,
            progress.failed_queries,
        )
        return progress
