"""Implementación en memoria de `InvestigationStore`.

Por qué en memoria:
- La CLI local y los tests necesitan un store real (no un mock) con la
  misma semántica que el relacional: deduplicación por `dedupe_key`,
  incremento atómico de gasto y conteo por ventana temporal.
- Guarda copias: quien lee nunca comparte instancias mutables con el store.

Concurrencia: un único `asyncio.Lock` serializa escrituras; suficiente
para un solo event loop.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Sequence, TypeVar

from pydantic import BaseModel

from core.domain.documents import only_digits
from core.domain.enums import ApiProvider, DepthLevel, LegalBasis, TargetType
from core.domain.models import (
    Investigation,
    NormalizedAsset,
    NormalizedCorporateLink,
    NormalizedDebt,
    NormalizedLawsuit,
    ProviderConfig,
    QueryExecutionRecord,
)
from core.interfaces.persistence import InvestigationStore

M = TypeVar("M", bound=BaseModel)


class InMemoryStore(InvestigationStore):
    def __init__(self, provider_configs: Iterable[ProviderConfig] = ()) -> None:
        self._lock = asyncio.Lock()
        self._investigations: dict[str, Investigation] = {}
        self._records: dict[str, QueryExecutionRecord] = {}
        self._findings: dict[str, dict[str, dict[tuple[str, ...], BaseModel]]] = defaultdict(
            lambda: defaultdict(dict)
        )
        self._configs: dict[ApiProvider, ProviderConfig] = {
            config.provider: config.model_copy() for config in provider_configs
        }

    # -- investigaciones ------------------------------------------------------

    async def create_investigation(
        self,
        target_document: str,
        target_type: TargetType,
        *,
        depth: DepthLevel = DepthLevel.PADRAO,
        target_name: str | None = None,
        requested_by: str | None = None,
        legal_basis: LegalBasis | None = None,
    ) -> Investigation:
        investigation = Investigation(
            id=uuid.uuid4().hex,
            target_document=target_document,
            target_type=target_type,
            target_name=target_name,
            depth=depth,
            requested_by=requested_by,
            legal_basis=legal_basis,
        )
        await self.save_investigation(investigation)
        return investigation

    async def get_investigation(self, investigation_id: str) -> Investigation | None:
        found = self._investigations.get(investigation_id)
        return found.model_copy(deep=True) if found else None

    async def save_investigation(self, investigation: Investigation) -> None:
        async with self._lock:
            self._investigations[investigation.id] = investigation.model_copy(deep=True)

    # -- registros de ejecución ----------------------------------------------

    async def create_query_record(self, record: QueryExecutionRecord) -> QueryExecutionRecord:
        async with self._lock:
            if record.id in self._records:
                raise ValueError(f"duplicate query record id: {record.id}")
            self._records[record.id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def update_query_record(self, record: QueryExecutionRecord) -> None:
        async with self._lock:
            if record.id not in self._records:
                raise KeyError(record.id)
            self._records[record.id] = record.model_copy(deep=True)

    async def list_query_records(self, investigation_id: str) -> list[QueryExecutionRecord]:
        records = [r for r in self._records.values() if r.investigation_id == investigation_id]
        records.sort(key=lambda r: r.created_at)
        return [r.model_copy(deep=True) for r in records]

    async def count_queries(self, provider: ApiProvider, since: datetime) -> int:
        return sum(
            1
            for r in self._records.values()
            if r.provider == provider and r.executed_at is not None and r.executed_at >= since
        )

    async def list_query_records_for_document(self, target_document: str) -> list[QueryExecutionRecord]:
        digits = only_digits(target_document)
        investigation_ids = {
            inv.id for inv in self._investigations.values() if only_digits(inv.target_document) == digits
        }
        records = [r for r in self._records.values() if r.investigation_id in investigation_ids]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in records]

    async def purge_expired_raw_responses(self, now: datetime) -> int:
        purged = 0
        async with self._lock:
            for record_id, record in self._records.items():
                if record.retention_until is None or record.retention_until > now:
                    continue
                if record.raw_response is None and record.parsed_data is None and record.error_message is None:
                    continue
                self._records[record_id] = record.model_copy(
                    update={"raw_response": None, "parsed_data": None, "error_message": None}
                )
                purged += 1
        return purged

    # -- hallazgos ------------------------------------------------------------

    async def _insert(self, investigation_id: str, kind: str, items: Sequence[BaseModel]) -> int:
        inserted = 0
        async with self._lock:
            bucket = self._findings[investigation_id][kind]
            for item in items:
                key = item.dedupe_key()  # type: ignore[attr-defined]
                if key in bucket:
                    continue
                bucket[key] = item
                inserted += 1
        return inserted

    def _list(self, investigation_id: str, kind: str, model: type[M]) -> list[M]:
        if investigation_id not in self._findings:
            return []
        return [item for item in self._findings[investigation_id][kind].values() if isinstance(item, model)]

    async def insert_assets(self, investigation_id: str, items: Sequence[NormalizedAsset]) -> int:
        return await self._insert(investigation_id, "assets", items)

    async def insert_debts(self, investigation_id: str, items: Sequence[NormalizedDebt]) -> int:
        return await self._insert(investigation_id, "debts", items)

    async def insert_lawsuits(self, investigation_id: str, items: Sequence[NormalizedLawsuit]) -> int:
        return await self._insert(investigation_id, "lawsuits", items)

    async def insert_corporate_links(
        self, investigation_id: str, items: Sequence[NormalizedCorporateLink]
    ) -> int:
        return await self._insert(investigation_id, "corporate_links", items)

    async def list_assets(self, investigation_id: str) -> list[NormalizedAsset]:
        return self._list(investigation_id, "assets", NormalizedAsset)

    async def list_debts(self, investigation_id: str) -> list[NormalizedDebt]:
        return self._list(investigation_id, "debts", NormalizedDebt)

    async def list_lawsuits(self, investigation_id: str) -> list[NormalizedLawsuit]:
        return self._list(investigation_id, "lawsuits", NormalizedLawsuit)

    async def list_corporate_links(self, investigation_id: str) -> list[NormalizedCorporateLink]:
        return self._list(investigation_id, "corporate_links", NormalizedCorporateLink)

    async def sum_asset_values(self, investigation_id: str) -> float:
        return sum(asset.estimated_value or 0.0 for asset in await self.list_assets(investigation_id))

    async def sum_debt_values(self, investigation_id: str) -> float:
        # Valor actualizado si existe; si no, el original.
        return sum(
            (debt.current_value if debt.current_value is not None else debt.original_value) or 0.0
            for debt in await self.list_debts(investigation_id)
        )

    # -- configuración de proveedores ----------------------------------------

    async def get_provider_config(self, provider: ApiProvider) -> ProviderConfig | None:
        found = self._configs.get(provider)
        return found.model_copy(deep=True) if found else None

    async def upsert_provider_config(self, config: ProviderConfig) -> ProviderConfig:
        async with self._lock:
            self._configs[config.provider] = config.model_copy(deep=True)
        return config.model_copy(deep=True)

    async def list_provider_configs(self) -> list[ProviderConfig]:
        return [c.model_copy(deep=True) for c in self._configs.values()]

    async def increment_monthly_spent(self, provider: ApiProvider, amount: float) -> ProviderConfig | None:
        async with self._lock:
            config = self._configs.get(provider)
            if config is None:
                return None
            updated = config.model_copy(update={"monthly_spent": config.monthly_spent + amount})
            self._configs[provider] = updated
        return updated.model_copy(deep=True)

    async def reset_monthly_spent(self) -> int:
        async with self._lock:
            for provider, config in self._configs.items():
                self._configs[provider] = config.model_copy(update={"monthly_spent": 0.0})
            return len(self._configs)
