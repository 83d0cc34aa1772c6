"""Contrato de persistencia.

La capa relacional es un colaborador externo; el motor solo depende de
estas operaciones. `adapters.memory_store.InMemoryStore` es la
implementación de referencia (CLI local y tests).
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from core.domain.enums import ApiProvider
from core.domain.models import (
    Investigation,
    NormalizedAsset,
    NormalizedCorporateLink,
    NormalizedDebt,
    NormalizedLawsuit,
    ProviderConfig,
    QueryExecutionRecord,
)


@runtime_checkable
class InvestigationStore(Protocol):
    """Operaciones de persistencia usadas por runtime, orquestador y costos.

    Reglas:
    - Los `insert_*` omiten duplicados (por `dedupe_key`) y devuelven cuántos
      registros nuevos se insertaron.
    - `increment_monthly_spent` es atómico: incrementos concurrentes sobre el
      mismo proveedor no se pierden.
    - `purge_expired_raw_responses` vacía payloads (`raw_response`,
      `parsed_data`, `error_message`) de registros con `retention_until <= now`
      y devuelve cuántos registros cambió; el registro en sí se conserva.
    """

    # Investigaciones
    async def get_investigation(self, investigation_id: str) -> Investigation | None: ...

    async def save_investigation(self, investigation: Investigation) -> None: ...

    # Registros de ejecución
    async def create_query_record(self, record: QueryExecutionRecord) -> QueryExecutionRecord: ...

    async def update_query_record(self, record: QueryExecutionRecord) -> None: ...

    async def list_query_records(self, investigation_id: str) -> list[QueryExecutionRecord]: ...

    async def count_queries(self, provider: ApiProvider, since: datetime) -> int: ...

    async def list_query_records_for_document(self, target_document: str) -> list[QueryExecutionRecord]: ...

    async def purge_expired_raw_responses(self, now: datetime) -> int: ...

    # Hallazgos normalizados
    async def insert_assets(self, investigation_id: str, items: Sequence[NormalizedAsset]) -> int: ...

    async def insert_debts(self, investigation_id: str, items: Sequence[NormalizedDebt]) -> int: ...

    async def insert_lawsuits(self, investigation_id: str, items: Sequence[NormalizedLawsuit]) -> int: ...

    async def insert_corporate_links(
        self, investigation_id: str, items: Sequence[NormalizedCorporateLink]
    ) -> int: ...

    async def list_assets(self, investigation_id: str) -> list[NormalizedAsset]: ...

    async def list_debts(self, investigation_id: str) -> list[NormalizedDebt]: ...

    async def list_lawsuits(self, investigation_id: str) -> list[NormalizedLawsuit]: ...

    async def list_corporate_links(self, investigation_id: str) -> list[NormalizedCorporateLink]: ...

    async def sum_asset_values(self, investigation_id: str) -> float: ...

    async def sum_debt_values(self, investigation_id: str) -> float: ...

    # Configuración de proveedores
    async def get_provider_config(self, provider: ApiProvider) -> ProviderConfig | None: ...

    async def upsert_provider_config(self, config: ProviderConfig) -> ProviderConfig: ...

    async def list_provider_configs(self) -> list[ProviderConfig]: ...

    async def increment_monthly_spent(self, provider: ApiProvider, amount: float) -> ProviderConfig | None: ...

    async def reset_monthly_spent(self) -> int: ...
