"""Contratos de proveedores de datos.

Por qué dos Protocols:
- `ProviderBackend` es lo único que implementa un adaptador concreto: la
  llamada real y el generador de mocks.
- `InvestigationProvider` es lo que consume el orquestador. Lo satisface
  `ProviderRuntime`, que envuelve cualquier backend con caché de config,
  rate limit, reintentos y fallback (composición en vez de herencia).
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.models import ProviderConfig, ProviderQuery, ProviderResult, RateLimitInfo


@runtime_checkable
class ProviderBackend(Protocol):
    """Contrato mínimo de un adaptador.

    Reglas de diseño:
    - `execute_real` es asíncrono (I/O HTTP) y puede lanzar: el runtime
      reintenta y, agotado el presupuesto, cae a `generate_mock`.
    - `generate_mock` es puro y nunca lanza.
    """

    name: ApiProvider
    display_name: str
    category: ApiCategory
    available_queries: Sequence[QueryType]

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        ...

    def generate_mock(self, query: ProviderQuery) -> ProviderResult:
        ...


@runtime_checkable
class InvestigationProvider(Protocol):
    """Proveedor tal como lo ve el orquestador. `execute` es total."""

    @property
    def name(self) -> ApiProvider: ...

    @property
    def display_name(self) -> str: ...

    @property
    def category(self) -> ApiCategory: ...

    def available_queries(self) -> Sequence[QueryType]: ...

    async def is_configured(self) -> bool: ...

    async def execute(self, query: ProviderQuery) -> ProviderResult: ...

    async def estimate_cost(self, query_type: QueryType) -> float: ...

    async def get_rate_limit(self) -> RateLimitInfo: ...

    def invalidate_config(self) -> None: ...
