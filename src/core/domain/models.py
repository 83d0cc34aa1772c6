"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta y documentación autocontenida (Field) sin acoplar el
  Core a librerías de I/O.
- Un único esquema normalizado para resultados reales y simulados: el resto
  del sistema no distingue origen salvo por `is_mock`.

Nota:
- Los registros normalizados (activos, deudas, procesos, vínculos) son
  inmutables (`frozen=True`); se crean una vez y pertenecen a la
  investigación en la que se descubrieron.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict

from core.domain.enums import (
    AlertSeverity,
    ApiCategory,
    ApiProvider,
    AssetCategory,
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

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class ProviderQuery(BaseModel):
    """Consulta individual dirigida a un proveedor."""

    model_config = _FROZEN

    query_type: QueryType = Field(..., description="Tipo de consulta a ejecutar.")
    target_document: str = Field(..., min_length=1, description="CPF o CNPJ del objetivo.")
    target_type: TargetType = Field(..., description="PF (persona) o PJ (empresa).")
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Parámetros extra (tribunal, UF, rango de fechas...).",
    )


class NormalizedAsset(BaseModel):
    model_config = _FROZEN

    category: AssetCategory
    subcategory: str | None = None
    description: str
    registration_id: str | None = None
    location: str | None = None
    state: str | None = None
    city: str | None = None

    estimated_value: float | None = None
    valuation_method: str | None = None
    valuation_date: date | None = None

    has_restriction: bool = False
    restriction_type: str | None = None
    restriction_detail: str | None = None
    is_seizable: bool = True
    impenhorability_reason: str | None = None

    ownership_percentage: float | None = Field(default=None, ge=0, le=100)
    co_owners: list[dict[str, Any]] = Field(default_factory=list)

    source_provider: ApiProvider
    source_query_id: str | None = None
    raw_source_data: Any = None

    latitude: float | None = None
    longitude: float | None = None
    area_hectares: float | None = None
    car_code: str | None = None

    def dedupe_key(self) -> tuple[str, ...]:
        return (
            self.category.value,
            self.registration_id or self.description,
            self.source_provider.value,
        )


class NormalizedDebt(BaseModel):
    model_config = _FROZEN

    debt_type: DebtType
    creditor: str
    creditor_document: str | None = None

    original_value: float | None = None
    current_value: float | None = None

    inscription_date: date | None = None
    due_date: date | None = None

    description: str | None = None
    case_number: str | None = None
    status: str | None = None
    origin: str | None = None

    source_provider: ApiProvider
    raw_source_data: Any = None

    def dedupe_key(self) -> tuple[str, ...]:
        return (
            self.debt_type.value,
            self.creditor,
            self.case_number or self.description or "",
            f"{self.original_value or 0:.2f}",
            self.source_provider.value,
        )


class NormalizedLawsuit(BaseModel):
    model_config = _FROZEN

    case_number: str
    court: str
    vara: str | None = None
    subject: str | None = None
    class_: str | None = Field(default=None, description="Classe processual.")
    role: str
    other_parties: list[dict[str, Any]] = Field(default_factory=list)

    estimated_value: float | None = None
    status: str | None = None
    last_movement: str | None = None
    last_movement_date: date | None = None
    distribution_date: date | None = None

    relevance: LawsuitRelevance = LawsuitRelevance.BAIXA
    has_asset_freeze: bool = False
    notes: str | None = None

    source_provider: ApiProvider
    raw_source_data: Any = None

    def dedupe_key(self) -> tuple[str, ...]:
        # Un mismo proceso puede llegar de DataJud y Escavador: se conservan ambos.
        return (self.case_number, self.court, self.source_provider.value)


class NormalizedCorporateLink(BaseModel):
    model_config = _FROZEN

    company_name: str
    company_cnpj: str
    company_status: str | None = None
    cnae: str | None = None
    open_date: date | None = None

    role: str
    share_percentage: float | None = Field(default=None, ge=0, le=100)
    capital_value: float | None = None
    entry_date: date | None = None
    exit_date: date | None = None

    is_offshore: bool = False
    is_recent_creation: bool = False
    has_irregularity: bool = False
    irregularity_desc: str | None = None

    source_provider: ApiProvider
    raw_source_data: Any = None

    def dedupe_key(self) -> tuple[str, ...]:
        return (self.company_cnpj, self.role, self.source_provider.value)


class ProviderResult(BaseModel):
    """Resultado único por consulta ejecutada (real o simulada)."""

    model_config = _FROZEN

    success: bool
    provider: ApiProvider
    query_type: QueryType
    data: dict[str, Any] = Field(default_factory=dict)

    normalized_assets: list[NormalizedAsset] = Field(default_factory=list)
    normalized_debts: list[NormalizedDebt] = Field(default_factory=list)
    normalized_lawsuits: list[NormalizedLawsuit] = Field(default_factory=list)
    normalized_corporate_links: list[NormalizedCorporateLink] = Field(default_factory=list)

    raw_response: Any = None
    response_time_ms: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0)
    is_mock: bool = False
    error_message: str | None = None

    @model_validator(mode="after")
    def _mock_is_free(self) -> "ProviderResult":
        if self.is_mock and self.cost > 0:
            raise ValueError("mock results cannot carry cost")
        return self

    @property
    def finding_count(self) -> int:
        return (
            len(self.normalized_assets)
            + len(self.normalized_debts)
            + len(self.normalized_lawsuits)
            + len(self.normalized_corporate_links)
        )


class ProviderConfig(BaseModel):
    """Configuración persistida por proveedor (credenciales, presupuesto, límites)."""

    provider: ApiProvider
    display_name: str
    category: ApiCategory
    api_key: str | None = None
    api_secret: str | None = None
    base_url: str | None = None
    extra_config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    is_configured: bool = False
    monthly_budget: float | None = Field(default=None, ge=0)
    monthly_spent: float = Field(default=0.0, ge=0)
    cost_per_query: float | None = Field(default=None, ge=0)
    rate_limit_per_min: int | None = Field(default=None, ge=1)
    rate_limit_per_day: int | None = Field(default=None, ge=1)

    @property
    def usable(self) -> bool:
        return self.is_configured and self.is_active


class RateLimitInfo(BaseModel):
    requests_per_minute: int | None = None
    requests_per_day: int | None = None
    current_minute_usage: int = 0
    current_day_usage: int = 0
    is_limited: bool = False
    resets_at: datetime | None = None


class BudgetAlert(BaseModel):
    provider: ApiProvider
    percent_used: float
    monthly_budget: float
    monthly_spent: float
    message: str
    severity: AlertSeverity


class CostSummaryEntry(BaseModel):
    provider: ApiProvider
    display_name: str
    spent: float
    budget: float | None = None
    percent: float | None = None


class DepthProviderMap(BaseModel):
    """Configuración estática de un nivel de profundidad.

    `priorities` hace explícito qué proveedor "gana" un tipo de consulta:
    menor valor primero; a igualdad, el orden de `providers`.
    """

    model_config = _FROZEN

    providers: tuple[ApiProvider, ...]
    query_types: frozenset[QueryType]
    priorities: dict[ApiProvider, int] = Field(default_factory=dict)


class PlannedQuery(BaseModel):
    model_config = _FROZEN

    provider: ApiProvider
    query_type: QueryType
    query: ProviderQuery


class InvestigationProgress(BaseModel):
    investigation_id: str
    total_queries: int = 0
    completed_queries: int = 0
    failed_queries: int = 0
    current_provider: ApiProvider | None = None
    status: ProgressStatus = ProgressStatus.RUNNING
    started_at: datetime
    estimated_completion_ms: int | None = None


class Investigation(BaseModel):
    """Agregado raíz que el orquestador lee y actualiza."""

    id: str
    target_document: str
    target_type: TargetType
    target_name: str | None = None
    depth: DepthLevel = DepthLevel.PADRAO
    status: InvestigationStatus = InvestigationStatus.PENDENTE
    requested_by: str | None = None
    legal_basis: LegalBasis | None = None

    total_estimated_value: float = 0.0
    total_debts: float = 0.0
    total_cost: float = 0.0

    risk_score: float | None = None
    risk_classification: str | None = None
    ai_summary: str | None = None
    recommendations: list[str] = Field(default_factory=list)
    notes: str | None = None

    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    completed_at: datetime | None = None


class QueryExecutionRecord(BaseModel):
    """Fila de auditoría por consulta despachada."""

    id: str
    investigation_id: str
    provider: ApiProvider
    query_type: QueryType
    input_params: dict[str, Any] = Field(default_factory=dict)
    status: QueryStatus = QueryStatus.PENDENTE

    raw_response: Any = None
    parsed_data: dict[str, Any] | None = None
    response_time_ms: int | None = None
    cost: float = 0.0
    is_mock: bool = False
    error_message: str | None = None

    legal_basis: LegalBasis | None = None
    executed_by: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    executed_at: datetime | None = None
    retention_until: datetime | None = None


class QueryLogEntry(BaseModel):
    """Vista de un registro para solicitudes del titular (LGPD Art. 18).

    Sin payloads: solo quién consultó qué, cuándo y con qué base legal.
    """

    model_config = _FROZEN

    id: str
    investigation_id: str
    target_document_hash: str
    provider: ApiProvider
    query_type: QueryType
    status: QueryStatus
    legal_basis: LegalBasis | None = None
    executed_by: str | None = None
    created_at: datetime
    retention_until: datetime | None = None


class AnalysisResult(BaseModel):
    """Salida del colaborador de análisis (lógica fuera de este motor)."""

    risk_score: float = Field(..., ge=0, le=100)
    summary: str
    recommendations: list[str] = Field(default_factory=list)
    risk_classification: str | None = None
