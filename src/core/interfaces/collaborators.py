"""Colaboradores externos disparados en segundo plano."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.enums import LegalBasis
from core.domain.models import AnalysisResult, ProviderQuery, ProviderResult


@runtime_checkable
class ComplianceLogger(Protocol):
    """Registro de auditoría LGPD. Fire-and-forget: sus fallos no llegan al scan."""

    async def log_query(
        self,
        query: ProviderQuery,
        result: ProviderResult,
        user_id: str,
        legal_basis: LegalBasis,
        *,
        query_record_id: str | None = None,
    ) -> None: ...


@runtime_checkable
class InvestigationAnalyzer(Protocol):
    """Análisis narrativo/riesgo; su lógica interna está fuera del motor."""

    async def analyze(self, investigation_id: str) -> AnalysisResult: ...
