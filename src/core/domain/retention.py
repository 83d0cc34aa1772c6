"""Retención LGPD de registros de consulta.

Consultas judiciales, fiscales y de compliance se guardan 5 años (plazo
prescricional); el resto, 2 años.
"""

from __future__ import annotations

from datetime import datetime

from core.domain.enums import QueryType

LONG_RETENTION_YEARS = 5
DEFAULT_RETENTION_YEARS = 2

LONG_RETENTION_QUERY_TYPES = frozenset(
    {
        QueryType.CONSULTA_PROCESSO,
        QueryType.CONSULTA_DIVIDA_ATIVA,
        QueryType.CONSULTA_PEP_SANCOES,
        QueryType.CONSULTA_PROTESTO,
    }
)


def retention_years(query_type: QueryType) -> int:
    return LONG_RETENTION_YEARS if query_type in LONG_RETENTION_QUERY_TYPES else DEFAULT_RETENTION_YEARS


def retention_deadline(query_type: QueryType, executed_at: datetime) -> datetime:
    years = retention_years(query_type)
    try:
        return executed_at.replace(year=executed_at.year + years)
    except ValueError:
        # 29/02 -> 28/02
        return executed_at.replace(year=executed_at.year + years, day=28)
