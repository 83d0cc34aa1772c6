"""Planificador de consultas por nivel de profundidad.

Dado un nivel (BASICA..COMPLETA) y el tipo de objetivo (PF/PJ), produce la
lista ordenada y sin duplicados de pares (proveedor, tipo de consulta).

Reglas:
- Los proveedores se recorren por prioridad explícita (`priorities`, menor
  primero); a igualdad, por el orden declarado en el nivel.
- Dentro de cada proveedor, los tipos se recorren en el orden que el
  proveedor declara, filtrados por los tipos permitidos del nivel.
- El primer proveedor que reclama un tipo lo "gana". Excepción:
  CONSULTA_PROCESSO admite varias fuentes (cruzar tribunales).
- CONSULTA_CPF no aplica a PJ y CONSULTA_CNPJ no aplica a PF.

Función pura: misma entrada, misma salida; sin I/O.
"""

from __future__ import annotations

from typing import Mapping

from core.domain.enums import ApiProvider, DepthLevel, QueryType, TargetType
from core.domain.models import DepthProviderMap, PlannedQuery, ProviderQuery
from core.services.registry import ProviderRegistry

DEFAULT_PRIORITY = 100

MULTI_SOURCE_QUERY_TYPES: frozenset[QueryType] = frozenset({QueryType.CONSULTA_PROCESSO})

_EXCLUDED_BY_TARGET: dict[TargetType, frozenset[QueryType]] = {
    TargetType.PJ: frozenset({QueryType.CONSULTA_CPF}),
    TargetType.PF: frozenset({QueryType.CONSULTA_CNPJ}),
}

_BASICA_PROVIDERS = (ApiProvider.BRASILAPI, ApiProvider.DATAJUD)
_BASICA_TYPES = frozenset({QueryType.CONSULTA_CNPJ, QueryType.CONSULTA_PROCESSO})

_PADRAO_PROVIDERS = _BASICA_PROVIDERS + (
    ApiProvider.CNPJA,
    ApiProvider.CVM_DADOS_ABERTOS,
    ApiProvider.BACEN,
    ApiProvider.OPENSANCTIONS,
)
_PADRAO_TYPES = _BASICA_TYPES | {
    QueryType.CONSULTA_CVM,
    QueryType.CONSULTA_PEP_SANCOES,
    QueryType.CONSULTA_SOCIETARIA,
}

_APROFUNDADA_PROVIDERS = _PADRAO_PROVIDERS + (
    ApiProvider.INFOSIMPLES,
    ApiProvider.ESCAVADOR,
    ApiProvider.ASSERTIVA,
)
_APROFUNDADA_TYPES = _PADRAO_TYPES | {
    QueryType.CONSULTA_CPF,
    QueryType.CONSULTA_IMOVEL,
    QueryType.CONSULTA_VEICULO,
    QueryType.CONSULTA_PROTESTO,
    QueryType.CONSULTA_DIVIDA_ATIVA,
}

_COMPLETA_PROVIDERS = _APROFUNDADA_PROVIDERS + (
    ApiProvider.DENATRAN_SERPRO,
    ApiProvider.COMPLYADVANTAGE,
    ApiProvider.OPENCORPORATES,
    ApiProvider.MAPBIOMAS,
)
_COMPLETA_TYPES = _APROFUNDADA_TYPES | {
    QueryType.CONSULTA_RURAL,
    QueryType.CONSULTA_SATELITE,
    QueryType.CONSULTA_SCORING,
}

DEPTH_PROVIDER_MAP: Mapping[DepthLevel, DepthProviderMap] = {
    DepthLevel.BASICA: DepthProviderMap(providers=_BASICA_PROVIDERS, query_types=_BASICA_TYPES),
    DepthLevel.PADRAO: DepthProviderMap(providers=_PADRAO_PROVIDERS, query_types=_PADRAO_TYPES),
    DepthLevel.APROFUNDADA: DepthProviderMap(providers=_APROFUNDADA_PROVIDERS, query_types=_APROFUNDADA_TYPES),
    DepthLevel.COMPLETA: DepthProviderMap(providers=_COMPLETA_PROVIDERS, query_types=_COMPLETA_TYPES),
}


def ordered_providers(tier: DepthProviderMap) -> list[ApiProvider]:
    """Proveedores del nivel ordenados por (prioridad, posición declarada)."""

    indexed = list(enumerate(tier.providers))
    indexed.sort(key=lambda pair: (tier.priorities.get(pair[1], DEFAULT_PRIORITY), pair[0]))
    return [provider for _, provider in indexed]


def build_query_plan(
    depth: DepthLevel,
    target_type: TargetType,
    registry: ProviderRegistry,
    *,
    target_document: str = "",
    params: Mapping[str, object] | None = None,
    depth_map: Mapping[DepthLevel, DepthProviderMap] | None = None,
) -> list[PlannedQuery]:
    tier = (depth_map or DEPTH_PROVIDER_MAP)[depth]
    excluded = _EXCLUDED_BY_TARGET[target_type]

    plan: list[PlannedQuery] = []
    assigned: set[QueryType] = set()
    seen_pairs: set[tuple[ApiProvider, QueryType]] = set()

    for provider_name in ordered_providers(tier):
        provider = registry.get(provider_name)
        if provider is None:
            continue
        for query_type in provider.available_queries():
            if query_type not in tier.query_types or query_type in excluded:
                continue
            if query_type in assigned and query_type not in MULTI_SOURCE_QUERY_TYPES:
                continue
            if (provider_name, query_type) in seen_pairs:
                continue
            assigned.add(query_type)
            seen_pairs.add((provider_name, query_type))
            plan.append(
                PlannedQuery(
                    provider=provider_name,
                    query_type=query_type,
                    query=ProviderQuery(
                        query_type=query_type,
                        target_document=target_document or "-",
                        target_type=target_type,
                        params=dict(params or {}),
                    ),
                )
            )
    return plan


def unanswerable_query_types(
    depth: DepthLevel,
    registry: ProviderRegistry,
    *,
    depth_map: Mapping[DepthLevel, DepthProviderMap] | None = None,
) -> set[QueryType]:
    """Tipos permitidos del nivel que ningún proveedor del nivel responde."""

    tier = (depth_map or DEPTH_PROVIDER_MAP)[depth]
    answered: set[QueryType] = set()
    for provider_name in tier.providers:
        provider = registry.get(provider_name)
        if provider is not None:
            answered.update(provider.available_queries())
    return set(tier.query_types) - answered
