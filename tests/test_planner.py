from __future__ import annotations

import pytest

from conftest import FakeBackend
from core.domain.enums import ApiProvider, DepthLevel, QueryType, TargetType
from core.domain.models import DepthProviderMap
from core.services.planner import (
    DEPTH_PROVIDER_MAP,
    build_query_plan,
    ordered_providers,
    unanswerable_query_types,
)
from core.services.registry import build_default_registry

_P1 = ApiProvider.BRASILAPI
_P2 = ApiProvider.ESCAVADOR

_BASICA_TWO_PROVIDERS = {
    DepthLevel.BASICA: DepthProviderMap(
        providers=(_P1, _P2),
        query_types=frozenset({QueryType.CONSULTA_CNPJ, QueryType.CONSULTA_PROCESSO, QueryType.CONSULTA_CPF}),
    )
}


def _pairs(plan):
    return [(item.provider, item.query_type) for item in plan]


def test_basica_multi_source_lawsuits_and_pj_exclusion(registry_factory):
    registry = registry_factory(
        FakeBackend(_P1, [QueryType.CONSULTA_CNPJ, QueryType.CONSULTA_PROCESSO]),
        FakeBackend(_P2, [QueryType.CONSULTA_PROCESSO, QueryType.CONSULTA_CPF]),
    )

    plan = build_query_plan(
        DepthLevel.BASICA,
        TargetType.PJ,
        registry,
        target_document="11222333000181",
        depth_map=_BASICA_TWO_PROVIDERS,
    )

    assert _pairs(plan) == [
        (_P1, QueryType.CONSULTA_CNPJ),
        (_P1, QueryType.CONSULTA_PROCESSO),
        (_P2, QueryType.CONSULTA_PROCESSO),
    ]
    assert all(item.query.target_document == "11222333000181" for item in plan)


def test_explicit_priority_overrides_declared_order(registry_factory):
    registry = registry_factory(
        FakeBackend(_P1, [QueryType.CONSULTA_CNPJ]),
        FakeBackend(_P2, [QueryType.CONSULTA_CNPJ]),
    )
    depth_map = {
        DepthLevel.BASICA: DepthProviderMap(
            providers=(_P1, _P2),
            query_types=frozenset({QueryType.CONSULTA_CNPJ}),
            priorities={_P2: 1},
        )
    }

    assert ordered_providers(depth_map[DepthLevel.BASICA]) == [_P2, _P1]
    plan = build_query_plan(DepthLevel.BASICA, TargetType.PJ, registry, depth_map=depth_map)
    assert _pairs(plan) == [(_P2, QueryType.CONSULTA_CNPJ)]


def test_unregistered_providers_are_skipped(registry_factory):
    registry = registry_factory(FakeBackend(_P2, [QueryType.CONSULTA_PROCESSO]))

    plan = build_query_plan(DepthLevel.BASICA, TargetType.PF, registry, depth_map=_BASICA_TWO_PROVIDERS)

    assert _pairs(plan) == [(_P2, QueryType.CONSULTA_PROCESSO)]


@pytest.mark.parametrize("depth", list(DepthLevel))
@pytest.mark.parametrize("target_type", list(TargetType))
def test_default_tiers_plan_invariants(store, depth, target_type):
    registry = build_default_registry(store)

    plan = build_query_plan(depth, target_type, registry)

    pairs = _pairs(plan)
    assert len(pairs) == len(set(pairs))
    assert {qt for _, qt in pairs} <= DEPTH_PROVIDER_MAP[depth].query_types
    excluded = QueryType.CONSULTA_CPF if target_type is TargetType.PJ else QueryType.CONSULTA_CNPJ
    assert excluded not in {qt for _, qt in pairs}
    single_source = [qt for _, qt in pairs if qt is not QueryType.CONSULTA_PROCESSO]
    assert len(single_source) == len(set(single_source))


def test_default_padrao_pj_plan(store):
    registry = build_default_registry(store)

    plan = build_query_plan(DepthLevel.PADRAO, TargetType.PJ, registry)

    assert _pairs(plan) == [
        (ApiProvider.BRASILAPI, QueryType.CONSULTA_CNPJ),
        (ApiProvider.DATAJUD, QueryType.CONSULTA_PROCESSO),
        (ApiProvider.CVM_DADOS_ABERTOS, QueryType.CONSULTA_CVM),
        (ApiProvider.CVM_DADOS_ABERTOS, QueryType.CONSULTA_SOCIETARIA),
        (ApiProvider.OPENSANCTIONS, QueryType.CONSULTA_PEP_SANCOES),
    ]


def test_deeper_tiers_add_second_lawsuit_source(store):
    registry = build_default_registry(store)

    plan = build_query_plan(DepthLevel.APROFUNDADA, TargetType.PF, registry)

    lawsuit_sources = [p for p, qt in _pairs(plan) if qt is QueryType.CONSULTA_PROCESSO]
    assert lawsuit_sources == [ApiProvider.DATAJUD, ApiProvider.ESCAVADOR]
    assert (ApiProvider.ESCAVADOR, QueryType.CONSULTA_CPF) in _pairs(plan)


@pytest.mark.parametrize("depth", list(DepthLevel))
def test_every_tier_type_has_a_default_provider(store, depth):
    assert unanswerable_query_types(depth, build_default_registry(store)) == set()
