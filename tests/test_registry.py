from __future__ import annotations

import pytest

from conftest import FakeBackend, make_config
from core.config import AppSettings
from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.errors import ConfigurationForbiddenError, ProviderNotFoundError
from core.services.provider_admin import configure_provider
from core.services.registry import ProviderRegistry, build_default_registry


def test_default_registry_has_every_provider(store):
    registry = build_default_registry(store)

    assert len(registry) == len(ApiProvider)
    assert {p.name for p in registry} == set(ApiProvider)
    assert ApiProvider.MAPBIOMAS in registry
    assert "NOPE" not in registry
    assert registry.get("NOPE") is None
    judicial = {p.name for p in registry.by_category(ApiCategory.JUDICIAL)}
    assert ApiProvider.DATAJUD in judicial


def test_duplicate_names_are_rejected(runtime_factory):
    backend = FakeBackend(ApiProvider.CNPJA, [QueryType.CONSULTA_CNPJ])

    with pytest.raises(ValueError, match="duplicate"):
        ProviderRegistry([runtime_factory(backend), runtime_factory(backend)])


def test_require_unknown_provider(registry_factory):
    registry = registry_factory(FakeBackend(ApiProvider.CNPJA, [QueryType.CONSULTA_CNPJ]))

    assert registry.require("CNPJA").name is ApiProvider.CNPJA
    with pytest.raises(ProviderNotFoundError):
        registry.require(ApiProvider.DENATRAN_SERPRO)


@pytest.mark.asyncio
async def test_configured_lists_usable_providers(store, registry_factory):
    await store.upsert_provider_config(make_config(ApiProvider.CNPJA))
    await store.upsert_provider_config(make_config(ApiProvider.BACEN, is_active=False))
    registry = registry_factory(
        FakeBackend(ApiProvider.CNPJA, [QueryType.CONSULTA_CNPJ]),
        FakeBackend(ApiProvider.BACEN, [QueryType.CONSULTA_CNPJ]),
        FakeBackend(ApiProvider.CVM_DADOS_ABERTOS, [QueryType.CONSULTA_CVM]),
    )

    assert [p.name for p in await registry.configured()] == [ApiProvider.CNPJA]


@pytest.mark.asyncio
async def test_configure_provider_applies_immediately(store, registry_factory):
    registry = registry_factory(FakeBackend(ApiProvider.ESCAVADOR, [QueryType.CONSULTA_PROCESSO]))
    runtime = registry.require(ApiProvider.ESCAVADOR)
    assert not await runtime.is_configured()

    saved = await configure_provider(
        store,
        registry,
        ApiProvider.ESCAVADOR,
        {"api_key": "tok", "cost_per_query": 0.9, "rate_limit_per_min": 30},
        250.0,
        True,
        actor_role="socio",
    )

    assert saved.is_configured and saved.usable
    assert saved.display_name == "Escavador"
    assert (saved.monthly_budget, saved.cost_per_query, saved.rate_limit_per_min) == (250.0, 0.9, 30)
    assert await runtime.is_configured()
    assert await runtime.estimate_cost(QueryType.CONSULTA_PROCESSO) == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_configure_provider_keeps_spend_and_can_clear_credentials(store, registry_factory):
    await store.upsert_provider_config(make_config(ApiProvider.ESCAVADOR, monthly_spent=12.5))
    registry = registry_factory(FakeBackend(ApiProvider.ESCAVADOR, [QueryType.CONSULTA_PROCESSO]))

    saved = await configure_provider(
        store, registry, ApiProvider.ESCAVADOR, {"api_key": ""}, None, True, actor_role="ADMIN"
    )

    assert saved.monthly_spent == pytest.approx(12.5)
    assert saved.api_key is None
    assert not saved.is_configured


@pytest.mark.asyncio
async def test_configure_provider_requires_admin_role(store, registry_factory):
    registry = registry_factory(FakeBackend(ApiProvider.ESCAVADOR, [QueryType.CONSULTA_PROCESSO]))

    with pytest.raises(ConfigurationForbiddenError):
        await configure_provider(
            store, registry, ApiProvider.ESCAVADOR, {"api_key": "x"}, None, True, actor_role="ANALISTA"
        )
    assert await store.get_provider_config(ApiProvider.ESCAVADOR) is None


@pytest.mark.asyncio
async def test_admin_roles_come_from_settings(store, registry_factory):
    registry = registry_factory(FakeBackend(ApiProvider.ESCAVADOR, [QueryType.CONSULTA_PROCESSO]))
    settings = AppSettings(provider_admin_roles=frozenset({"ANALISTA"}))

    saved = await configure_provider(
        store, registry, ApiProvider.ESCAVADOR, {"base_url": "http://localhost:9000"}, None, False,
        actor_role="analista", settings=settings,
    )

    assert saved.is_configured and not saved.usable
