"""Alta/edición de configuración de proveedores."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from core.config import AppSettings
from core.domain.enums import ApiProvider
from core.domain.errors import ConfigurationForbiddenError
from core.domain.models import ProviderConfig
from core.interfaces.persistence import InvestigationStore
from core.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

_CREDENTIAL_FIELDS = ("api_key", "api_secret", "base_url")


async def configure_provider(
    store: InvestigationStore,
    registry: ProviderRegistry,
    provider: ApiProvider,
    credentials: Mapping[str, Any],
    monthly_budget: float | None,
    is_active: bool,
    *,
    actor_role: str,
    settings: AppSettings | None = None,
) -> ProviderConfig:
    """Crea o actualiza la configuración de `provider`.

    - Solo roles en `provider_admin_roles` (ADMIN/SOCIO por defecto).
    - `is_configured` pasa a True si hay api_key, api_secret o base_url.
    - Invalida la caché de config del runtime para que el cambio aplique ya.

    `credentials` acepta además `cost_per_query`, `rate_limit_per_min`,
    `rate_limit_per_day` y `extra_config`.
    """

    settings = settings or AppSettings()
    if actor_role.upper() not in {role.upper() for role in settings.provider_admin_roles}:
        raise ConfigurationForbiddenError(f"role {actor_role!r} cannot configure providers")

    runtime = registry.require(provider)
    existing = await store.get_provider_config(runtime.name)

    base: dict[str, Any] = (
        existing.model_dump()
        if existing
        else {"provider": runtime.name, "display_name": runtime.display_name, "category": runtime.category}
    )
    base.update(
        {
            "display_name": runtime.display_name,
            "category": runtime.category,
            "monthly_budget": monthly_budget,
            "is_active": is_active,
        }
    )
    for key in _CREDENTIAL_FIELDS + ("cost_per_query", "rate_limit_per_min", "rate_limit_per_day"):
        if key in credentials:
            base[key] = credentials[key] or None
    if "extra_config" in credentials:
        base["extra_config"] = dict(credentials["extra_config"] or {})

    base["is_configured"] = any(base.get(key) for key in _CREDENTIAL_FIELDS)

    saved = await store.upsert_provider_config(ProviderConfig.model_validate(base))
    runtime.invalidate_config()
    logger.info(
        "provider %s configured (active=%s, configured=%s, budget=%s)",
        saved.provider.value,
        saved.is_active,
        saved.is_configured,
        saved.monthly_budget,
    )
    return saved
