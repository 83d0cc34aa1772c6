"""Catálogo de proveedores.

Se construye una sola vez y se inyecta (orquestador, planner, CLI); no hay
singleton global, así los tests arman registries aislados con fakes.
Sin mutadores tras la construcción: lecturas concurrentes seguras.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Iterator

from core.config import AppSettings
from core.domain.enums import ApiCategory, ApiProvider
from core.domain.errors import ProviderNotFoundError
from core.interfaces.persistence import InvestigationStore
from core.interfaces.provider import InvestigationProvider
from core.services.cost_tracker import CostTracker

logger = logging.getLogger(__name__)


class ProviderRegistry:
    def __init__(self, providers: Iterable[InvestigationProvider]) -> None:
        by_name: dict[ApiProvider, InvestigationProvider] = {}
        for provider in providers:
            if provider.name in by_name:
                raise ValueError(f"duplicate provider: {provider.name.value}")
            by_name[provider.name] = provider
        self._providers = by_name

    def get(self, name: ApiProvider | str) -> InvestigationProvider | None:
        try:
            key = ApiProvider(name)
        except ValueError:
            return None
        return self._providers.get(key)

    def require(self, name: ApiProvider | str) -> InvestigationProvider:
        provider = self.get(name)
        if provider is None:
            raise ProviderNotFoundError(str(getattr(name, "value", name)))
        return provider

    def by_category(self, category: ApiCategory) -> list[InvestigationProvider]:
        return [p for p in self._providers.values() if p.category == category]

    def all(self) -> list[InvestigationProvider]:
        return list(self._providers.values())

    async def configured(self) -> list[InvestigationProvider]:
        """Proveedores configurados y activos.

        Los chequeos corren en paralelo; uno que falla cuenta como "no
        configurado" sin afectar al resto.
        """

        providers = self.all()
        checks = await asyncio.gather(*(p.is_configured() for p in providers), return_exceptions=True)
        out: list[InvestigationProvider] = []
        for provider, ok in zip(providers, checks):
            if isinstance(ok, BaseException):
                logger.warning("[%s] configuration check failed: %s", provider.name.value, ok)
                continue
            if ok:
                out.append(provider)
        return out

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, name: object) -> bool:
        return self.get(name) is not None if isinstance(name, (str, ApiProvider)) else False

    def __iter__(self) -> Iterator[InvestigationProvider]:
        return iter(self._providers.values())


def build_default_registry(
    store: InvestigationStore,
    cost_tracker: CostTracker | None = None,
    settings: AppSettings | None = None,
) -> ProviderRegistry:
    """Instancia los trece adaptadores, en orden de nivel de profundidad."""

    from adapters.providers import DEFAULT_BACKENDS  # noqa: PLC0415
    from core.services.runtime import ProviderRuntime  # noqa: PLC0415

    settings = settings or AppSettings()
    return ProviderRegistry(
        ProviderRuntime(backend_cls(settings), store, cost_tracker, settings)
        for backend_cls in DEFAULT_BACKENDS
    )
