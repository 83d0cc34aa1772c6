"""Seguimiento de costos y presupuesto mensual por proveedor.

Por qué alertas calculadas y no almacenadas:
- Siempre reflejan el gasto/presupuesto actual; no hay historial que
  sincronizar.
- `evaluate_budget` es puro y se testea sin store.

El incremento de gasto es atómico en el store (`increment_monthly_spent`).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from core.config import AppSettings
from core.domain.enums import AlertSeverity, ApiProvider
from core.domain.models import BudgetAlert, CostSummaryEntry, PlannedQuery
from core.interfaces.persistence import InvestigationStore

if TYPE_CHECKING:
    from core.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 0.8
CRITICAL_THRESHOLD = 1.0


def evaluate_budget(
    provider: ApiProvider,
    display_name: str,
    monthly_budget: float | None,
    monthly_spent: float,
    *,
    warning_ratio: float = WARNING_THRESHOLD,
    critical_ratio: float = CRITICAL_THRESHOLD,
) -> list[BudgetAlert]:
    """Devuelve como máximo una alerta (WARNING o CRITICAL)."""

    if not monthly_budget or monthly_budget <= 0:
        return []

    ratio = monthly_spent / monthly_budget
    percent = ratio * 100
    usage = f"{percent:.1f}% do orcamento mensal (R${monthly_spent:.2f} / R${monthly_budget:.2f})"

    if ratio >= critical_ratio:
        logger.error("CRITICAL: %s budget exhausted (%.1f%%)", provider.value, percent)
        return [
            BudgetAlert(
                provider=provider,
                percent_used=percent,
                monthly_budget=monthly_budget,
                monthly_spent=monthly_spent,
                message=(
                    f"ORCAMENTO ESGOTADO: {display_name} atingiu {usage}. "
                    "Consultas serao bloqueadas ate o proximo periodo."
                ),
                severity=AlertSeverity.CRITICAL,
            )
        ]
    if ratio >= warning_ratio:
        logger.warning("WARNING: %s budget at %.1f%%", provider.value, percent)
        return [
            BudgetAlert(
                provider=provider,
                percent_used=percent,
                monthly_budget=monthly_budget,
                monthly_spent=monthly_spent,
                message=(
                    f"ALERTA DE ORCAMENTO: {display_name} atingiu {usage}. "
                    "Considere reduzir o volume de consultas."
                ),
                severity=AlertSeverity.WARNING,
            )
        ]
    return []


class CostTracker:
    def __init__(self, store: InvestigationStore, settings: AppSettings | None = None) -> None:
        self._store = store
        self._settings = settings or AppSettings()

    def _evaluate(
        self, provider: ApiProvider, display_name: str, budget: float | None, spent: float
    ) -> list[BudgetAlert]:
        return evaluate_budget(
            provider,
            display_name,
            budget,
            spent,
            warning_ratio=self._settings.budget_warning_ratio,
            critical_ratio=self._settings.budget_critical_ratio,
        )

    async def track_cost(self, provider: ApiProvider, amount: float) -> list[BudgetAlert]:
        """Suma `amount` al gasto mensual y devuelve las alertas resultantes."""

        if amount <= 0:
            return []
        config = await self._store.increment_monthly_spent(provider, amount)
        if config is None:
            logger.warning("no config row for %s, cost %.4f not tracked", provider.value, amount)
            return []
        return self._evaluate(provider, config.display_name, config.monthly_budget, config.monthly_spent)

    async def get_monthly_spend(self, provider: ApiProvider) -> float:
        config = await self._store.get_provider_config(provider)
        return config.monthly_spent if config else 0.0

    async def get_total_monthly_spend(self) -> float:
        configs = await self._store.list_provider_configs()
        return sum(c.monthly_spent for c in configs)

    async def has_budget_remaining(self, provider: ApiProvider) -> bool:
        """`True` salvo presupuesto agotado. Ante error de lectura, no bloquea."""

        try:
            config = await self._store.get_provider_config(provider)
        except Exception as exc:
            logger.warning("budget lookup failed for %s, allowing: %s", provider.value, exc)
            return True
        if config is None or not config.monthly_budget:
            return True
        return config.monthly_spent < config.monthly_budget

    async def check_budget(self, provider: ApiProvider) -> list[BudgetAlert]:
        config = await self._store.get_provider_config(provider)
        if config is None:
            return []
        return self._evaluate(provider, config.display_name, config.monthly_budget, config.monthly_spent)

    async def get_all_budget_alerts(self) -> list[BudgetAlert]:
        alerts: list[BudgetAlert] = []
        for config in await self._store.list_provider_configs():
            if not config.is_active or not config.monthly_budget:
                continue
            alerts.extend(
                self._evaluate(config.provider, config.display_name, config.monthly_budget, config.monthly_spent)
            )
        return alerts

    async def get_cost_summary(self) -> list[CostSummaryEntry]:
        configs = sorted(await self._store.list_provider_configs(), key=lambda c: c.provider.value)
        summary: list[CostSummaryEntry] = []
        for config in configs:
            budget = config.monthly_budget or None
            summary.append(
                CostSummaryEntry(
                    provider=config.provider,
                    display_name=config.display_name,
                    spent=config.monthly_spent,
                    budget=budget,
                    percent=(config.monthly_spent / budget * 100) if budget else None,
                )
            )
        return summary

    async def reset_monthly_costs(self) -> int:
        """Pone a cero el gasto de todos los proveedores (lo invoca un scheduler externo)."""

        count = await self._store.reset_monthly_spent()
        logger.info("monthly spend reset for %d providers", count)
        return count

    async def estimate_plan_cost(self, plan: Iterable[PlannedQuery], registry: ProviderRegistry) -> float:
        """Costo estimado (BRL) de ejecutar `plan` con proveedores configurados."""

        total = 0.0
        for item in plan:
            provider = registry.get(item.provider)
            if provider is None or not await provider.is_configured():
                continue
            total += await provider.estimate_cost(item.query_type)
        return total
