"""CLI principal (Typer).

Comandos:
- `providers`: catálogo y modo (REAL/MOCK) de cada proveedor.
- `plan`: plan de consultas de un nivel de profundidad, sin ejecutar.
- `scan`: investigación completa sobre un CPF/CNPJ.
- `query`: una sola consulta a un proveedor.
- `costs`: gasto mensual, presupuesto y alertas.
- `configure`: alta/edición de credenciales y límites de un proveedor.
- `doctor`: diagnósticos de entorno.

Por qué store en memoria:
- El motor no depende de una base concreta; la CLI carga `providers.json`,
  ejecuta y vuelve a guardar el gasto mensual acumulado.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.compliance_log import AuditLogComplianceLogger
from adapters.config_loader import load_provider_configs, save_provider_configs
from adapters.json_exporter import export_dossier_json
from adapters.memory_store import InMemoryStore
from cli import doctor
from cli.ui_components import (
    build_alerts_panel,
    build_assets_table,
    build_cost_table,
    build_debts_table,
    build_lawsuits_table,
    build_links_table,
    build_plan_table,
    build_progress_panel,
    build_providers_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.documents import is_valid_cnpj, is_valid_cpf, only_digits
from core.domain.enums import ApiProvider, DepthLevel, LegalBasis, QueryType, TargetType
from core.domain.errors import InvestigationError, InvestigationNotFoundError
from core.services.cost_tracker import CostTracker
from core.services.orchestrator import InvestigationOrchestrator
from core.services.planner import build_query_plan, unanswerable_query_types
from core.services.provider_admin import configure_provider
from core.services.registry import ProviderRegistry, build_default_registry

app = typer.Typer(no_args_is_help=True, help="Investigação patrimonial multi-fonte (CPF/CNPJ).")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=False, show_path=False)],
        force=True,
    )


@dataclass
class _Workspace:
    settings: AppSettings
    configs_path: Path
    store: InMemoryStore
    cost_tracker: CostTracker
    registry: ProviderRegistry

    async def persist_configs(self) -> None:
        save_provider_configs(self.configs_path, await self.store.list_provider_configs())


def _workspace(configs_path: Path | None = None) -> _Workspace:
    settings = AppSettings()
    _configure_logging(settings.log_level)
    path = configs_path or settings.resolved_provider_configs_path()
    try:
        configs = load_provider_configs(path)
    except ValueError as exc:
        _err_console.print(f"[red]Invalid provider configs file {path}:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    store = InMemoryStore(configs)
    tracker = CostTracker(store, settings)
    registry = build_default_registry(store, tracker, settings)
    return _Workspace(settings, path, store, tracker, registry)


def _target_type_for(document: str) -> TargetType:
    digits = only_digits(document)
    if len(digits) == 11 and is_valid_cpf(digits):
        return TargetType.PF
    if len(digits) == 14 and is_valid_cnpj(digits):
        return TargetType.PJ
    raise typer.BadParameter(f"{document!r} is not a valid CPF or CNPJ")


_ConfigsOption = typer.Option(None, "--providers-file", help="Ruta a providers.json (por defecto, config de usuario).")


@app.command()
def providers(configs_path: Optional[Path] = _ConfigsOption) -> None:
    """Lista los proveedores registrados y si corren en modo real o mock."""

    ws = _workspace(configs_path)

    async def _rows() -> list[tuple[str, str, str, str, bool, float]]:
        rows = []
        for provider in ws.registry:
            queries = provider.available_queries()
            cost = await provider.estimate_cost(queries[0]) if queries else 0.0
            rows.append(
                (
                    provider.name.value,
                    provider.display_name,
                    provider.category.value,
                    ", ".join(q.value.removeprefix("CONSULTA_") for q in queries),
                    await provider.is_configured(),
                    cost,
                )
            )
        return rows

    _console.print(build_providers_table(asyncio.run(_rows())))


@app.command()
def plan(
    depth: DepthLevel = typer.Option(DepthLevel.PADRAO, "--depth", "-d", case_sensitive=False),
    target_type: TargetType = typer.Option(TargetType.PJ, "--target-type", "-t", case_sensitive=False),
    configs_path: Optional[Path] = _ConfigsOption,
) -> None:
    """Muestra el plan de consultas de un nivel de profundidad (no ejecuta nada)."""

    ws = _workspace(configs_path)
    query_plan = build_query_plan(depth, target_type, ws.registry)
    estimated = asyncio.run(ws.cost_tracker.estimate_plan_cost(query_plan, ws.registry))

    _console.print(build_plan_table(query_plan))
    _console.print(f"Custo estimado: [bold]R$ {estimated:,.2f}[/bold]")
    missing = unanswerable_query_types(depth, ws.registry)
    if missing:
        names = ", ".join(sorted(q.value for q in missing))
        _console.print(f"[yellow]Sem proveedor para:[/yellow] {names}")


async def _run_scan(
    ws: _Workspace,
    document: str,
    target_type: TargetType,
    depth: DepthLevel,
    *,
    target_name: str | None,
    user_id: str,
    legal_basis: LegalBasis,
    export_path: Path | None,
) -> None:
    audit = AuditLogComplianceLogger()
    orchestrator = InvestigationOrchestrator(
        ws.store, ws.registry, ws.cost_tracker, ws.settings, compliance_logger=audit
    )
    investigation = await ws.store.create_investigation(
        only_digits(document),
        target_type,
        depth=depth,
        target_name=target_name,
        requested_by=user_id,
        legal_basis=legal_basis,
    )
    estimated = await orchestrator.estimate_scan_cost(investigation.id)
    logger.info("estimated scan cost: R$%.2f", estimated)

    progress = await orchestrator.run_scan(investigation.id, user_id=user_id, legal_basis=legal_basis)
    await orchestrator.tasks.drain()
    await ws.persist_configs()

    final = await ws.store.get_investigation(investigation.id)
    if final is None:
        raise InvestigationNotFoundError(investigation.id)
    assets = await ws.store.list_assets(investigation.id)
    debts = await ws.store.list_debts(investigation.id)
    lawsuits = await ws.store.list_lawsuits(investigation.id)
    links = await ws.store.list_corporate_links(investigation.id)

    _console.print(build_progress_panel(final, progress))
    for table in (
        build_assets_table(assets),
        build_debts_table(debts),
        build_lawsuits_table(lawsuits),
        build_links_table(links),
    ):
        if table.row_count:
            _console.print(table)

    alerts = await ws.cost_tracker.get_all_budget_alerts()
    if alerts:
        _console.print(build_alerts_panel(alerts))

    if export_path is not None:
        export_dossier_json(
            investigation=final,
            assets=assets,
            debts=debts,
            lawsuits=lawsuits,
            corporate_links=links,
            queries=await ws.store.list_query_records(investigation.id),
            output_path=export_path,
        )
        audit.log_data_export(investigation.id, user_id, str(export_path))
        _console.print(f"[green]Dossiê exportado:[/green] {export_path}")


@app.command()
def scan(
    document: str = typer.Argument(..., help="CPF o CNPJ del objetivo (con o sin máscara)."),
    depth: DepthLevel = typer.Option(DepthLevel.PADRAO, "--depth", "-d", case_sensitive=False),
    name: Optional[str] = typer.Option(None, "--name", help="Nombre/razón social del objetivo."),
    user_id: Optional[str] = typer.Option(None, "--user", help="Usuario que solicita (auditoría LGPD)."),
    legal_basis: Optional[LegalBasis] = typer.Option(None, "--legal-basis", case_sensitive=False),
    export_json: Optional[Path] = typer.Option(None, "--export-json", help="Exporta el dossiê a JSON."),
    no_banner: bool = typer.Option(False, "--no-banner"),
    configs_path: Optional[Path] = _ConfigsOption,
) -> None:
    """Ejecuta una investigación completa sobre un CPF/CNPJ."""

    target_type = _target_type_for(document)
    ws = _workspace(configs_path)
    if not no_banner:
        print_banner(_console)
    try:
        asyncio.run(
            _run_scan(
                ws,
                document,
                target_type,
                depth,
                target_name=name,
                user_id=user_id or ws.settings.default_user_id,
                legal_basis=legal_basis or ws.settings.default_legal_basis,
                export_path=export_json,
            )
        )
    except InvestigationError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def query(
    document: str = typer.Argument(..., help="CPF o CNPJ del objetivo."),
    provider: ApiProvider = typer.Argument(..., case_sensitive=False),
    query_type: QueryType = typer.Argument(..., case_sensitive=False),
    user_id: Optional[str] = typer.Option(None, "--user"),
    configs_path: Optional[Path] = _ConfigsOption,
) -> None:
    """Ejecuta una sola consulta (fuera de un scan)."""

    target_type = _target_type_for(document)
    ws = _workspace(configs_path)

    async def _run() -> None:
        orchestrator = InvestigationOrchestrator(
            ws.store, ws.registry, ws.cost_tracker, ws.settings, compliance_logger=AuditLogComplianceLogger()
        )
        investigation = await ws.store.create_investigation(only_digits(document), target_type)
        result = await orchestrator.execute_single_query(
            investigation.id, provider, query_type, user_id=user_id or ws.settings.default_user_id
        )
        await orchestrator.tasks.drain()
        await ws.persist_configs()
        mode = "MOCK" if result.is_mock else "REAL"
        status = "[green]OK[/green]" if result.success else "[red]ERRO[/red]"
        _console.print(
            f"{status} {result.provider.value} {result.query_type.value} ({mode}, "
            f"{result.response_time_ms}ms, R$ {result.cost:.2f}) - {result.finding_count} achados"
        )
        if result.error_message:
            _console.print(f"[yellow]{result.error_message}[/yellow]")

    try:
        asyncio.run(_run())
    except InvestigationError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def costs(
    reset: bool = typer.Option(False, "--reset", help="Pone a cero el gasto mensual (cierre de período)."),
    configs_path: Optional[Path] = _ConfigsOption,
) -> None:
    """Gasto mensual por proveedor, presupuesto y alertas."""

    ws = _workspace(configs_path)

    async def _run() -> None:
        if reset:
            count = await ws.cost_tracker.reset_monthly_costs()
            await ws.persist_configs()
            _console.print(f"[green]Gasto mensual reiniciado[/green] ({count} proveedores)")
        summary = await ws.cost_tracker.get_cost_summary()
        _console.print(build_cost_table(summary))
        total = await ws.cost_tracker.get_total_monthly_spend()
        _console.print(f"Total do mes: [bold]R$ {total:,.2f}[/bold]")
        alerts = await ws.cost_tracker.get_all_budget_alerts()
        if alerts:
            _console.print(build_alerts_panel(alerts))

    asyncio.run(_run())


@app.command()
def configure(
    provider: ApiProvider = typer.Argument(..., case_sensitive=False),
    api_key: Optional[str] = typer.Option(None, "--api-key"),
    api_secret: Optional[str] = typer.Option(None, "--api-secret"),
    base_url: Optional[str] = typer.Option(None, "--base-url"),
    budget: Optional[float] = typer.Option(None, "--budget", min=0, help="Presupuesto mensual (BRL)."),
    cost_per_query: Optional[float] = typer.Option(None, "--cost-per-query", min=0),
    rate_per_min: Optional[int] = typer.Option(None, "--rate-per-min", min=1),
    rate_per_day: Optional[int] = typer.Option(None, "--rate-per-day", min=1),
    inactive: bool = typer.Option(False, "--inactive", help="Desactiva el proveedor (fuerza mock)."),
    role: str = typer.Option("ADMIN", "--role", help="Rol de quien configura."),
    configs_path: Optional[Path] = _ConfigsOption,
) -> None:
    """Crea o actualiza la configuración de un proveedor en providers.json."""

    ws = _workspace(configs_path)
    credentials = {
        key: value
        for key, value in (
            ("api_key", api_key),
            ("api_secret", api_secret),
            ("base_url", base_url),
            ("cost_per_query", cost_per_query),
            ("rate_limit_per_min", rate_per_min),
            ("rate_limit_per_day", rate_per_day),
        )
        if value is not None
    }

    async def _run() -> None:
        existing = await ws.store.get_provider_config(provider)
        monthly_budget = budget if budget is not None else (existing.monthly_budget if existing else None)
        saved = await configure_provider(
            ws.store,
            ws.registry,
            provider,
            credentials,
            monthly_budget,
            not inactive,
            actor_role=role,
            settings=ws.settings,
        )
        await ws.persist_configs()
        mode = "REAL" if saved.usable else "MOCK"
        _console.print(f"[green]Saved[/green] {saved.display_name} ({mode}) -> {ws.configs_path}")

    try:
        asyncio.run(_run())
    except InvestigationError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def run() -> None:
    app()
