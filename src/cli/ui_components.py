"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.documents import mask_document
from core.domain.enums import AlertSeverity, ProgressStatus
from core.domain.models import (
    BudgetAlert,
    CostSummaryEntry,
    Investigation,
    InvestigationProgress,
    NormalizedAsset,
    NormalizedCorporateLink,
    NormalizedDebt,
    NormalizedLawsuit,
    PlannedQuery,
)

_STATUS_STYLE = {
    ProgressStatus.COMPLETED: "green",
    ProgressStatus.PARTIAL: "yellow",
    ProgressStatus.FAILED: "red",
    ProgressStatus.RUNNING: "cyan",
}


def _brl(value: float | None) -> str:
    if value is None:
        return "-"
    return f"R$ {value:,.2f}"


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("PATRIMONIA", style="bold cyan")
    subtitle = Text("Investigação patrimonial • Proveedores • Custos", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_providers_table(rows: list[tuple[str, str, str, str, bool, float]]) -> Table:
    """Filas: (código, nombre, categoría, consultas, configurado, costo estimado)."""

    table = Table(title="Providers")
    table.add_column("Provider", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Category", style="magenta")
    table.add_column("Queries", style="dim")
    table.add_column("Mode", no_wrap=True)
    table.add_column("Cost/query", justify="right")
    for code, name, category, queries, configured, cost in rows:
        mode = "[green]REAL[/green]" if configured else "[yellow]MOCK[/yellow]"
        table.add_row(code, name, category, queries, mode, _brl(cost))
    return table


def build_plan_table(plan: list[PlannedQuery]) -> Table:
    table = Table(title=f"Query plan ({len(plan)} queries)")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Provider", style="cyan", no_wrap=True)
    table.add_column("Query type", style="white")
    for index, item in enumerate(plan, start=1):
        table.add_row(str(index), item.provider.value, item.query_type.value)
    return table


def build_progress_panel(investigation: Investigation, progress: InvestigationProgress) -> Panel:
    style = _STATUS_STYLE.get(progress.status, "white")
    body = Text()
    body.append(f"Alvo: {mask_document(investigation.target_document)} ({investigation.target_type.value})\n")
    body.append(f"Profundidade: {investigation.depth.value}\n")
    body.append("Status: ")
    body.append(f"{progress.status.value}", style=f"bold {style}")
    body.append(f" / {investigation.status.value}\n")
    body.append(
        f"Consultas: {progress.completed_queries} ok, {progress.failed_queries} falhas, "
        f"{progress.total_queries} total\n"
    )
    body.append(f"Patrimônio estimado: {_brl(investigation.total_estimated_value)}\n")
    body.append(f"Dívidas: {_brl(investigation.total_debts)}\n")
    body.append(f"Custo das consultas: {_brl(investigation.total_cost)}", style="dim")
    return Panel(body, title=Text("Investigação", style="bold"), border_style=style)


def build_assets_table(assets: list[NormalizedAsset]) -> Table:
    table = Table(title=f"Assets ({len(assets)})")
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")
    table.add_column("Value", justify="right")
    table.add_column("Restriction", style="red")
    table.add_column("Source", style="dim")
    for asset in assets:
        table.add_row(
            asset.category.value,
            asset.description,
            _brl(asset.estimated_value),
            asset.restriction_type or "",
            asset.source_provider.value,
        )
    return table


def build_debts_table(debts: list[NormalizedDebt]) -> Table:
    table = Table(title=f"Debts ({len(debts)})")
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Creditor", style="white")
    table.add_column("Value", justify="right")
    table.add_column("Status", style="yellow")
    table.add_column("Source", style="dim")
    for debt in debts:
        value = debt.current_value if debt.current_value is not None else debt.original_value
        table.add_row(debt.debt_type.value, debt.creditor, _brl(value), debt.status or "", debt.source_provider.value)
    return table


def build_lawsuits_table(lawsuits: list[NormalizedLawsuit]) -> Table:
    table = Table(title=f"Lawsuits ({len(lawsuits)})")
    table.add_column("Case", style="cyan", no_wrap=True)
    table.add_column("Court", style="white")
    table.add_column("Class", style="white")
    table.add_column("Role")
    table.add_column("Relevance", style="magenta")
    table.add_column("Freeze", style="red")
    for lawsuit in lawsuits:
        table.add_row(
            lawsuit.case_number,
            lawsuit.court,
            lawsuit.class_ or "",
            lawsuit.role,
            lawsuit.relevance.value,
            "yes" if lawsuit.has_asset_freeze else "",
        )
    return table


def build_links_table(links: list[NormalizedCorporateLink]) -> Table:
    table = Table(title=f"Corporate links ({len(links)})")
    table.add_column("Company", style="cyan")
    table.add_column("CNPJ", style="white", no_wrap=True)
    table.add_column("Role")
    table.add_column("Flags", style="red")
    for link in links:
        flags = [
            label
            for label, on in (
                ("offshore", link.is_offshore),
                ("recent", link.is_recent_creation),
                ("irregular", link.has_irregularity),
            )
            if on
        ]
        table.add_row(link.company_name, link.company_cnpj, link.role, ", ".join(flags))
    return table


def build_cost_table(entries: list[CostSummaryEntry]) -> Table:
    table = Table(title="Monthly costs")
    table.add_column("Provider", style="cyan", no_wrap=True)
    table.add_column("Spent", justify="right")
    table.add_column("Budget", justify="right")
    table.add_column("Used", justify="right")
    for entry in entries:
        used = f"{entry.percent:.1f}%" if entry.percent is not None else "-"
        table.add_row(entry.display_name, _brl(entry.spent), _brl(entry.budget), used)
    return table


def build_alerts_panel(alerts: list[BudgetAlert]) -> Panel:
    body = Text()
    critical = any(alert.severity is AlertSeverity.CRITICAL for alert in alerts)
    for alert in alerts:
        style = "bold red" if alert.severity is AlertSeverity.CRITICAL else "yellow"
        body.append(f"[{alert.severity.value}] ", style=style)
        body.append(alert.message + "\n")
    return Panel(
        body,
        title=Text("Budget alerts", style="bold"),
        border_style="red" if critical else "yellow",
    )
