"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.config_loader import load_provider_configs
from adapters.http_client import build_async_client
from core.config import AppSettings, get_user_env_file

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

_CONNECTIVITY_URL = "https://brasilapi.com.br/api/ibge/uf/v1/PR"


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_provider_configs(path: Path) -> tuple[str, str]:
    if not path.exists():
        return "OPTIONAL", f"{path} not found -> every provider runs in mock mode"
    try:
        configs = load_provider_configs(path)
    except ValueError as exc:
        return "FAIL", f"{path}: {exc}"
    usable = sum(1 for config in configs if config.usable)
    return "OK", f"{path} ({len(configs)} entries, {usable} usable)"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Patrimonia Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    env_file = get_user_env_file()
    table.add_row("User .env", "OK" if env_file.exists() else "OPTIONAL", str(env_file))

    status, detail = _check_provider_configs(settings.resolved_provider_configs_path())
    table.add_row("Provider configs", status, detail)

    table.add_row(
        "Retry policy",
        "OK",
        f"{settings.retry_max_attempts} attempts, base {settings.retry_base_delay_ms}ms "
        f"+ jitter {settings.retry_jitter_ms}ms",
    )
    table.add_row(
        "Budget thresholds",
        "OK",
        f"warning {settings.budget_warning_ratio:.0%} / critical {settings.budget_critical_ratio:.0%}"
        + (" (blocking)" if settings.block_on_exhausted_budget else ""),
    )

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(_CONNECTIVITY_URL, settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if status == "FAIL":
        _console.print(
            "\n[yellow]Note:[/yellow] fix the provider configs file or recreate it with `patrimonia configure`."
        )
