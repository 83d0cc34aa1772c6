"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Runtime, orquestador y adaptadores HTTP leen los mismos parámetros
  (reintentos, lotes, umbrales de presupuesto).

Las credenciales de proveedores NO viven aquí: se guardan por proveedor en
`providers.json` (ver `adapters.config_loader`).
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.enums import LegalBasis, QueryType

_APP_DIR = "patrimonia"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / _APP_DIR
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / _APP_DIR

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / _APP_DIR
    return Path.home() / ".config" / _APP_DIR


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def get_default_provider_configs_path() -> Path:
    return get_user_config_dir() / "providers.json"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/servicios.
    """

    model_config = SettingsConfigDict(
        env_prefix="PATRIMONIA_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request HTTP a proveedores (segundos).",
    )
    user_agent: str = Field(
        default="patrimonia/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para llamadas a proveedores.",
    )

    # Reintentos (runtime de proveedores)
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Espera antes del segundo intento; se duplica en cada intento.",
    )
    retry_jitter_ms: int = Field(default=500, ge=0, description="Jitter aleatorio máximo sumado a cada espera.")

    # Orquestación
    scan_batch_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Consultas concurrentes por lote durante un scan.",
    )
    provider_config_ttl_seconds: float | None = Field(
        default=300.0,
        description="TTL de la caché de configuración por proveedor (None = vida del runtime).",
    )

    # Presupuesto
    budget_warning_ratio: float = Field(default=0.8, gt=0)
    budget_critical_ratio: float = Field(default=1.0, gt=0)
    block_on_exhausted_budget: bool = Field(
        default=False,
        description="Si True, un proveedor con presupuesto agotado cae a mock.",
    )
    query_type_costs: dict[QueryType, float] = Field(
        default_factory=dict,
        description="Costo por defecto (BRL) por tipo de consulta cuando el proveedor no define uno.",
    )

    # LGPD / usuarios
    default_legal_basis: LegalBasis = Field(default=LegalBasis.PROTECAO_CREDITO)
    default_user_id: str = Field(default="system", min_length=1)
    provider_admin_roles: frozenset[str] = Field(
        default=frozenset({"ADMIN", "SOCIO"}),
        description="Roles autorizados a configurar proveedores.",
    )

    provider_configs_path: Path | None = Field(
        default=None,
        description="Ruta al JSON de configuración de proveedores (default: user config dir).",
    )
    log_level: str = Field(default="INFO", description="Nivel de logging de la CLI.")

    @model_validator(mode="after")
    def _check_budget_ratios(self) -> "AppSettings":
        if self.budget_warning_ratio >= self.budget_critical_ratio:
            raise ValueError("budget_warning_ratio must be below budget_critical_ratio")
        return self

    def resolved_provider_configs_path(self) -> Path:
        return self.provider_configs_path or get_default_provider_configs_path()
