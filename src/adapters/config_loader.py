"""Carga y guardado de `providers.json`.

Formato:
    {"providers": [{"provider": "DATAJUD", "api_key": "...", ...}, ...]}

Nota:
- Las credenciales nunca van al `.env`: un archivo por usuario, fuera del
  repo, editable a mano o vía `patrimonia configure`.
- Un archivo inexistente equivale a "ningún proveedor configurado".
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from core.domain.models import ProviderConfig

logger = logging.getLogger(__name__)


class ProviderConfigsFile(BaseModel):
    providers: list[ProviderConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_providers(self) -> "ProviderConfigsFile":
        seen = set()
        for config in self.providers:
            if config.provider in seen:
                raise ValueError(f"duplicate provider entry: {config.provider.value}")
            seen.add(config.provider)
        return self


def load_provider_configs(path: Path) -> list[ProviderConfig]:
    if not path.exists():
        logger.info("provider configs file %s not found, all providers run in mock mode", path)
        return []
    raw = path.read_text(encoding="utf-8")
    data = json.loads(raw) if raw.strip() else {}
    return ProviderConfigsFile.model_validate(data).providers


def save_provider_configs(path: Path, configs: list[ProviderConfig]) -> Path:
    """Escribe el archivo con formato estable (ordenado por proveedor)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = ProviderConfigsFile(providers=sorted(configs, key=lambda c: c.provider.value))
    path.write_text(
        json.dumps(payload.model_dump(mode="json"), ensure_ascii=False, indent=2) + "\n",
        encoding="utf-8",
    )
    return path
