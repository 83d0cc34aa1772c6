"""Exportación JSON del dossiê de una investigación.

Por qué JSON:
- Interoperabilidad con planillas, BI y el sistema relacional de destino.
- Evidencia persistible sin depender de un render HTML/PDF.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import (
    Investigation,
    NormalizedAsset,
    NormalizedCorporateLink,
    NormalizedDebt,
    NormalizedLawsuit,
    QueryExecutionRecord,
)

# Payloads crudos de proveedor: pueden ser grandes y no aportan al dossiê.
_RAW_FIELDS = {"raw_source_data"}


def export_dossier_json(
    *,
    investigation: Investigation,
    assets: list[NormalizedAsset],
    debts: list[NormalizedDebt],
    lawsuits: list[NormalizedLawsuit],
    corporate_links: list[NormalizedCorporateLink],
    output_path: Path,
    queries: list[QueryExecutionRecord] | None = None,
) -> Path:
    """Exporta investigación + hallazgos a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "investigation": investigation.model_dump(mode="json"),
        "assets": [a.model_dump(mode="json", exclude=_RAW_FIELDS) for a in assets],
        "debts": [d.model_dump(mode="json", exclude=_RAW_FIELDS) for d in debts],
        "lawsuits": [ls.model_dump(mode="json", exclude=_RAW_FIELDS) for ls in lawsuits],
        "corporate_links": [c.model_dump(mode="json", exclude=_RAW_FIELDS) for c in corporate_links],
    }
    if queries is not None:
        payload["queries"] = [
            q.model_dump(mode="json", exclude={"raw_response"}) for q in queries
        ]
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
