"""Proveedor: OpenSanctions (PEP y sanciones, endpoint `/match`)."""

from __future__ import annotations

from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend
from core.domain.enums import ApiCategory, ApiProvider, QueryType, TargetType
from core.domain.models import ProviderConfig, ProviderQuery, ProviderResult


def classify_topics(topics: list[str]) -> str:
    if any("sanction" in topic for topic in topics):
        return "SANCTION"
    if any("pep" in topic or "pol" in topic for topic in topics):
        return "PEP"
    if any("crime" in topic for topic in topics):
        return "CRIME"
    return "OTHER"


class OpenSanctionsBackend(HttpProviderBackend):
    name = ApiProvider.OPENSANCTIONS
    display_name = "OpenSanctions"
    category = ApiCategory.COMPLIANCE
    available_queries = (QueryType.CONSULTA_PEP_SANCOES,)
    default_base_url = "https://api.opensanctions.org"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_PEP_SANCOES:
            return self.unsupported(query)

        headers = {"Authorization": f"ApiKey {config.api_key}"} if config.api_key else None
        body = {
            "schema": "Company" if query.target_type is TargetType.PJ else "Person",
            "properties": {
                "name": [query.params.get("name") or query.target_document],
                "country": [query.params.get("country") or "br"],
            },
        }
        async with self.client(headers) as client:
            raw = await fetch_json(
                client, "POST", f"{self.base_url(config)}/match/default", label="OpenSanctions", json=body
            )

        sanctions = [_screening_hit(hit) for hit in raw.get("responses") or raw.get("results") or []]
        return self.result(
            query,
            data={"totalHits": len(sanctions), "sanctions": sanctions},
            raw_response=raw,
        )


def _screening_hit(hit: dict[str, Any]) -> dict[str, Any]:
    props = hit.get("properties") or {}
    names = props.get("name") or []
    countries = props.get("country") or []
    return {
        "nome": names[0] if names else hit.get("caption") or "",
        "score": hit.get("score") or 0,
        "fonte": "OpenSanctions",
        "lista": ", ".join(hit.get("datasets") or []) or "default",
        "pais": countries[0] if countries else "BR",
        "tipo": classify_topics(props.get("topics") or []),
        "detalhes": hit.get("caption"),
    }
