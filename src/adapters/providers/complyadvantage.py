"""Proveedor: ComplyAdvantage (screening PEP / sanções / mídia adversa)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, as_list
from core.domain.enums import ApiCategory, ApiProvider, QueryType, TargetType
from core.domain.models import ProviderConfig, ProviderQuery, ProviderResult

SCREENING_TYPES = ("sanction", "pep", "adverse-media", "warning")


def classify_hit_types(types: list[str]) -> str:
    for needle, label in (("sanction", "SANCTION"), ("pep", "PEP"), ("adverse", "ADVERSE_MEDIA"), ("warning", "WARNING")):
        if any(needle in kind for kind in types):
            return label
    return "OTHER"


class ComplyAdvantageBackend(HttpProviderBackend):
    name = ApiProvider.COMPLYADVANTAGE
    display_name = "ComplyAdvantage"
    category = ApiCategory.COMPLIANCE
    available_queries = (QueryType.CONSULTA_PEP_SANCOES,)
    default_base_url = "https://api.complyadvantage.com/v1"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_PEP_SANCOES:
            return self.unsupported(query)

        api_key = self.require_api_key(config)
        body = {
            "search_term": query.params.get("name") or query.target_document,
            "client_ref": query.target_document,
            "fuzziness": 0.6,
            "filters": {
                "entity_type": "company" if query.target_type is TargetType.PJ else "person",
                "types": list(SCREENING_TYPES),
                "birth_year": query.params.get("birth_year"),
                "country_codes": query.params.get("country_codes") or ["BR"],
            },
            "limit": 20,
        }
        async with self.client({"Authorization": f"ApiKey {api_key}"}) as client:
            raw = await fetch_json(
                client, "POST", f"{self.base_url(config)}/searches", label="ComplyAdvantage", json=body
            )

        search = (raw.get("content") or {}).get("data") or {}
        hits = as_list(search.get("hits"))
        results = [_screening_hit(hit) for hit in hits]
        return self.result(
            query,
            data={
                "totalHits": search.get("total_hits") or len(hits),
                "hasPep": any(item["tipo"] == "PEP" for item in results),
                "hasSanction": any(item["tipo"] == "SANCTION" for item in results),
                "screeningResults": results,
                "searchId": search.get("id"),
                "searchRef": search.get("ref"),
                "screeningDate": datetime.now(timezone.utc).isoformat(),
            },
            raw_response=raw,
        )


def _screening_hit(hit: dict[str, Any]) -> dict[str, Any]:
    types = hit.get("types") or []
    sources = ", ".join(str(s.get("name") or s.get("url") or "") for s in as_list(hit.get("sources")))
    countries = hit.get("countries") or []
    return {
        "nome": hit.get("name") or "",
        "score": hit.get("match_score") or hit.get("relevance") or 0,
        "fonte": sources or "ComplyAdvantage",
        "lista": ", ".join(types),
        "pais": countries[0] if countries else "BR",
        "tipo": classify_hit_types(types),
        "detalhes": hit.get("name") or "Verificacao manual recomendada.",
        "entityType": hit.get("entity_type"),
        "matchedFields": hit.get("matched_fields"),
    }
