"""Proveedor: Escavador (processos y datos de pessoa física)."""

from __future__ import annotations

from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, parse_date, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, LawsuitRelevance, QueryType
from core.domain.models import NormalizedLawsuit, ProviderConfig, ProviderQuery, ProviderResult


def classify_relevance(lawsuit_class: str | None) -> LawsuitRelevance:
    if not lawsuit_class:
        return LawsuitRelevance.BAIXA
    lower = lawsuit_class.lower()
    if "execu" in lower and "fiscal" in lower:
        return LawsuitRelevance.CRITICA
    if "fal" in lower or "recupera" in lower:
        return LawsuitRelevance.CRITICA
    if "cobran" in lower or "execu" in lower:
        return LawsuitRelevance.ALTA
    if "ordin" in lower:
        return LawsuitRelevance.MEDIA
    return LawsuitRelevance.BAIXA


class EscavadorBackend(HttpProviderBackend):
    name = ApiProvider.ESCAVADOR
    display_name = "Escavador"
    category = ApiCategory.JUDICIAL
    available_queries = (QueryType.CONSULTA_PROCESSO, QueryType.CONSULTA_CPF)
    default_base_url = "https://api.escavador.com/v1"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type not in self.available_queries:
            return self.unsupported(query)

        api_key = self.require_api_key(config)
        document = only_digits(query.target_document)
        base_url = self.base_url(config)

        async with self.client({"X-Api-Key": api_key}) as client:
            if query.query_type is QueryType.CONSULTA_CPF:
                raw = await fetch_json(
                    client, "GET", f"{base_url}/pessoas", label="Escavador CPF", params={"cpf": document}
                )
                return self.result(query, data=raw.get("data") or raw, raw_response=raw)

            raw = await fetch_json(
                client,
                "GET",
                f"{base_url}/processos",
                label="Escavador processos",
                params={"cpf_cnpj": document},
            )

        lawsuits = [self._lawsuit(item) for item in raw.get("data") or raw.get("items") or []]
        return self.result(
            query,
            data={"totalProcessos": len(lawsuits)},
            normalized_lawsuits=lawsuits,
            raw_response=raw,
        )

    def _lawsuit(self, item: dict[str, Any]) -> NormalizedLawsuit:
        lawsuit_class = item.get("tipo_processo") or item.get("classe")
        return NormalizedLawsuit(
            case_number=item.get("numero_processo") or item.get("numero_cnj") or "",
            court=item.get("tribunal") or "",
            vara=item.get("vara"),
            subject=item.get("assunto"),
            class_=lawsuit_class,
            role=item.get("polo") or "DESCONHECIDO",
            other_parties=item.get("partes") or [],
            estimated_value=to_float(item.get("valor_causa")),
            status=item.get("status") or "Em andamento",
            last_movement=item.get("ultima_movimentacao"),
            last_movement_date=parse_date(item.get("data_ultima_movimentacao")),
            distribution_date=parse_date(item.get("data_distribuicao")),
            relevance=classify_relevance(lawsuit_class),
            has_asset_freeze=bool(item.get("bloqueio_bens")),
            source_provider=self.name,
            raw_source_data=item,
        )
