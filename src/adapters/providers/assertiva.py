"""Proveedor: Assertiva (scoring de crédito, protestos y dívida ativa)."""

from __future__ import annotations

from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, parse_date, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, DebtType, QueryType
from core.domain.models import NormalizedDebt, ProviderConfig, ProviderQuery, ProviderResult

_ENDPOINTS = {
    QueryType.CONSULTA_SCORING: "scoring",
    QueryType.CONSULTA_PROTESTO: "protestos",
    QueryType.CONSULTA_DIVIDA_ATIVA: "divida-ativa",
}


def debt_type_for_sphere(sphere: str | None) -> DebtType:
    lower = (sphere or "Federal").lower()
    if "estadual" in lower:
        return DebtType.DIVIDA_ATIVA_ESTADO
    if "municipal" in lower:
        return DebtType.DIVIDA_ATIVA_MUNICIPIO
    return DebtType.DIVIDA_ATIVA_UNIAO


class AssertivaBackend(HttpProviderBackend):
    name = ApiProvider.ASSERTIVA
    display_name = "Assertiva"
    category = ApiCategory.CREDITICIO
    available_queries = tuple(_ENDPOINTS)
    default_base_url = "https://api.assertivasolucoes.com.br/v2"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        endpoint = _ENDPOINTS.get(query.query_type)
        if endpoint is None:
            return self.unsupported(query)

        api_key = self.require_api_key(config)
        async with self.client({"Authorization": f"Bearer {api_key}"}) as client:
            raw = await fetch_json(
                client,
                "POST",
                f"{self.base_url(config)}/{endpoint}",
                label=f"Assertiva {endpoint}",
                json={"documento": only_digits(query.target_document)},
            )

        if query.query_type is QueryType.CONSULTA_SCORING:
            return self.result(
                query,
                data={
                    "score": raw.get("score"),
                    "riskClassification": raw.get("classificacao_risco") or raw.get("risk_classification"),
                    "negativacoes": raw.get("negativacoes") or 0,
                    "protestos": raw.get("protestos") or 0,
                    "chequesSemFundo": raw.get("cheques_sem_fundo") or 0,
                    "consultasRecentes": raw.get("consultas_recentes") or 0,
                    "rendaEstimada": raw.get("renda_estimada"),
                },
                raw_response=raw,
            )

        items: list[dict[str, Any]] = raw.get("data") if isinstance(raw.get("data"), list) else []
        if query.query_type is QueryType.CONSULTA_PROTESTO:
            debts = [self._protest(item) for item in items]
            return self.result(query, data={"totalProtestos": len(debts)}, normalized_debts=debts, raw_response=raw)

        debts = [self._tax_debt(item) for item in items]
        return self.result(query, data={"totalDividas": len(debts)}, normalized_debts=debts, raw_response=raw)

    def _protest(self, item: dict[str, Any]) -> NormalizedDebt:
        place = f"{item.get('cidade') or ''}/{item.get('uf') or ''}"
        return NormalizedDebt(
            debt_type=DebtType.PROTESTO,
            creditor=item.get("credor") or "N/I",
            creditor_document=item.get("documento_credor"),
            original_value=to_float(item.get("valor")),
            current_value=to_float(item.get("valor_atualizado")),
            inscription_date=parse_date(item.get("data_protesto")),
            description=f"Protesto - {item.get('cartorio') or 'N/I'} - {place}",
            status=item.get("situacao") or "ATIVO",
            origin=place,
            source_provider=self.name,
            raw_source_data=item,
        )

    def _tax_debt(self, item: dict[str, Any]) -> NormalizedDebt:
        agency = item.get("orgao")
        return NormalizedDebt(
            debt_type=debt_type_for_sphere(item.get("esfera")),
            creditor=agency or "Fazenda Publica",
            creditor_document=item.get("cnpj_orgao"),
            original_value=to_float(item.get("valor_original")),
            current_value=to_float(item.get("valor_atualizado")),
            inscription_date=parse_date(item.get("data_inscricao")),
            description=f"Divida Ativa - {item.get('natureza') or 'N/I'} - {agency or ''}",
            case_number=item.get("numero_inscricao"),
            status=item.get("situacao") or "ATIVO",
            origin=item.get("esfera") or "Federal",
            source_provider=self.name,
            raw_source_data=item,
        )
