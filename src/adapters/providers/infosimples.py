"""Proveedor: InfoSimples (imóveis, veículos y protestos por documento).

Los tres endpoints comparten formato: POST `{"documento": ...}` con Bearer
y respuesta `{"code": 200, "data": [...]}`; un `code` distinto de 200 es
error aunque el HTTP sea 200.
"""

from __future__ import annotations

from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, parse_date, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, AssetCategory, DebtType, QueryType
from core.domain.errors import ProviderRequestError
from core.domain.models import NormalizedAsset, NormalizedDebt, ProviderConfig, ProviderQuery, ProviderResult

_ENDPOINTS = {
    QueryType.CONSULTA_IMOVEL: "imoveis",
    QueryType.CONSULTA_VEICULO: "veiculos",
    QueryType.CONSULTA_PROTESTO: "protestos",
}


class InfoSimplesBackend(HttpProviderBackend):
    name = ApiProvider.INFOSIMPLES
    display_name = "InfoSimples"
    category = ApiCategory.PATRIMONIAL
    available_queries = tuple(_ENDPOINTS)
    default_base_url = "https://api.infosimples.com/api/v2"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        endpoint = _ENDPOINTS.get(query.query_type)
        if endpoint is None:
            return self.unsupported(query)

        api_key = self.require_api_key(config)
        async with self.client({"Authorization": f"Bearer {api_key}"}) as client:
            raw = await fetch_json(
                client,
                "POST",
                f"{self.base_url(config)}/consulta/{endpoint}",
                label=f"InfoSimples {endpoint}",
                json={"documento": only_digits(query.target_document)},
            )
        code = raw.get("code")
        if code and code != 200:
            raise ProviderRequestError(f"InfoSimples API error: {raw.get('code_message') or code}")

        items: list[dict[str, Any]] = raw.get("data") if isinstance(raw.get("data"), list) else []

        if query.query_type is QueryType.CONSULTA_IMOVEL:
            assets = [self._property(item) for item in items]
            return self.result(
                query,
                data={"totalImoveis": len(assets), "registros": items},
                normalized_assets=assets,
                raw_response=raw,
            )
        if query.query_type is QueryType.CONSULTA_VEICULO:
            assets = [self._vehicle(item) for item in items]
            return self.result(
                query,
                data={"totalVeiculos": len(assets), "registros": items},
                normalized_assets=assets,
                raw_response=raw,
            )
        debts = [self._protest(item) for item in items]
        return self.result(
            query,
            data={"totalProtestos": len(debts), "registros": items},
            normalized_debts=debts,
            raw_response=raw,
        )

    def _property(self, item: dict[str, Any]) -> NormalizedAsset:
        kind = item.get("tipo") or "Urbano"
        restricted = bool(item.get("restricao"))
        city = item.get("municipio")
        state = item.get("uf")
        return NormalizedAsset(
            category=AssetCategory.IMOVEL_RURAL if kind == "Rural" else AssetCategory.IMOVEL_URBANO,
            subcategory=kind,
            description=f"Imovel {kind} - {city or 'N/I'}/{state or 'N/I'}",
            registration_id=item.get("matricula"),
            location=f"{city or ''}/{state or ''}",
            state=state,
            city=city,
            estimated_value=to_float(item.get("valor_estimado")),
            valuation_method="Estimativa InfoSimples",
            has_restriction=restricted,
            restriction_type=item.get("restricao") if restricted else None,
            restriction_detail=item.get("detalhe_restricao") if restricted else None,
            is_seizable=not restricted,
            ownership_percentage=to_float(item.get("percentual_propriedade")) or 100,
            area_hectares=to_float(item.get("area_hectares")),
            source_provider=self.name,
            raw_source_data=item,
        )

    def _vehicle(self, item: dict[str, Any]) -> NormalizedAsset:
        restrictions = item.get("restricoes")
        restricted = bool(item.get("restricao") or restrictions)
        restriction_type = None
        if restricted:
            restriction_type = ", ".join(restrictions) if isinstance(restrictions, list) else item.get("restricao")
        description = f"{item.get('marca') or ''} {item.get('modelo') or ''} {item.get('ano_modelo') or ''}".strip()
        return NormalizedAsset(
            category=AssetCategory.VEICULO_AUTOMOVEL,
            subcategory=item.get("tipo_veiculo") or item.get("marca") or "Automovel",
            description=description or "Veiculo N/I",
            registration_id=item.get("renavam") or item.get("placa"),
            location=item.get("uf"),
            state=item.get("uf"),
            estimated_value=to_float(item.get("valor_fipe")),
            valuation_method="FIPE",
            has_restriction=restricted,
            restriction_type=restriction_type,
            is_seizable=not restricted,
            ownership_percentage=100,
            source_provider=self.name,
            raw_source_data=item,
        )

    def _protest(self, item: dict[str, Any]) -> NormalizedDebt:
        city = item.get("cidade") or item.get("municipio") or ""
        state = item.get("uf") or ""
        office = item.get("cartorio") or item.get("tabelionato") or "N/I"
        return NormalizedDebt(
            debt_type=DebtType.PROTESTO,
            creditor=item.get("credor") or "N/I",
            creditor_document=item.get("documento_credor"),
            original_value=to_float(item.get("valor")),
            current_value=to_float(item.get("valor_atualizado")),
            inscription_date=parse_date(item.get("data_protesto")),
            description=f"Protesto - {office} - {city}/{state}",
            status=item.get("situacao") or "ATIVO",
            origin=f"{city}/{state}",
            source_provider=self.name,
            raw_source_data=item,
        )
