"""Proveedor: BrasilAPI (CNPJ, Receita Federal).

API pública y gratuita; solo necesita `base_url` opcional. El QSA se
normaliza como vínculos societarios de la empresa consultada.
"""

from __future__ import annotations

from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, is_recent_creation, parse_date, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.models import NormalizedCorporateLink, ProviderConfig, ProviderQuery, ProviderResult


class BrasilApiBackend(HttpProviderBackend):
    name = ApiProvider.BRASILAPI
    display_name = "BrasilAPI"
    category = ApiCategory.CADASTRAL
    available_queries = (QueryType.CONSULTA_CNPJ,)
    default_base_url = "https://brasilapi.com.br/api/v1"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_CNPJ:
            return self.unsupported(query)

        cnpj = only_digits(query.target_document)
        async with self.client() as client:
            raw = await fetch_json(client, "GET", f"{self.base_url(config)}/cnpj/v1/{cnpj}", label="BrasilAPI CNPJ")

        status = raw.get("descricao_situacao_cadastral")
        irregular = status != "ATIVA"
        opened = parse_date(raw.get("data_inicio_atividade"))
        cnae = str(raw["cnae_fiscal"]) if raw.get("cnae_fiscal") else None

        links = [
            NormalizedCorporateLink(
                company_name=raw.get("razao_social") or "N/I",
                company_cnpj=raw.get("cnpj") or cnpj,
                company_status=status,
                cnae=cnae,
                open_date=opened,
                role=partner.get("qualificacao_socio") or "Socio",
                capital_value=to_float(raw.get("capital_social")),
                entry_date=parse_date(partner.get("data_entrada_sociedade")),
                is_recent_creation=is_recent_creation(opened),
                has_irregularity=irregular,
                irregularity_desc=f"Situacao cadastral: {status}" if irregular else None,
                source_provider=self.name,
                raw_source_data=partner,
            )
            for partner in raw.get("qsa") or []
        ]

        return self.result(
            query,
            data=_company_summary(raw, cnae),
            normalized_corporate_links=links,
            raw_response=raw,
        )


def _company_summary(raw: dict[str, Any], cnae: str | None) -> dict[str, Any]:
    street = f"{raw.get('descricao_tipo_de_logradouro') or ''} {raw.get('logradouro') or ''}".strip()
    return {
        "razaoSocial": raw.get("razao_social"),
        "nomeFantasia": raw.get("nome_fantasia"),
        "cnpj": raw.get("cnpj"),
        "situacao": raw.get("descricao_situacao_cadastral"),
        "capitalSocial": raw.get("capital_social"),
        "naturezaJuridica": f"{raw.get('codigo_natureza_juridica')} - {raw.get('natureza_juridica')}",
        "endereco": {
            "logradouro": street,
            "numero": raw.get("numero"),
            "complemento": raw.get("complemento"),
            "bairro": raw.get("bairro"),
            "cidade": raw.get("municipio"),
            "uf": raw.get("uf"),
            "cep": raw.get("cep"),
        },
        "cnaePrincipal": {"codigo": cnae, "descricao": raw.get("cnae_fiscal_descricao")} if cnae else None,
    }
