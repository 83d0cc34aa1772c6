"""Proveedor: CNPJA Open (cadastro de empresas, sin API key)."""

from __future__ import annotations

from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, is_recent_creation, parse_date, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.models import NormalizedCorporateLink, ProviderConfig, ProviderQuery, ProviderResult


class CnpjaBackend(HttpProviderBackend):
    name = ApiProvider.CNPJA
    display_name = "CNPJA Open"
    category = ApiCategory.CADASTRAL
    available_queries = (QueryType.CONSULTA_CNPJ,)
    default_base_url = "https://open.cnpja.com"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_CNPJ:
            return self.unsupported(query)

        cnpj = only_digits(query.target_document)
        async with self.client() as client:
            raw = await fetch_json(client, "GET", f"{self.base_url(config)}/office/{cnpj}", label="CNPJA")

        company: dict[str, Any] = raw.get("company") or {}
        activity: dict[str, Any] = raw.get("mainActivity") or {}
        status = (raw.get("status") or {}).get("text")
        irregular = status is not None and status != "Ativa"
        opened = parse_date(raw.get("founded"))
        name = company.get("name") or raw.get("alias") or ""
        company_cnpj = raw.get("taxId") or cnpj

        links = [
            NormalizedCorporateLink(
                company_name=name,
                company_cnpj=company_cnpj,
                company_status=status,
                cnae=str(activity["id"]) if activity.get("id") else None,
                open_date=opened,
                role=(member.get("role") or {}).get("text") or "Socio",
                capital_value=to_float(company.get("equity")),
                entry_date=parse_date(member.get("since")),
                is_recent_creation=is_recent_creation(opened),
                has_irregularity=irregular,
                irregularity_desc=f"Situacao: {status}" if irregular else None,
                source_provider=self.name,
                raw_source_data={"person": member.get("person"), "role": member.get("role")},
            )
            for member in company.get("members") or []
        ]

        address = raw.get("address")
        data = {
            "razaoSocial": name,
            "nomeFantasia": raw.get("alias"),
            "cnpj": company_cnpj,
            "situacao": status,
            "capitalSocial": company.get("equity"),
            "endereco": (
                {
                    "logradouro": address.get("street") or "",
                    "numero": address.get("number"),
                    "complemento": address.get("details"),
                    "bairro": address.get("district"),
                    "cidade": (address.get("city") or {}).get("name"),
                    "uf": (address.get("state") or {}).get("code"),
                    "cep": address.get("zip"),
                }
                if address
                else None
            ),
            "cnaePrincipal": (
                {"codigo": str(activity["id"]), "descricao": activity.get("text")} if activity.get("id") else None
            ),
            "cnaeSecundarios": [
                {"codigo": str(item.get("id")), "descricao": item.get("text")}
                for item in raw.get("sideActivities") or []
            ],
        }
        return self.result(query, data=data, normalized_corporate_links=links, raw_response=raw)
