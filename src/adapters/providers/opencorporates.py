"""Proveedor: OpenCorporates (empresas y cargos, con detección de offshore).

Empresas y officers se buscan en paralelo; si una de las dos búsquedas
falla se devuelve la otra.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, is_recent_creation, parse_date
from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.models import NormalizedCorporateLink, ProviderConfig, ProviderQuery, ProviderResult

logger = logging.getLogger(__name__)

OFFSHORE_JURISDICTIONS = frozenset(
    {
        "pa", "bz", "vg", "ky", "bm", "bs", "ai", "tc", "ms", "je", "gg", "im", "gi", "lu",
        "li", "mc", "ad", "sm", "mt", "cy", "sc", "mu", "ws", "vu", "mh", "nr", "ck", "nz_fc",
    }
)


def is_offshore(jurisdiction: str | None) -> bool:
    return (jurisdiction or "").lower() in OFFSHORE_JURISDICTIONS


class OpenCorporatesBackend(HttpProviderBackend):
    name = ApiProvider.OPENCORPORATES
    display_name = "OpenCorporates"
    category = ApiCategory.SOCIETARIO
    available_queries = (QueryType.CONSULTA_SOCIETARIA,)
    default_base_url = "https://api.opencorporates.com/v0.4"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_SOCIETARIA:
            return self.unsupported(query)

        token = self.require_api_key(config)
        term = query.params.get("company_name") or query.target_document
        base_url = self.base_url(config)

        async with self.client() as client:
            companies_out, officers_out = await asyncio.gather(
                self._search(client, f"{base_url}/companies/search", "companies",
                             {"q": term, "api_token": token, "jurisdiction_code": "br", "per_page": 30}),
                self._search(client, f"{base_url}/officers/search", "officers",
                             {"q": term, "api_token": token, "per_page": 20}),
                return_exceptions=True,
            )

        companies = _settled(companies_out, "companies")
        officers = _settled(officers_out, "officers")

        links = [self._company_link(entry.get("company") or entry) for entry in companies]
        links.extend(self._officer_link(entry.get("officer") or entry) for entry in officers)

        return self.result(
            query,
            data={
                "totalResults": len(links),
                "totalCompanies": len(companies),
                "totalOfficers": len(officers),
                "companies": [_company_summary(entry.get("company") or entry) for entry in companies],
            },
            normalized_corporate_links=links,
            raw_response={"companies": companies, "officers": officers},
        )

    async def _search(
        self, client: httpx.AsyncClient, url: str, key: str, params: dict[str, Any]
    ) -> list[dict[str, Any]]:
        payload = await fetch_json(client, "GET", url, label=f"OpenCorporates {key}", params=params)
        return (payload.get("results") or {}).get(key) or []

    def _company_link(self, company: dict[str, Any]) -> NormalizedCorporateLink:
        jurisdiction = company.get("jurisdiction_code") or ""
        status = company.get("current_status") or ""
        inactive = "inactive" in status.lower() or "dissolved" in status.lower()
        opened = parse_date(company.get("incorporation_date"))
        codes = company.get("industry_codes")
        return NormalizedCorporateLink(
            company_name=company.get("name") or "N/I",
            company_cnpj=company.get("company_number") or "",
            company_status=status or None,
            cnae=", ".join(str(code.get("code")) for code in codes) if isinstance(codes, list) else None,
            open_date=opened,
            role="Titular",
            is_offshore=is_offshore(jurisdiction),
            is_recent_creation=is_recent_creation(opened),
            has_irregularity=inactive,
            irregularity_desc=f"Status: {status} ({jurisdiction})" if inactive else None,
            source_provider=self.name,
            raw_source_data=company,
        )

    def _officer_link(self, officer: dict[str, Any]) -> NormalizedCorporateLink:
        company = officer.get("company") or {}
        jurisdiction = company.get("jurisdiction_code") or officer.get("jurisdiction_code")
        return NormalizedCorporateLink(
            company_name=company.get("name") or "N/I",
            company_cnpj=company.get("company_number") or "",
            role=officer.get("position") or "Officer",
            entry_date=parse_date(officer.get("start_date")),
            exit_date=parse_date(officer.get("end_date")),
            is_offshore=is_offshore(jurisdiction),
            source_provider=self.name,
            raw_source_data=officer,
        )


def _settled(outcome: list[dict[str, Any]] | BaseException, key: str) -> list[dict[str, Any]]:
    if isinstance(outcome, BaseException):
        logger.warning("[OPENCORPORATES] %s search failed: %s", key, outcome)
        return []
    return outcome


def _company_summary(company: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": company.get("name"),
        "companyNumber": company.get("company_number"),
        "jurisdictionCode": company.get("jurisdiction_code"),
        "status": company.get("current_status"),
        "incorporationDate": company.get("incorporation_date"),
        "registeredAddress": company.get("registered_address_in_full"),
    }
