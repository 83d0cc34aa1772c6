"""Proveedor: Banco Central (Olinda OData).

- Busca si el CNPJ es una institución financiera autorizada (IF.data).
- Adjunta la cotización PTAX del día como dato informativo; su fallo no
  invalida la consulta.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

import httpx

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, AssetCategory, QueryType
from core.domain.errors import ProviderRequestError
from core.domain.models import NormalizedAsset, ProviderConfig, ProviderQuery, ProviderResult

logger = logging.getLogger(__name__)

_IFDATA_PATH = "/Informes_ListaIFsViworker/versao/v1/odata/IfData"
_PTAX_PATH = "/PTAX/versao/v1/odata/CotacaoDolarDia(dataCotacao=@d)"


def _institution(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "nome": item.get("NomeIf") or "",
        "cnpj": item.get("CnpjIf") or "",
        "segmento": item.get("Segmento") or None,
        "tipo": item.get("TipoInstituicao") or None,
    }


class BacenBackend(HttpProviderBackend):
    name = ApiProvider.BACEN
    display_name = "Banco Central (BACEN)"
    category = ApiCategory.CREDITICIO
    available_queries = (QueryType.CONSULTA_CNPJ,)
    default_base_url = "https://olinda.bcb.gov.br/olinda/servico"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_CNPJ:
            return self.unsupported(query)

        target = only_digits(query.target_document)
        base_url = self.base_url(config)
        async with self.client() as client:
            institutions, ptax = await asyncio.gather(
                self._search_institutions(client, base_url, target),
                self._ptax(client, base_url),
            )

        assets = [
            NormalizedAsset(
                category=AssetCategory.PARTICIPACAO_SOCIETARIA,
                subcategory="Instituicao Financeira",
                description=f"{inst['nome']} - {inst['segmento'] or 'N/I'} ({inst['tipo'] or 'N/I'})",
                registration_id=inst["cnpj"] or None,
                is_seizable=False,
                source_provider=self.name,
                raw_source_data=inst,
            )
            for inst in institutions
        ]
        return self.result(
            query,
            data={"totalInstituicoes": len(institutions), "ptax": ptax},
            normalized_assets=assets,
            raw_response={"institutions": institutions, "ptax": ptax},
        )

    async def _search_institutions(
        self, client: httpx.AsyncClient, base_url: str, cnpj: str
    ) -> list[dict[str, Any]]:
        url = f"{base_url}{_IFDATA_PATH}"
        try:
            payload = await fetch_json(
                client,
                "GET",
                url,
                label="BACEN IF.data",
                params={"$filter": f"contains(CnpjIf,'{cnpj}')", "$format": "json", "$top": "10"},
            )
            return [_institution(item) for item in payload.get("value") or []]
        except ProviderRequestError as exc:
            # El filtro OData no siempre está disponible: se filtra en cliente.
            logger.info("[BACEN] filtered query failed (%s), falling back to client-side filter", exc)

        payload = await fetch_json(
            client, "GET", url, label="BACEN IF.data", params={"$format": "json", "$top": "50"}
        )
        matches = []
        for item in payload.get("value") or []:
            item_cnpj = only_digits(str(item.get("CnpjIf") or ""))
            if item_cnpj and (item_cnpj in cnpj or cnpj in item_cnpj):
                matches.append(_institution(item))
        return matches

    async def _ptax(self, client: httpx.AsyncClient, base_url: str) -> dict[str, Any] | None:
        today = date.today().strftime("%m-%d-%Y")
        try:
            payload = await fetch_json(
                client,
                "GET",
                f"{base_url}{_PTAX_PATH}",
                label="BACEN PTAX",
                params={"@d": f"'{today}'", "$format": "json"},
            )
        except (ProviderRequestError, httpx.HTTPError) as exc:
            logger.info("[BACEN] PTAX unavailable: %s", exc)
            return None
        quotes = payload.get("value") or []
        if not quotes:
            return None
        quote = quotes[0]
        return {
            "compra": quote.get("cotacaoCompra"),
            "venda": quote.get("cotacaoVenda"),
            "data": quote.get("dataHoraCotacao"),
        }
