"""Proveedor: CVM Dados Abertos.

Cruza el documento objetivo con el cadastro de fundos (CSV `;`) y el de
companhias abertas (JSON). Cada fuente es independiente: si una cae, se
devuelve lo encontrado en la otra.
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from adapters.http_client import fetch_json, fetch_text
from adapters.providers.base import HttpProviderBackend
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, AssetCategory, QueryType
from core.domain.models import NormalizedAsset, ProviderConfig, ProviderQuery, ProviderResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CvmDataset:
    name: str
    path: str
    label: str


CVM_DATASETS = (
    CvmDataset(
        name="fund_admin",
        path="/FI/CAD/DADOS/cad_fi.csv",
        label="Fundo de Investimento - Cadastro",
    ),
    CvmDataset(
        name="cia_aberta",
        path="/CIA_ABERTA/CAD/DADOS/cad_cia_aberta.json",
        label="Companhia Aberta - Cadastro",
    ),
)


def _matches(cnpj: str, target: str) -> bool:
    return bool(cnpj) and (cnpj in target or target in cnpj)


class CvmBackend(HttpProviderBackend):
    name = ApiProvider.CVM_DADOS_ABERTOS
    display_name = "CVM Dados Abertos"
    category = ApiCategory.SOCIETARIO
    available_queries = (QueryType.CONSULTA_CVM, QueryType.CONSULTA_SOCIETARIA)
    default_base_url = "https://dados.cvm.gov.br/dados"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type not in self.available_queries:
            return self.unsupported(query)

        target = only_digits(query.target_document)
        base_url = self.base_url(config)
        async with self.client() as client:
            settled = await asyncio.gather(
                *(self._search(client, base_url, dataset, target) for dataset in CVM_DATASETS),
                return_exceptions=True,
            )

        assets: list[NormalizedAsset] = []
        sources: dict[str, Any] = {}
        for dataset, outcome in zip(CVM_DATASETS, settled):
            if isinstance(outcome, BaseException):
                logger.warning("[CVM] %s failed: %s", dataset.name, outcome)
                sources[dataset.name] = {"error": str(outcome)}
                continue
            sources[dataset.name] = {"matches": len(outcome)}
            assets.extend(outcome)

        return self.result(
            query,
            data={"totalRecords": len(assets)},
            normalized_assets=assets,
            raw_response=sources,
        )

    async def _search(
        self, client: httpx.AsyncClient, base_url: str, dataset: CvmDataset, target: str
    ) -> list[NormalizedAsset]:
        label = f"CVM {dataset.name}"
        url = f"{base_url}{dataset.path}"
        if dataset.path.endswith(".json"):
            payload = await fetch_json(client, "GET", url, label=label)
            return self._companies(payload, dataset, target)
        text = await fetch_text(client, url, label=label)
        return self._funds(text, dataset, target)

    def _companies(self, payload: Any, dataset: CvmDataset, target: str) -> list[NormalizedAsset]:
        items = payload if isinstance(payload, list) else (payload.get("dados") or payload.get("data") or [])
        assets = []
        for item in items:
            cnpj = only_digits(str(item.get("CNPJ_CIA") or item.get("cnpj") or ""))
            if not _matches(cnpj, target):
                continue
            name = item.get("DENOM_SOCIAL") or item.get("denom_social") or "N/A"
            assets.append(
                NormalizedAsset(
                    category=AssetCategory.PARTICIPACAO_SOCIETARIA,
                    subcategory="Companhia Aberta",
                    description=f"{name} ({dataset.label})",
                    registration_id=cnpj,
                    source_provider=self.name,
                    raw_source_data=item,
                )
            )
        return assets

    def _funds(self, text: str, dataset: CvmDataset, target: str) -> list[NormalizedAsset]:
        reader = csv.reader(io.StringIO(text), delimiter=";")
        header = next(reader, [])
        upper = [column.upper() for column in header]

        def find(*needles: str) -> int:
            return next((i for i, column in enumerate(upper) if any(n in column for n in needles)), -1)

        cnpj_idx = find("CNPJ")
        name_idx = find("DENOM", "NOME")
        class_idx = find("CLASSE")
        if cnpj_idx < 0:
            return []

        assets = []
        for row in reader:
            if len(row) <= cnpj_idx:
                continue
            cnpj = only_digits(row[cnpj_idx])
            if not _matches(cnpj, target):
                continue
            fund_name = row[name_idx] if 0 <= name_idx < len(row) else "Fundo N/I"
            fund_class = row[class_idx] if 0 <= class_idx < len(row) else None
            assets.append(
                NormalizedAsset(
                    category=AssetCategory.FUNDOS_INVESTIMENTO,
                    subcategory=fund_class or "Fundo de Investimento",
                    description=f"{fund_name} ({dataset.label})",
                    registration_id=cnpj,
                    source_provider=self.name,
                    raw_source_data=dict(zip(header, row)),
                )
            )
        return assets
