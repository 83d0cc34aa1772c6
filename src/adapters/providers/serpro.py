"""Proveedor: SERPRO / DENATRAN (veículos por documento).

Autenticación OAuth2 client-credentials: `api_key` es el consumer key y
`api_secret` el consumer secret. El token se cachea hasta 60s antes de
expirar.
"""

from __future__ import annotations

import base64
import time
from typing import Any

import httpx

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, to_float
from core.config import AppSettings
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, AssetCategory, QueryType
from core.domain.errors import ProviderRequestError
from core.domain.models import NormalizedAsset, ProviderConfig, ProviderQuery, ProviderResult

TOKEN_SAFETY_MARGIN_SECONDS = 60
DEFAULT_TOKEN_TTL_SECONDS = 3600


class SerproBackend(HttpProviderBackend):
    name = ApiProvider.DENATRAN_SERPRO
    display_name = "SERPRO/DENATRAN"
    category = ApiCategory.VEICULAR
    available_queries = (QueryType.CONSULTA_VEICULO,)
    default_base_url = "https://gateway.apiserpro.serpro.gov.br"

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(settings, transport=transport)
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def _access_token(self, client: httpx.AsyncClient, config: ProviderConfig) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        if not config.api_key or not config.api_secret:
            raise ProviderRequestError("SERPRO OAuth2 client credentials not configured")

        credentials = base64.b64encode(f"{config.api_key}:{config.api_secret}".encode()).decode()
        payload = await fetch_json(
            client,
            "POST",
            f"{self.base_url(config)}/token",
            label="SERPRO OAuth token",
            headers={"Authorization": f"Basic {credentials}"},
            data={"grant_type": "client_credentials"},
        )
        token = payload.get("access_token")
        if not token:
            raise ProviderRequestError("SERPRO OAuth token response without access_token")
        expires_in = int(payload.get("expires_in") or DEFAULT_TOKEN_TTL_SECONDS)
        self._token = token
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_SAFETY_MARGIN_SECONDS, 0)
        return token

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_VEICULO:
            return self.unsupported(query)

        document = only_digits(query.target_document)
        async with self.client() as client:
            token = await self._access_token(client, config)
            raw = await fetch_json(
                client,
                "GET",
                f"{self.base_url(config)}/consulta-denatran/v1/veiculos/{document}",
                label="SERPRO DENATRAN",
                headers={"Authorization": f"Bearer {token}"},
            )

        vehicles = raw.get("veiculos") or [raw]
        assets = [self._vehicle(item) for item in vehicles if item.get("placa") or item.get("renavam")]
        return self.result(
            query,
            data={"totalVeiculos": len(assets)},
            normalized_assets=assets,
            raw_response=raw,
        )

    def _vehicle(self, item: dict[str, Any]) -> NormalizedAsset:
        restricted = bool(
            item.get("restricao") or item.get("restricoes") or item.get("situacaoVeiculo") == "RESTRICAO"
        )
        fipe = to_float(item.get("valorFipe"))
        year = item.get("anoModelo") or item.get("anoFabricacao") or ""
        return NormalizedAsset(
            category=AssetCategory.VEICULO_AUTOMOVEL,
            subcategory=item.get("tipoVeiculo") or item.get("marca") or "Automovel",
            description=f"{item.get('marca') or ''} {item.get('modelo') or ''} {year}".strip() or "Veiculo N/I",
            registration_id=item.get("renavam") or item.get("placa"),
            location=item.get("uf"),
            state=item.get("uf"),
            estimated_value=fipe,
            valuation_method="FIPE" if fipe else None,
            has_restriction=restricted,
            restriction_type=(
                item.get("tipoRestricao") or str(item.get("restricao") or item.get("restricoes"))
                if restricted
                else None
            ),
            is_seizable=not restricted,
            ownership_percentage=100,
            source_provider=self.name,
            raw_source_data=item,
        )
