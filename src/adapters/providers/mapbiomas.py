"""Proveedor: MapBiomas (alertas de desmatamento y uso do solo, GraphQL).

El territorio se elige así: código CAR si viene en `params`, luego un
punto (`lat`/`lng`, solo para satélite) y por último el documento.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, AssetCategory, QueryType
from core.domain.errors import ProviderRequestError
from core.domain.models import NormalizedAsset, ProviderConfig, ProviderQuery, ProviderResult

ALERTS_QUERY = """
query AlertsQuery($territory: TerritoryInput!, $yearRange: YearRangeInput!) {
  alerts(territory: $territory, yearRange: $yearRange) {
    id detectionDate areaHa alertType biome municipality state
    coordinates { lat lng }
    source confidence
  }
}
"""

LAND_USE_QUERY = """
query LandUseQuery($territory: TerritoryInput!, $year: Int!) {
  landUse(territory: $territory, year: $year) {
    totalAreaHa
    classes { classId className areaHa percentage }
    transitions { fromClass toClass areaHa year }
    property {
      carCode ownerName municipality state totalAreaHa
      legalReserveHa appHa nativeVegetationHa
    }
  }
}
"""

DEFAULT_ALERTS_START_YEAR = 2020
POINT_RADIUS_KM = 10


def build_territory(query: ProviderQuery, *, allow_point: bool) -> dict[str, Any]:
    car_code = query.params.get("car_code")
    if car_code:
        return {"type": "CAR", "code": car_code}
    lat, lng = query.params.get("lat"), query.params.get("lng")
    if allow_point and lat is not None and lng is not None:
        return {"type": "POINT", "lat": lat, "lng": lng, "radiusKm": POINT_RADIUS_KM}
    return {"type": "DOCUMENT", "code": only_digits(query.target_document)}


class MapBiomasBackend(HttpProviderBackend):
    name = ApiProvider.MAPBIOMAS
    display_name = "MapBiomas"
    category = ApiCategory.RURAL_SATELITE
    available_queries = (QueryType.CONSULTA_SATELITE, QueryType.CONSULTA_RURAL)
    default_base_url = "https://platform.mapbiomas.org/api/v1"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type not in self.available_queries:
            return self.unsupported(query)

        api_key = self.require_api_key(config)
        if query.query_type is QueryType.CONSULTA_SATELITE:
            year_range = {
                "start": int(query.params.get("year_start") or DEFAULT_ALERTS_START_YEAR),
                "end": int(query.params.get("year_end") or date.today().year),
            }
            raw = await self._graphql(
                config,
                api_key,
                ALERTS_QUERY,
                {"yearRange": year_range, "territory": build_territory(query, allow_point=True)},
                label="MapBiomas satellite",
            )
            return self._alerts_result(query, raw, year_range)

        year = int(query.params.get("year") or date.today().year - 1)
        raw = await self._graphql(
            config,
            api_key,
            LAND_USE_QUERY,
            {"year": year, "territory": build_territory(query, allow_point=False)},
            label="MapBiomas rural",
        )
        return self._land_use_result(query, raw, year)

    async def _graphql(
        self, config: ProviderConfig, api_key: str, document: str, variables: dict[str, Any], *, label: str
    ) -> dict[str, Any]:
        async with self.client({"Authorization": f"Bearer {api_key}"}) as client:
            raw = await fetch_json(
                client,
                "POST",
                f"{self.base_url(config)}/graphql",
                label=label,
                json={"query": document, "variables": variables},
            )
        if raw.get("errors") and not raw.get("data"):
            raise ProviderRequestError(f"{label} GraphQL error: {raw['errors'][0].get('message', 'unknown')}")
        return raw

    def _alerts_result(self, query: ProviderQuery, raw: dict[str, Any], year_range: dict[str, int]) -> ProviderResult:
        alerts = (raw.get("data") or {}).get("alerts") or []
        return self.result(
            query,
            data={
                "totalAlerts": len(alerts),
                "alerts": [
                    {
                        "dataDeteccao": alert.get("detectionDate"),
                        "areaHa": alert.get("areaHa"),
                        "tipo": alert.get("alertType"),
                        "bioma": alert.get("biome"),
                        "municipio": alert.get("municipality"),
                        "uf": alert.get("state"),
                        "coordenadas": alert.get("coordinates"),
                        "fonte": alert.get("source"),
                        "confianca": alert.get("confidence"),
                    }
                    for alert in alerts
                ],
                "yearRange": year_range,
                "analysisDate": datetime.now(timezone.utc).isoformat(),
            },
            raw_response=raw,
        )

    def _land_use_result(self, query: ProviderQuery, raw: dict[str, Any], year: int) -> ProviderResult:
        land_use = (raw.get("data") or {}).get("landUse") or {}
        prop = land_use.get("property")

        assets = []
        summary = None
        if prop:
            city, state, car = prop.get("municipality"), prop.get("state"), prop.get("carCode")
            assets.append(
                NormalizedAsset(
                    category=AssetCategory.IMOVEL_RURAL,
                    subcategory="Rural",
                    description=f"Imovel Rural - {city or 'N/I'}/{state or 'N/I'} (CAR: {car or 'N/I'})",
                    registration_id=car,
                    location=f"{city or ''}/{state or ''}",
                    state=state,
                    city=city,
                    ownership_percentage=100,
                    area_hectares=to_float(prop.get("totalAreaHa")),
                    car_code=car,
                    source_provider=self.name,
                    raw_source_data=land_use,
                )
            )
            summary = {
                "carCode": car,
                "proprietario": prop.get("ownerName"),
                "municipio": city,
                "uf": state,
                "areaTotal": prop.get("totalAreaHa"),
                "reservaLegal": prop.get("legalReserveHa"),
                "app": prop.get("appHa"),
                "vegetacaoNativa": prop.get("nativeVegetationHa"),
            }

        return self.result(
            query,
            data={
                "year": year,
                "totalAreaHa": land_use.get("totalAreaHa"),
                "classes": land_use.get("classes") or [],
                "transitions": land_use.get("transitions") or [],
                "property": summary,
                "analysisDate": datetime.now(timezone.utc).isoformat(),
            },
            normalized_assets=assets,
            raw_response=raw,
        )
