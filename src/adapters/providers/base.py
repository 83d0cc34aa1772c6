"""Base común de los backends HTTP.

Por qué una base y no solo el Protocol:
- Todos los proveedores repiten lo mismo: base URL configurable, cliente
  httpx con headers propios, parseo tolerante de fechas/números y mocks.
- La política (reintentos, rate limit, fallback) NO vive aquí: la aplica
  `core.services.runtime.ProviderRuntime` por composición.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Sequence

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.enums import ApiCategory, ApiProvider, QueryType
from core.domain.errors import ProviderRequestError
from core.domain.models import ProviderConfig, ProviderQuery, ProviderResult
from core.interfaces.provider import ProviderBackend
from core.services.mock_data import generate_mock_result

RECENT_CREATION_YEARS = 2


def parse_date(value: Any) -> date | None:
    """`"2021-03-04"`, `"2021-03-04T10:00:00Z"` o `"04/03/2021"` -> `date`."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%d/%m/%Y").date()
    except ValueError:
        return None


def to_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def is_recent_creation(opened: date | None, today: date | None = None) -> bool:
    if opened is None:
        return False
    today = today or date.today()
    try:
        threshold = today.replace(year=today.year - RECENT_CREATION_YEARS)
    except ValueError:
        threshold = today.replace(year=today.year - RECENT_CREATION_YEARS, day=28)
    return opened > threshold


def as_list(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    if isinstance(value, dict):
        return [item for item in value.values() if isinstance(item, dict)]
    return []


class HttpProviderBackend(ProviderBackend):
    """Implementación base de `ProviderBackend` sobre httpx."""

    name: ApiProvider
    display_name: str
    category: ApiCategory
    available_queries: Sequence[QueryType] = ()
    default_base_url: str = ""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    def base_url(self, config: ProviderConfig) -> str:
        return (config.base_url or self.default_base_url).rstrip("/")

    def client(self, extra_headers: dict[str, str] | None = None) -> httpx.AsyncClient:
        return build_async_client(self._settings, extra_headers=extra_headers, transport=self._transport)

    def require_api_key(self, config: ProviderConfig) -> str:
        if not config.api_key:
            raise ProviderRequestError(f"{self.display_name} API key not configured")
        return config.api_key

    def result(self, query: ProviderQuery, **fields: Any) -> ProviderResult:
        return ProviderResult(success=True, provider=self.name, query_type=query.query_type, **fields)

    def unsupported(self, query: ProviderQuery) -> ProviderResult:
        return ProviderResult(
            success=False,
            provider=self.name,
            query_type=query.query_type,
            error_message=f"Unsupported query type: {query.query_type.value}",
        )

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        raise NotImplementedError

    def generate_mock(self, query: ProviderQuery) -> ProviderResult:
        return generate_mock_result(self.name, query)
