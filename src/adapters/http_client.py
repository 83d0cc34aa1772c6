"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y manejo de errores HTTP de los proveedores.
- Facilita testeo: los backends reciben el cliente y se puede usar
  `httpx.MockTransport` sin tocar la red.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.config import AppSettings
from core.domain.errors import ProviderRequestError


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todos los proveedores se comporten igual.
    - `transport` permite inyectar un `MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def _check_status(response: httpx.Response, label: str) -> None:
    if not response.is_success:
        raise ProviderRequestError(
            f"{label} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )


async def fetch_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    label: str,
    **kwargs: Any,
) -> Any:
    """Hace la request y devuelve el JSON decodificado.

    Lanza `ProviderRequestError` ante status no-2xx o cuerpo no-JSON; el
    runtime de proveedores se encarga de reintentar.
    """

    response = await client.request(method, url, **kwargs)
    _check_status(response, label)
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderRequestError(f"{label} returned invalid JSON") from exc


async def fetch_text(
    client: httpx.AsyncClient,
    url: str,
    *,
    label: str,
    **kwargs: Any,
) -> str:
    response = await client.get(url, **kwargs)
    _check_status(response, label)
    return response.text
