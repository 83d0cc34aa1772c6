"""Errores del dominio.

Solo los errores "duros" viven aquí: identificadores desconocidos y
autorización. Fallos de proveedor nunca llegan al llamador (fallback a mock).
"""

from __future__ import annotations


class InvestigationError(Exception):
    """Base de los errores que la CLI reporta como salida controlada."""


class InvestigationNotFoundError(InvestigationError, LookupError):
    def __init__(self, investigation_id: str) -> None:
        super().__init__(f"Investigation not found: {investigation_id}")
        self.investigation_id = investigation_id


class ProviderNotFoundError(InvestigationError, LookupError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Provider not registered: {provider}")
        self.provider = provider


class UnsupportedQueryError(InvestigationError, ValueError):
    def __init__(self, provider: str, query_type: str) -> None:
        super().__init__(f"Provider {provider} does not answer {query_type}")
        self.provider = provider
        self.query_type = query_type


class ConfigurationForbiddenError(InvestigationError, PermissionError):
    """El rol del usuario no puede modificar configuración de proveedores."""


class ProviderRequestError(Exception):
    """Fallo de una llamada real (HTTP no-2xx, payload inválido).

    No hereda de `InvestigationError`: el runtime la absorbe y cae a mock.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
