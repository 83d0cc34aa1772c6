"""Auditoría LGPD sobre `logging`.

Cada consulta externa deja una línea en el logger `patrimonia.audit` con:
quién (user_id), por qué (base legal), qué (proveedor, tipo, hash del
documento), resultado y fecha límite de retención.

Nota:
- El documento nunca se escribe en claro: va enmascarado en el texto y
  como SHA-256 en los metadatos (permite búsquedas Art. 18 sin exponerlo).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from core.domain.documents import mask_document
from core.domain.enums import LegalBasis
from core.domain.models import ProviderQuery, ProviderResult
from core.domain.retention import retention_deadline
from core.interfaces.collaborators import ComplianceLogger
from core.services.lgpd import hash_document

AUDIT_LOGGER_NAME = "patrimonia.audit"

audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


class AuditEntry(BaseModel):
    user_id: str
    action: Literal["READ", "EXPORT"]
    resource: str
    resource_id: str | None = None
    description: str
    success: bool = True
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    logged_at: datetime = Field(default_factory=datetime.now)


class AuditLogComplianceLogger(ComplianceLogger):
    """`ComplianceLogger` que escribe en `patrimonia.audit`.

    `keep_entries=True` conserva las entradas en memoria (CLI y tests).
    """

    def __init__(self, *, keep_entries: bool = False) -> None:
        self._keep = keep_entries
        self.entries: list[AuditEntry] = []

    def _emit(self, entry: AuditEntry) -> None:
        if self._keep:
            self.entries.append(entry)
        level = logging.INFO if entry.success else logging.WARNING
        audit_logger.log(
            level,
            "%s | %s",
            entry.description,
            json.dumps(entry.model_dump(mode="json", exclude={"description"}), ensure_ascii=False, sort_keys=True),
        )

    async def log_query(
        self,
        query: ProviderQuery,
        result: ProviderResult,
        user_id: str,
        legal_basis: LegalBasis,
        *,
        query_record_id: str | None = None,
    ) -> None:
        retention_until = retention_deadline(query.query_type, datetime.now())
        self._emit(
            AuditEntry(
                user_id=user_id,
                action="READ",
                resource="investigation_query",
                resource_id=query_record_id,
                description=(
                    f"LGPD: {query.query_type.value} via {result.provider.value} "
                    f"para documento {mask_document(query.target_document)}"
                ),
                success=result.success,
                error=result.error_message,
                metadata={
                    "lgpd": True,
                    "query_type": query.query_type.value,
                    "provider": result.provider.value,
                    "target_document_hash": hash_document(query.target_document),
                    "legal_basis": legal_basis.value,
                    "result_status": "CONCLUIDA" if result.success else "ERRO",
                    "is_mock": result.is_mock,
                    "response_time_ms": result.response_time_ms,
                    "cost": result.cost,
                    "retention_until": retention_until.isoformat(),
                },
            )
        )

    def log_data_export(self, investigation_id: str, user_id: str, destination: str) -> None:
        self._emit(
            AuditEntry(
                user_id=user_id,
                action="EXPORT",
                resource="investigation",
                resource_id=investigation_id,
                description=f"LGPD: EXPORT de dados de investigacao {investigation_id} - {destination}",
                metadata={"lgpd": True, "access_type": "EXPORT", "investigation_id": investigation_id},
            )
        )
