"""Operaciones de retención y acceso del titular (LGPD).

- `purge_expired_data`: job periódico; vacía los payloads de registros cuya
  retención venció. Los metadatos del registro (quién, cuándo, base legal)
  se conservan como rastro de auditoría.
- `get_query_log`: historial de consultas sobre un documento, para
  responder solicitudes del Art. 18 sin exponer respuestas de proveedores.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime

from core.domain.documents import only_digits
from core.domain.models import QueryLogEntry
from core.interfaces.persistence import InvestigationStore

logger = logging.getLogger(__name__)


def hash_document(document: str) -> str:
    """SHA-256 de los dígitos del documento (mismo formato que la auditoría)."""

    return hashlib.sha256(only_digits(document).encode("utf-8")).hexdigest()


async def purge_expired_data(store: InvestigationStore, *, now: datetime | None = None) -> int:
    purged = await store.purge_expired_raw_responses(now or datetime.now())
    if purged:
        logger.info("purged provider payloads from %d expired query records", purged)
    return purged


async def get_query_log(store: InvestigationStore, target_document: str) -> list[QueryLogEntry]:
    document_hash = hash_document(target_document)
    records = await store.list_query_records_for_document(target_document)
    return [
        QueryLogEntry(
            id=record.id,
            investigation_id=record.investigation_id,
            target_document_hash=document_hash,
            provider=record.provider,
            query_type=record.query_type,
            status=record.status,
            legal_basis=record.legal_basis,
            executed_by=record.executed_by,
            created_at=record.created_at,
            retention_until=record.retention_until,
        )
        for record in records
    ]
