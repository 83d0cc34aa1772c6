from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from adapters.compliance_log import hash_document as audit_hash
from core.domain.enums import ApiProvider, LegalBasis, QueryStatus, QueryType, TargetType
from core.domain.models import QueryExecutionRecord
from core.services.lgpd import get_query_log, hash_document, purge_expired_data

_CNPJ = "11222333000181"
_NOW = datetime(2031, 6, 1, 12, 0)


def _record(record_id: str, investigation_id: str, *, retention_until: datetime | None, **fields) -> QueryExecutionRecord:
    return QueryExecutionRecord(
        id=record_id,
        investigation_id=investigation_id,
        provider=ApiProvider.DATAJUD,
        query_type=QueryType.CONSULTA_PROCESSO,
        status=QueryStatus.CONCLUIDA,
        legal_basis=LegalBasis.EXERCICIO_DIREITOS,
        executed_by="ana",
        retention_until=retention_until,
        **fields,
    )


@pytest.mark.asyncio
async def test_purge_clears_payloads_of_expired_records_only(store):
    investigation = await store.create_investigation(_CNPJ, TargetType.PJ)
    payload = {"raw_response": {"hits": [1]}, "parsed_data": {"totalProcessos": 1}, "error_message": "partial"}
    await store.create_query_record(_record("expired", investigation.id, retention_until=_NOW - timedelta(days=1), **payload))
    await store.create_query_record(_record("boundary", investigation.id, retention_until=_NOW, **payload))
    await store.create_query_record(_record("kept", investigation.id, retention_until=_NOW + timedelta(days=1), **payload))
    await store.create_query_record(_record("no-deadline", investigation.id, retention_until=None, **payload))

    assert await purge_expired_data(store, now=_NOW) == 2
    assert await purge_expired_data(store, now=_NOW) == 0

    records = {r.id: r for r in await store.list_query_records(investigation.id)}
    for purged in ("expired", "boundary"):
        assert records[purged].raw_response is None
        assert records[purged].parsed_data is None
        assert records[purged].error_message is None
        assert records[purged].executed_by == "ana"
        assert records[purged].legal_basis is LegalBasis.EXERCICIO_DIREITOS
    assert records["kept"].raw_response == {"hits": [1]}
    assert records["no-deadline"].parsed_data == {"totalProcessos": 1}


@pytest.mark.asyncio
async def test_query_log_lists_records_for_the_document_across_investigations(store):
    first = await store.create_investigation(_CNPJ, TargetType.PJ)
    second = await store.create_investigation(_CNPJ, TargetType.PJ)
    other = await store.create_investigation("52998224725", TargetType.PF)
    await store.create_query_record(
        _record("a", first.id, retention_until=None, raw_response={"secret": True}, created_at=_NOW - timedelta(days=2))
    )
    await store.create_query_record(_record("b", second.id, retention_until=_NOW, created_at=_NOW))
    await store.create_query_record(_record("c", other.id, retention_until=None))

    log = await get_query_log(store, "11.222.333/0001-81")

    assert [entry.id for entry in log] == ["b", "a"]
    assert {entry.target_document_hash for entry in log} == {hash_document(_CNPJ)}
    assert log[0].retention_until == _NOW
    assert log[1].executed_by == "ana"
    assert "raw_response" not in log[1].model_dump()


@pytest.mark.asyncio
async def test_query_log_for_unknown_document_is_empty(store):
    assert await get_query_log(store, "52998224725") == []


def test_audit_and_query_log_share_the_document_hash():
    assert audit_hash("11.222.333/0001-81") == hash_document(_CNPJ)
    assert _CNPJ not in hash_document(_CNPJ)
