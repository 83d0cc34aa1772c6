from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta

import pytest

from adapters.compliance_log import AUDIT_LOGGER_NAME, AuditLogComplianceLogger, hash_document
from adapters.config_loader import load_provider_configs, save_provider_configs
from adapters.json_exporter import export_dossier_json
from adapters.memory_store import InMemoryStore
from conftest import make_config, make_query
from core.domain.enums import (
    ApiProvider,
    AssetCategory,
    DebtType,
    LegalBasis,
    QueryStatus,
    QueryType,
    TargetType,
)
from core.domain.models import NormalizedAsset, NormalizedDebt, ProviderResult, QueryExecutionRecord

_CNPJ = "11222333000181"


def _asset(registration: str, value: float) -> NormalizedAsset:
    return NormalizedAsset(
        category=AssetCategory.IMOVEL_RURAL,
        description=f"Fazenda {registration}",
        registration_id=registration,
        estimated_value=value,
        source_provider=ApiProvider.INFOSIMPLES,
        raw_source_data={"matricula": registration},
    )


def _debt(case: str, original: float, current: float | None = None) -> NormalizedDebt:
    return NormalizedDebt(
        debt_type=DebtType.PROTESTO,
        creditor="Banco do Brasil",
        original_value=original,
        current_value=current,
        case_number=case,
        source_provider=ApiProvider.ASSERTIVA,
    )


@pytest.mark.asyncio
async def test_store_skips_duplicate_findings_and_sums_values():
    store = InMemoryStore()
    investigation = await store.create_investigation(_CNPJ, TargetType.PJ)

    assert await store.insert_assets(investigation.id, [_asset("M-1", 100.0), _asset("M-2", 50.0)]) == 2
    assert await store.insert_assets(investigation.id, [_asset("M-1", 100.0)]) == 0
    await store.insert_debts(investigation.id, [_debt("P-1", 10.0, 12.0), _debt("P-2", 5.0)])

    assert await store.sum_asset_values(investigation.id) == pytest.approx(150.0)
    assert await store.sum_debt_values(investigation.id) == pytest.approx(17.0)
    assert await store.list_assets("other") == []


@pytest.mark.asyncio
async def test_store_records_and_counts():
    store = InMemoryStore()
    now = datetime.now()
    record = QueryExecutionRecord(
        id="r1",
        investigation_id="inv",
        provider=ApiProvider.DATAJUD,
        query_type=QueryType.CONSULTA_PROCESSO,
    )
    await store.create_query_record(record)

    with pytest.raises(ValueError):
        await store.create_query_record(record)
    with pytest.raises(KeyError):
        await store.update_query_record(record.model_copy(update={"id": "missing"}))

    assert await store.count_queries(ApiProvider.DATAJUD, now - timedelta(minutes=1)) == 0
    await store.update_query_record(record.model_copy(update={"status": QueryStatus.CONCLUIDA, "executed_at": now}))
    assert await store.count_queries(ApiProvider.DATAJUD, now - timedelta(minutes=1)) == 1
    assert await store.count_queries(ApiProvider.ESCAVADOR, now - timedelta(minutes=1)) == 0


@pytest.mark.asyncio
async def test_store_returns_copies():
    store = InMemoryStore()
    investigation = await store.create_investigation(_CNPJ, TargetType.PJ)

    loaded = await store.get_investigation(investigation.id)
    loaded.recommendations.append("mutated")

    assert (await store.get_investigation(investigation.id)).recommendations == []


def test_provider_configs_round_trip(tmp_path):
    path = tmp_path / "cfg" / "providers.json"
    assert load_provider_configs(path) == []

    configs = [make_config(ApiProvider.ESCAVADOR, monthly_budget=100), make_config(ApiProvider.DATAJUD)]
    save_provider_configs(path, configs)

    loaded = load_provider_configs(path)
    assert [c.provider for c in loaded] == [ApiProvider.DATAJUD, ApiProvider.ESCAVADOR]
    assert loaded[1].monthly_budget == 100


def test_provider_configs_reject_duplicates_and_accept_empty(tmp_path):
    path = tmp_path / "providers.json"
    entry = {"provider": "DATAJUD", "display_name": "DataJud", "category": "JUDICIAL"}
    path.write_text(json.dumps({"providers": [entry, entry]}), encoding="utf-8")

    with pytest.raises(ValueError, match="duplicate"):
        load_provider_configs(path)

    path.write_text("  \n", encoding="utf-8")
    assert load_provider_configs(path) == []


@pytest.mark.asyncio
async def test_dossier_export_drops_raw_payloads(tmp_path):
    store = InMemoryStore()
    investigation = await store.create_investigation(_CNPJ, TargetType.PJ)
    record = QueryExecutionRecord(
        id="r1",
        investigation_id=investigation.id,
        provider=ApiProvider.INFOSIMPLES,
        query_type=QueryType.CONSULTA_IMOVEL,
        raw_response={"huge": "payload"},
    )

    out = export_dossier_json(
        investigation=investigation,
        assets=[_asset("M-1", 100.0)],
        debts=[],
        lawsuits=[],
        corporate_links=[],
        queries=[record],
        output_path=tmp_path / "out" / "dossie.json",
    )

    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["investigation"]["id"] == investigation.id
    assert payload["assets"][0]["registration_id"] == "M-1"
    assert "raw_source_data" not in payload["assets"][0]
    assert "raw_response" not in payload["queries"][0]


@pytest.mark.asyncio
async def test_audit_log_never_writes_plain_document(caplog):
    audit = AuditLogComplianceLogger(keep_entries=True)
    query = make_query(QueryType.CONSULTA_PROCESSO, _CNPJ)
    result = ProviderResult(success=True, provider=ApiProvider.DATAJUD, query_type=query.query_type, is_mock=True)

    with caplog.at_level(logging.INFO, logger=AUDIT_LOGGER_NAME):
        await audit.log_query(query, result, "ana", LegalBasis.EXERCICIO_DIREITOS, query_record_id="r1")
        audit.log_data_export("inv-1", "ana", "/tmp/dossie.json")

    assert _CNPJ not in caplog.text
    assert hash_document("11.222.333/0001-81") in caplog.text
    read, export = audit.entries
    assert read.metadata["legal_basis"] == "EXERCICIO_DIREITOS"
    assert read.metadata["retention_until"].startswith(str(datetime.now().year + 5))
    assert export.action == "EXPORT"
