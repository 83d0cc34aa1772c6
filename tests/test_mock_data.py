from __future__ import annotations

import random

import pytest

from core.domain.documents import is_valid_cnpj, is_valid_cpf
from core.domain.enums import ApiProvider, QueryType, TargetType
from core.domain.models import ProviderQuery
from core.services.mock_data import generate_mock_result


def _query(query_type: QueryType, document: str = "11222333000181") -> ProviderQuery:
    target_type = TargetType.PF if len(document) == 11 else TargetType.PJ
    return ProviderQuery(query_type=query_type, target_document=document, target_type=target_type)


@pytest.mark.parametrize("query_type", list(QueryType))
def test_every_query_type_has_a_free_mock(query_type):
    result = generate_mock_result(ApiProvider.ESCAVADOR, _query(query_type), random.Random(1))

    assert result.success and result.is_mock
    assert result.cost == 0
    assert result.provider is ApiProvider.ESCAVADOR
    assert result.query_type is query_type
    assert result.data


def test_same_seed_same_result():
    query = _query(QueryType.CONSULTA_PROCESSO)

    first = generate_mock_result(ApiProvider.DATAJUD, query, random.Random(99))
    second = generate_mock_result(ApiProvider.DATAJUD, query, random.Random(99))

    assert first.data == second.data
    assert [ls.case_number for ls in first.normalized_lawsuits] == [ls.case_number for ls in second.normalized_lawsuits]


@pytest.mark.parametrize("seed", range(5))
def test_partner_shares_sum_to_one_hundred(seed):
    result = generate_mock_result(ApiProvider.BRASILAPI, _query(QueryType.CONSULTA_CNPJ), random.Random(seed))

    shares = [link.share_percentage for link in result.normalized_corporate_links]
    assert sum(shares) == pytest.approx(100.0, abs=0.01)
    assert all(is_valid_cpf(p["cpf"]) for p in result.data["socios"])


def test_findings_carry_the_calling_provider():
    result = generate_mock_result(ApiProvider.ESCAVADOR, _query(QueryType.CONSULTA_PROCESSO), random.Random(3))

    assert result.normalized_lawsuits
    assert {ls.source_provider for ls in result.normalized_lawsuits} == {ApiProvider.ESCAVADOR}


def test_generated_company_documents_are_valid():
    result = generate_mock_result(ApiProvider.OPENCORPORATES, _query(QueryType.CONSULTA_SOCIETARIA, "52998224725"), random.Random(4))

    assert all(is_valid_cnpj(link.company_cnpj) for link in result.normalized_corporate_links)
