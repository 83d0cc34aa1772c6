from __future__ import annotations

import random
from datetime import datetime

import pytest

from core.domain.documents import (
    generate_cnpj,
    generate_cpf,
    is_valid_cnpj,
    is_valid_cpf,
    mask_document,
    only_digits,
)
from core.domain.enums import QueryType
from core.domain.retention import retention_deadline


def test_generated_documents_pass_check_digits():
    rng = random.Random(42)
    for _ in range(50):
        assert is_valid_cpf(generate_cpf(rng))
        cnpj = generate_cnpj(rng)
        assert is_valid_cnpj(cnpj)
        assert cnpj[8:12] == "0001"


@pytest.mark.parametrize("value", ["11111111111", "123", "52998224726"])
def test_invalid_cpfs(value):
    assert not is_valid_cpf(value)


def test_known_documents_with_mask():
    assert is_valid_cpf("529.982.247-25")
    assert is_valid_cnpj("11.222.333/0001-81")
    assert not is_valid_cnpj("11.222.333/0001-82")


def test_mask_never_exposes_edges():
    assert mask_document("52998224725") == "***.982.247-**"
    assert mask_document("11.222.333/0001-81") == "**.222.333/****-**"
    assert mask_document("abc") == "***"
    assert only_digits("11.222.333/0001-81") == "11222333000181"


def test_retention_by_query_type():
    executed = datetime(2024, 2, 29, 10, 0)
    assert retention_deadline(QueryType.CONSULTA_PROCESSO, executed) == datetime(2029, 2, 28, 10, 0)
    assert retention_deadline(QueryType.CONSULTA_CNPJ, executed) == datetime(2026, 2, 28, 10, 0)
