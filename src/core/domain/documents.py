"""Documentos fiscales brasileños (CPF / CNPJ).

Dígitos verificadores en un solo lugar: el generador de mocks los usa para
producir documentos válidos y la CLI para rechazar entradas mal tipeadas.
"""

from __future__ import annotations

import random

_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


def only_digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def _cpf_digit(digits: list[int]) -> int:
    weight = len(digits) + 1
    total = sum(d * (weight - i) for i, d in enumerate(digits))
    return (total * 10) % 11 % 10


def _cnpj_digit(digits: list[int], weights: tuple[int, ...]) -> int:
    rest = sum(d * w for d, w in zip(digits, weights)) % 11
    return 0 if rest < 2 else 11 - rest


def generate_cpf(rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    digits = [rng.randint(0, 9) for _ in range(9)]
    digits.append(_cpf_digit(digits))
    digits.append(_cpf_digit(digits))
    return "".join(str(d) for d in digits)


def generate_cnpj(rng: random.Random | None = None) -> str:
    """CNPJ de matriz (`/0001`) con dígitos verificadores válidos."""

    rng = rng or random.Random()
    digits = [rng.randint(0, 9) for _ in range(8)] + [0, 0, 0, 1]
    digits.append(_cnpj_digit(digits, _CNPJ_WEIGHTS_1))
    digits.append(_cnpj_digit(digits, _CNPJ_WEIGHTS_2))
    return "".join(str(d) for d in digits)


def is_valid_cpf(value: str) -> bool:
    raw = only_digits(value)
    if len(raw) != 11 or raw == raw[0] * 11:
        return False
    digits = [int(ch) for ch in raw]
    return _cpf_digit(digits[:9]) == digits[9] and _cpf_digit(digits[:10]) == digits[10]


def is_valid_cnpj(value: str) -> bool:
    raw = only_digits(value)
    if len(raw) != 14 or raw == raw[0] * 14:
        return False
    digits = [int(ch) for ch in raw]
    return (
        _cnpj_digit(digits[:12], _CNPJ_WEIGHTS_1) == digits[12]
        and _cnpj_digit(digits[:13], _CNPJ_WEIGHTS_2) == digits[13]
    )


def mask_document(value: str) -> str:
    """Enmascara un CPF/CNPJ para logs (`***.456.789-**`)."""

    raw = only_digits(value)
    if len(raw) == 11:
        return f"***.{raw[3:6]}.{raw[6:9]}-**"
    if len(raw) == 14:
        return f"**.{raw[2:5]}.{raw[5:8]}/****-**"
    return "***"
