"""
Name: RUT Normalization Tests

Responsibilities:
  - Validate canonical form (digits + uppercase check digit)
  - Validate module-11 check digit, including K and 0
  - Ensure formatting for display
"""

import pytest
from app.identity.rut import compute_check_digit, format_rut, is_valid_rut, normalize_rut

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw",
    ["12.345.678-5", "12345678-5", "123456785", " 12.345.678-5 ", "012345678-5"],
)
def test_normalize_accepts_common_formats(raw):
    assert normalize_rut(raw) == "123456785"


def test_normalize_uppercases_k():
    # 10.000.013-K: cuerpo cuyo dígito verificador es K
    body = "10000013"
    assert compute_check_digit(body) == "K"
    assert normalize_rut(f"{body}-k") == f"{body}K"


def test_check_digit_zero():
    assert compute_check_digit("10000004") == "0"
    assert normalize_rut("10.000.004-0") == "100000040"


def test_normalize_is_idempotent():
    once = normalize_rut("22.222.222-2")
    assert normalize_rut(once) == once


@pytest.mark.parametrize(
    "raw",
    [
        "12.345.678-4",  # DV incorrecto
        "12345",  # cuerpo demasiado corto
        "123456789-0",  # cuerpo demasiado largo
        "12.34A.678-5",
        "",
        "-",
        None,
        12345678,
    ],
)
def test_normalize_rejects_invalid(raw):
    assert normalize_rut(raw) is None
    assert is_valid_rut(raw) is False


def test_format_rut_groups_thousands():
    assert format_rut("123456785") == "12.345.678-5"
    assert format_rut("76543216") == "7.654.321-6"


def test_format_rut_returns_invalid_input_unchanged():
    assert format_rut("not-a-rut") == "not-a-rut"
