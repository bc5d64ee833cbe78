from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D+")


def only_digits(value: object) -> str:
    """숫자 문자만 남김

    Args:
        value: 원본 값 (None 허용)

    Returns:
        원래 순서의 숫자 문자열, None이면 빈 문자열
    """
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def blank_to_none(value: object) -> str | None:
    """문자열 정리, 비어 있으면 None

    Args:
        value: 원본 값

    Returns:
        정리된 문자열 또는 None
    """
    if value is None:
        return None
    text = str(value).strip()
    if text == "":
        return None
    return text


def digits_or_none(value: object) -> str | None:
    """숫자만 남기고, 결과가 비면 None"""
    digits = only_digits(value)
    return digits or None


def mask_cpf(value: object) -> str:
    """CPF 표시 마스크 (000.000.000-00)

    Args:
        value: CPF 원본 값

    Returns:
        마스크가 적용된 문자열 (입력 중인 값은 부분 적용)
    """
    digits = only_digits(value)[:11]
    masked = re.sub(r"(\d{3})(\d)", r"\1.\2", digits, count=1)
    masked = re.sub(r"(\d{3})(\d)", r"\1.\2", masked, count=1)
    return re.sub(r"(\d{3})(\d{1,2})$", r"\1-\2", masked, count=1)


def mask_phone(value: object) -> str:
    """전화번호 표시 마스크 ((00) 0000-0000 또는 (00) 00000-0000)

    Args:
        value: 전화번호 원본 값

    Returns:
        마스크가 적용된 문자열
    """
    digits = only_digits(value)[:11]
    masked = re.sub(r"(\d{2})(\d)", r"(\1) \2", digits, count=1)
    if len(digits) <= 10:
        return re.sub(r"(\d{4})(\d{1,4})$", r"\1-\2", masked, count=1)
    return re.sub(r"(\d{5})(\d{1,4})$", r"\1-\2", masked, count=1)


def mask_cep(value: object) -> str:
    """CEP 표시 마스크 (00000-000)"""
    digits = only_digits(value)[:8]
    return re.sub(r"(\d{5})(\d{1,3})$", r"\1-\2", digits, count=1)
