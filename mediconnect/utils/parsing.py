from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Iterable

from mediconnect.core.errors import ParseError

BIRTH_DATE_FORMATS = ["%Y-%m-%d", "%d/%m/%Y"]

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def parse_birth_date(
    value: str | date | None, formats: Iterable[str] = BIRTH_DATE_FORMATS
) -> str:
    """생년월일을 yyyy-MM-dd 형식으로 파싱

    Args:
        value: 원본 생년월일 값 (date, datetime 또는 문자열)
        formats: 허용 포맷 목록

    Returns:
        yyyy-MM-dd 형식의 생년월일

    Raises:
        ParseError: 값이 없거나 파싱 실패 시
    """
    if value is None:
        raise ParseError("birth_date", "값이 필요함")
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if text == "":
        raise ParseError("birth_date", "값이 필요함")
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    raise ParseError("birth_date", f"지원하지 않는 날짜 형식: {value}")


def utc_now() -> datetime:
    """현재 UTC 시각"""
    return datetime.now(timezone.utc)


def sort_timestamp(value: datetime | None) -> datetime:
    """정렬용 타임스탬프, 없으면 epoch

    Args:
        value: 생성 시각

    Returns:
        타임존이 있는 datetime
    """
    if value is None:
        return EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
