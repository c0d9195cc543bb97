"""
시간 유틸리티

내부 저장은 항상 UTC ISO 8601 문자열.
업무 날짜(date)는 YYYY-MM-DD 문자열로 정규화.
"""

import re
from datetime import date, datetime, timezone


# 레거시 데이터에서 사용되던 날짜 형식 (DD/MM/YYYY)
LEGACY_DATE_FORMAT = "%d/%m/%Y"

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
ISO_DATETIME_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:")


def now_utc() -> datetime:
    """현재 UTC 시간 반환

    Returns:
        UTC 타임존의 현재 datetime
    """
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """현재 UTC 시간을 ISO 8601 문자열로 반환 (마이크로초 포함)

    created_at 등 정렬 키로 사용되므로 자릿수가 항상 같아야 함.

    Example:
        >>> now_utc_iso()
        '2026-02-20T16:00:00.123456+00:00'
    """
    return now_utc().isoformat(timespec="microseconds")


def parse_business_date(value: str | date) -> str:
    """업무 날짜를 YYYY-MM-DD 문자열로 정규화

    ISO 형식(YYYY-MM-DD)과 레거시 형식(DD/MM/YYYY)을 모두 허용.
    완전한 ISO datetime 문자열이 들어오면 날짜 부분만 사용.
    그 밖의 꼬리 문자가 붙은 값은 거부.

    Args:
        value: 날짜 문자열 또는 date 객체

    Returns:
        YYYY-MM-DD 형식 문자열

    Raises:
        ValueError: 해석할 수 없는 날짜인 경우

    Example:
        >>> parse_business_date("05/01/2025")
        '2025-01-05'
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        raise ValueError("날짜가 비어 있습니다")

    if "/" in text:
        return datetime.strptime(text, LEGACY_DATE_FORMAT).date().isoformat()

    if ISO_DATE_PATTERN.fullmatch(text):
        return date.fromisoformat(text).isoformat()

    # "2025-01-05T10:00:00" 같은 완전한 ISO datetime만 날짜 부분 사용
    if ISO_DATETIME_PREFIX.match(text):
        if text.endswith("Z"):  # Python 3.10 fromisoformat은 Z 미지원
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date().isoformat()

    raise ValueError(f"해석할 수 없는 날짜: {text!r}")


def business_year(business_date: str) -> int:
    """업무 날짜(YYYY-MM-DD)의 연도 반환"""
    return date.fromisoformat(business_date).year
