"""
유틸리티 패키지

시간/날짜 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    business_year,
    now_utc,
    now_utc_iso,
    parse_business_date,
)

__all__ = [
    "business_year",
    "now_utc",
    "now_utc_iso",
    "parse_business_date",
]
