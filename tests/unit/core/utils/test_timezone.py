"""
core/utils/timezone.py 테스트

UTC 시각 및 업무 날짜 정규화
"""

from datetime import date, datetime, timezone

import pytest

from core.utils.timezone import business_year, now_utc, now_utc_iso, parse_business_date


class TestNow:
    """now_utc / now_utc_iso 테스트"""

    def test_now_utc_is_aware(self) -> None:
        assert now_utc().tzinfo == timezone.utc

    def test_iso_has_microseconds(self) -> None:
        """정렬 키로 쓰이므로 자릿수 고정"""
        value = now_utc_iso()

        assert value.endswith("+00:00")
        assert len(value.split(".")[1]) == len("000000+00:00")


class TestParseBusinessDate:
    """parse_business_date 테스트"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2025-01-05", "2025-01-05"),
            ("05/01/2025", "2025-01-05"),
            ("2025-01-05T10:30:00Z", "2025-01-05"),
            ("2025-01-05 10:30:00+09:00", "2025-01-05"),
            (" 2025-01-05 ", "2025-01-05"),
            (date(2025, 1, 5), "2025-01-05"),
            (datetime(2025, 1, 5, 23, 59), "2025-01-05"),
        ],
    )
    def test_accepted_formats(self, value, expected: str) -> None:
        assert parse_business_date(value) == expected

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "yesterday",
            "31/02/2025",
            "2025-02-30",
            "2025-01-05garbage",
            "2025-01-0512",
            "2025-01-05T",
            "2025-01-05T10:00:00junk",
        ],
    )
    def test_rejected(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_business_date(value)


def test_business_year() -> None:
    assert business_year("2025-12-31") == 2025
