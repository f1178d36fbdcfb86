"""
UTC 시간 유틸리티

DB에는 timezone 정보 없는 UTC datetime으로 저장한다.
"""
from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """현재 UTC 시간 (naive)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """aware datetime은 UTC로 변환 후 tzinfo 제거"""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def format_iso(dt: Optional[datetime]) -> Optional[str]:
    """프론트엔드용 ISO 문자열 (UTC 표기 'Z')"""
    if dt is None:
        return None
    return to_naive_utc(dt).isoformat() + "Z"


def format_day(dt: datetime) -> str:
    """YYYY-MM-DD"""
    return dt.strftime("%Y-%m-%d")


def iso_week(dt: datetime) -> tuple[int, int]:
    """(ISO year, ISO week)"""
    iso = date(dt.year, dt.month, dt.day).isocalendar()
    return iso[0], iso[1]
