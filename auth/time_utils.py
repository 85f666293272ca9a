"""
시간대 처리 유틸리티
UTC 변환, ISO 파싱, 만료 확인을 담당
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """현재 UTC 시간 반환"""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    datetime을 UTC로 변환

    Args:
        dt: 변환할 datetime (timezone aware or naive)

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        # naive datetime은 UTC로 가정
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_to_utc(iso_string: str) -> datetime:
    """
    ISO 형식 문자열을 UTC datetime으로 파싱

    JavaScript Date 직렬화 형식("2024-01-01T00:00:00.000Z")도 허용합니다.

    Args:
        iso_string: ISO 형식 시간 문자열

    Returns:
        UTC datetime

    Raises:
        ValueError: 파싱할 수 없는 문자열
    """
    value = iso_string.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(value))


def is_expired(
    expires_at: datetime,
    buffer_seconds: int = 300,
    now: Optional[datetime] = None,
) -> bool:
    """
    만료 여부 확인 (버퍼 시간 포함)

    expires_at까지 buffer_seconds 이하로 남았으면 만료로 간주합니다.

    Args:
        expires_at: 만료 시간
        buffer_seconds: 버퍼 시간 (기본 5분)
        now: 기준 시각 (기본값: 현재 UTC)

    Returns:
        만료 여부
    """
    now = now or utc_now()
    return to_utc(now) + timedelta(seconds=buffer_seconds) >= to_utc(expires_at)


def time_until_expiry(expires_at: datetime, now: Optional[datetime] = None) -> str:
    """
    만료까지 남은 시간을 사람이 읽기 쉬운 형태로 반환

    Args:
        expires_at: 만료 시간 (UTC)
        now: 기준 시각 (기본값: 현재 UTC)

    Returns:
        남은 시간 문자열 (예: "2 hours 30 minutes")
    """
    remaining = to_utc(expires_at) - to_utc(now or utc_now())

    if remaining.total_seconds() <= 0:
        return "Expired"

    days = remaining.days
    hours, remainder = divmod(remaining.seconds, 3600)
    minutes, _ = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours > 0:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes > 0 and days == 0:  # 날짜가 있으면 분은 생략
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")

    return " ".join(parts) if parts else "Less than a minute"
