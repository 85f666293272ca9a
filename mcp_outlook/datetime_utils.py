"""
일정/작업용 날짜·시간대 유틸리티
Graph의 dateTimeTimeZone 형식({"dateTime", "timeZone"}) 생성을 담당
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

LOCALTIME_PATH = "/etc/localtime"


def _is_valid_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def get_system_timezone() -> str:
    """
    시스템 IANA 시간대 이름 반환

    TZ 환경변수 → /etc/localtime 심볼릭 링크 순서로 확인하고,
    알 수 없으면 "UTC"를 반환합니다.
    """
    candidates = []
    tz_env = os.environ.get("TZ", "").lstrip(":")
    if tz_env:
        candidates.append(tz_env)

    if os.path.islink(LOCALTIME_PATH):
        target = os.path.realpath(LOCALTIME_PATH)
        if "zoneinfo/" in target:
            candidates.append(target.split("zoneinfo/", 1)[1])

    for name in candidates:
        if _is_valid_timezone(name):
            return name

    logger.debug("System timezone could not be determined; using UTC")
    return "UTC"


def format_datetime_for_graph(value: str, tz: Optional[str] = None) -> Dict[str, str]:
    """
    ISO 날짜/시간 문자열을 Graph dateTimeTimeZone으로 변환

    - 날짜만 있으면 T00:00:00 추가
    - 끝의 Z는 제거하고 해당 시간대의 벽시계 시간으로 취급
    - +09:00 같은 오프셋이 있으면 대상 시간대로 변환 후 오프셋 제거

    Args:
        value: ISO 형식 문자열 (YYYY-MM-DD 또는 YYYY-MM-DDTHH:mm:ss)
        tz: IANA 시간대 (None이면 시스템 시간대)

    Returns:
        {"dateTime": "...", "timeZone": "..."}
    """
    tz_name = tz or get_system_timezone()
    dt = value.strip()
    if "T" not in dt:
        dt += "T00:00:00"
    if dt.endswith("Z"):
        dt = dt[:-1]
    else:
        try:
            parsed = datetime.fromisoformat(dt)
        except ValueError:
            parsed = None
        if parsed is not None and parsed.tzinfo is not None:
            target = ZoneInfo(tz_name) if _is_valid_timezone(tz_name) else timezone.utc
            dt = parsed.astimezone(target).replace(tzinfo=None).isoformat()

    return {"dateTime": dt, "timeZone": tz_name}


def all_day_date(value: str) -> str:
    """종일 일정용 날짜 부분(YYYY-MM-DD)만 추출"""
    return value.strip().split("T", 1)[0]


def default_calendar_window(now: Optional[datetime] = None, days: int = 7) -> Tuple[str, str]:
    """calendarView 기본 조회 구간 (지금 ~ days일 후, UTC ISO)"""
    now = now or datetime.now(timezone.utc)
    end = now + timedelta(days=days)
    return _to_graph_utc(now), _to_graph_utc(end)


def _to_graph_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")
