"""
Token Types
자격 증명 레코드, 토큰 획득 결과, 토큰 상태 정의
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from .time_utils import parse_iso_to_utc, to_utc

logger = logging.getLogger(__name__)


class TokenState(str, Enum):
    """토큰 생애주기 상태"""

    UNAUTHENTICATED = "unauthenticated"  # 사용 가능한 레코드 없음
    AUTHENTICATED = "authenticated"  # access token 유효
    NEEDS_REFRESH = "needs_refresh"  # access token 만료/없음, refresh token 있음
    REFRESH_IN_FLIGHT = "refresh_in_flight"  # refresh 진행 중
    AUTHORIZATION_PENDING = "authorization_pending"  # 인증 URL 발급 후 코드 대기


@dataclass(frozen=True)
class AuthorizationResult:
    """토큰 획득 결과 (authorization_code 또는 refresh_token grant)"""

    access_token: str
    expires_at: datetime
    refresh_token: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"AuthorizationResult(expires_at={self.expires_at.isoformat()}, "
            f"has_refresh_token={self.refresh_token is not None})"
        )


@dataclass(frozen=True)
class CredentialRecord:
    """
    영속화되는 자격 증명 레코드

    access_token이 있으면 expires_at도 반드시 있어야 합니다.
    refresh_token만 있는 레코드는 "silent refresh 필요" 상태입니다.
    """

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        if self.access_token and self.expires_at is None:
            raise ValueError("access_token requires expires_at")
        if self.expires_at is not None:
            object.__setattr__(self, "expires_at", to_utc(self.expires_at))

    def __repr__(self) -> str:
        expires = self.expires_at.isoformat() if self.expires_at else None
        return (
            f"CredentialRecord(has_access_token={self.access_token is not None}, "
            f"has_refresh_token={self.refresh_token is not None}, expires_at={expires})"
        )

    @classmethod
    def from_result(
        cls, result: AuthorizationResult, previous_refresh_token: Optional[str] = None
    ) -> "CredentialRecord":
        """
        AuthorizationResult로 레코드 전체를 교체

        응답에 refresh token이 없으면 이전 refresh token을 유지합니다.
        """
        return cls(
            access_token=result.access_token,
            refresh_token=result.refresh_token or previous_refresh_token,
            expires_at=result.expires_at,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CredentialRecord":
        """
        토큰 캐시 JSON에서 레코드 생성

        Raises:
            ValueError: 필드 타입이 잘못된 경우
        """
        if not isinstance(data, dict):
            raise ValueError("token cache must be a JSON object")

        access_token = data.get("accessToken") or None
        refresh_token = data.get("refreshToken") or None
        expires_on = data.get("expiresOn") or None

        for name, value in (("accessToken", access_token), ("refreshToken", refresh_token),
                            ("expiresOn", expires_on)):
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be a string")

        expires_at = parse_iso_to_utc(expires_on) if expires_on else None

        if access_token and expires_at is None:
            logger.warning("Token cache has an access token without expiry; discarding the access token")
            access_token = None

        return cls(access_token=access_token, refresh_token=refresh_token, expires_at=expires_at)

    def to_dict(self) -> Dict[str, Any]:
        """토큰 캐시 JSON 형식으로 변환 (없는 필드는 생략)"""
        data: Dict[str, Any] = {}
        if self.access_token:
            data["accessToken"] = self.access_token
        if self.refresh_token:
            data["refreshToken"] = self.refresh_token
        if self.expires_at is not None:
            data["expiresOn"] = self.expires_at.isoformat()
        return data
