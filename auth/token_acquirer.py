"""
Token Acquirer
Azure AD OAuth2 grant 수행 (authorization_code / refresh_token)

모든 전송/프로바이더 오류는 이 경계에서 InvalidGrant, NetworkError, ProviderError로
재분류됩니다. 각 교환은 단일 왕복이며 내부 재시도는 없습니다.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List, Callable
from urllib.parse import urlencode

import aiohttp

from .azure_config import AzureConfig
from .auth_errors import InvalidGrant, NetworkError, ProviderError, redact
from .time_utils import utc_now
from .token_types import AuthorizationResult

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


class TokenAcquirer:
    """OAuth2 토큰 획득기 - Azure AD v2.0 엔드포인트"""

    def __init__(
        self,
        config: AzureConfig,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            config: AzureConfig 인스턴스
            session: aiohttp 세션 (None이면 필요 시 생성)
            clock: 현재 시각 함수 (테스트용 주입)
        """
        self.config = config
        self.session = session
        self._owns_session = session is None
        self._clock = clock

    async def _get_session(self) -> aiohttp.ClientSession:
        """aiohttp 세션 관리"""
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.http_timeout)
            )
            self._owns_session = True
        return self.session

    def build_authorization_url(
        self, scopes: List[str], redirect_uri: str, state: Optional[str] = None
    ) -> str:
        """
        대화형 동의 URL 생성 (네트워크 호출 없음)

        Args:
            scopes: 요청 스코프
            redirect_uri: 리다이렉트 URI
            state: 요청 상관용 nonce (선택적)

        Returns:
            Azure AD 인증 URL
        """
        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri,
            "response_mode": "query",
            "scope": " ".join(scopes),
        }
        if state:
            params["state"] = state
        return f"{self.config.authorize_endpoint}?{urlencode(params)}"

    async def exchange_authorization_code(
        self, code: str, scopes: List[str], redirect_uri: str
    ) -> AuthorizationResult:
        """
        Authorization code를 토큰으로 교환

        Raises:
            InvalidGrant: 코드가 만료/재사용/잘못됨
            NetworkError: 프로바이더 연결 불가
            ProviderError: 기타 non-2xx 응답
        """
        data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "scope": " ".join(scopes),
        }
        result = await self._post_token_request(data, secrets=[code])
        logger.info("Authorization code exchanged for tokens")
        return result

    async def exchange_refresh_token(self, refresh_token: str, scopes: List[str]) -> AuthorizationResult:
        """
        Refresh token으로 새 access token 발급

        Raises:
            InvalidGrant: refresh token이 폐기/만료됨 (대화형 인증으로 복귀 필요)
            NetworkError: 프로바이더 연결 불가
            ProviderError: 기타 non-2xx 응답
        """
        data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "scope": " ".join(scopes),
        }
        result = await self._post_token_request(data, secrets=[refresh_token])
        logger.info("Token refreshed successfully")
        return result

    async def _post_token_request(self, data: Dict[str, str], secrets: List[str]) -> AuthorizationResult:
        """토큰 엔드포인트 POST 및 응답 분류"""
        secrets = secrets + [self.config.client_secret]
        grant_type = data["grant_type"]

        try:
            session = await self._get_session()
            async with session.post(self.config.token_endpoint, data=data) as response:
                status = response.status
                body = await response.text()
        except asyncio.TimeoutError as e:
            logger.error(f"Token request ({grant_type}) timed out")
            raise NetworkError("Identity provider request timed out") from e
        except aiohttp.ClientError as e:
            logger.error(f"Token request ({grant_type}) failed: {type(e).__name__}")
            raise NetworkError(f"Identity provider unreachable ({type(e).__name__})") from e

        payload = self._parse_json(body)

        if not 200 <= status < 300:
            error = payload.get("error") if isinstance(payload.get("error"), str) else None
            description = redact(payload.get("error_description") or "", secrets) or None
            logger.error(f"Token request ({grant_type}) rejected: status={status}, error={error}")
            if error == "invalid_grant":
                raise InvalidGrant(description or "The grant is invalid, expired or revoked")
            if not error and not description:
                description = redact(body, secrets)[:200] or None
            raise ProviderError(status, error, description)

        access_token = payload.get("access_token")
        if not access_token:
            raise ProviderError(status, "invalid_response", "Token response did not contain an access_token")

        try:
            expires_in = int(payload.get("expires_in", DEFAULT_EXPIRES_IN))
        except (TypeError, ValueError):
            expires_in = DEFAULT_EXPIRES_IN

        return AuthorizationResult(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or None,
            expires_at=self._clock() + timedelta(seconds=expires_in),
        )

    @staticmethod
    def _parse_json(body: str) -> Dict[str, Any]:
        try:
            payload = json.loads(body) if body else {}
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    async def close(self):
        """리소스 정리"""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
            logger.info("Token acquirer session closed")
