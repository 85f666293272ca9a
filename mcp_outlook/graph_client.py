"""
Microsoft Graph API Client
모든 Graph 호출 전에 TokenProvider에서 토큰을 받아 Authorization 헤더를 붙입니다.

- 인증 예외(AuthenticationRequired, TemporaryAuthFailure)는 그대로 전파
- Graph non-2xx 응답은 GraphApiError(status, code, message)
- 전송 실패/타임아웃은 GraphApiError(status=0)
"""

import asyncio
import json
import logging
from typing import Optional, Dict, Any
from urllib.parse import quote

import aiohttp

from core.protocols import TokenProviderProtocol

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class OutlookServiceError(Exception):
    """도구 실행 중 사용자에게 전달할 오류 (예: 폴더 없음, 작업 목록 없음)"""


class GraphApiError(OutlookServiceError):
    """Graph API 오류 응답"""

    def __init__(self, status: int, code: Optional[str] = None, message: str = ""):
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"Graph API error {status} ({code or 'unknown'}): {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status, "code": self.code, "message": self.message}


def encode_id(value: str) -> str:
    """URL 경로에 넣을 Graph 리소스 ID 인코딩"""
    return quote(value, safe="")


def escape_odata(value: str) -> str:
    """OData $filter 문자열 리터럴용 작은따옴표 이스케이프"""
    return value.replace("'", "''")


class GraphClient:
    """Graph API 클라이언트 - 인증된 요청 디스패처"""

    GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

    def __init__(
        self,
        token_provider: TokenProviderProtocol,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            token_provider: 액세스 토큰 제공자
            session: aiohttp 세션 (None이면 필요 시 생성)
            timeout: 요청 타임아웃 (초)
        """
        self.token_provider = token_provider
        self._session = session
        self._owns_session = session is None
        self.timeout = timeout

    async def _get_session(self) -> aiohttp.ClientSession:
        if not self._session or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._owns_session = True
        return self._session

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Graph API 요청 수행

        Args:
            method: HTTP 메서드 (GET, POST, PATCH, DELETE)
            endpoint: API 엔드포인트 (예: /me/messages)
            params: 쿼리 파라미터 ($top, $select 등)
            json_data: JSON 본문

        Returns:
            응답 JSON (204/빈 본문이면 빈 dict)

        Raises:
            AuthenticationRequired / TemporaryAuthFailure: 토큰 획득 실패
            GraphApiError: Graph 오류 또는 전송 실패
        """
        access_token = await self.token_provider.get_access_token()

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        url = f"{self.GRAPH_BASE_URL}{endpoint}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        logger.debug(f"Graph {method} {endpoint}")
        try:
            session = await self._get_session()
            async with session.request(
                method,
                url,
                headers=headers,
                params=query or None,
                json=json_data,
            ) as response:
                status = response.status
                body = await response.text()
        except asyncio.TimeoutError as e:
            logger.error(f"Graph request timed out: {method} {endpoint}")
            raise GraphApiError(0, "timeout", "Microsoft Graph request timed out") from e
        except aiohttp.ClientError as e:
            logger.error(f"Graph request failed: {method} {endpoint} ({type(e).__name__})")
            raise GraphApiError(0, "network_error", f"Microsoft Graph unreachable ({type(e).__name__})") from e

        if not 200 <= status < 300:
            code, message = self._parse_error(body)
            logger.error(f"API 요청 실패: {status} {code} - {method} {endpoint}")
            raise GraphApiError(status, code, message)

        if status == 204 or not body:
            return {}
        try:
            return json.loads(body)
        except ValueError as e:
            raise GraphApiError(status, "invalid_response", "Graph returned a non-JSON response") from e

    @staticmethod
    def _parse_error(body: str):
        try:
            error = json.loads(body).get("error", {})
        except (ValueError, AttributeError):
            return None, body[:200]
        if not isinstance(error, dict):
            return None, str(error)
        return error.get("code"), error.get("message", "")

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("POST", endpoint, json_data=json_data)

    async def patch(self, endpoint: str, json_data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("PATCH", endpoint, json_data=json_data)

    async def delete(self, endpoint: str) -> Dict[str, Any]:
        return await self.request("DELETE", endpoint)

    async def close(self):
        """리소스 정리"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None
