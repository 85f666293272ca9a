"""
Outlook MCP 도구 테스트 공통 Fixtures

테스트 시나리오:
    1. GraphClient 요청/오류 변환
    2. 서비스별 Graph 요청 구성
    3. STDIO 서버 JSON-RPC 처리 및 오류 매핑
    4. 콜백 서버
"""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock

# 프로젝트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

AUTH_URL = "https://login.microsoftonline.com/contoso/oauth2/v2.0/authorize?state=nonce-1"


class FakeTokenProvider:
    """TokenProviderProtocol 테스트 대역"""

    def __init__(self, token: str = "A1", error: Exception = None):
        self.token = token
        self.error = error
        self.begin_calls = 0
        self.completed = []

    async def get_access_token(self) -> str:
        if self.error is not None:
            raise self.error
        return self.token

    def begin_interactive_authorization(self, scopes=None, redirect_uri=None) -> str:
        self.begin_calls += 1
        return AUTH_URL

    async def complete_interactive_authorization(self, code, scopes=None, redirect_uri=None, state=None):
        if self.error is not None:
            raise self.error
        self.completed.append((code, state))

    def status(self):
        return {"state": "authenticated", "has_access_token": True, "has_refresh_token": True}


@pytest.fixture
def token_provider():
    """인증된 토큰 제공자"""
    return FakeTokenProvider()


@pytest.fixture
def fake_provider_factory():
    """오류 등을 지정한 토큰 제공자 생성기"""
    return FakeTokenProvider


@pytest.fixture
def graph_client():
    """모의 GraphClient (get/post/patch/delete)"""
    client = MagicMock()
    client.get = AsyncMock(return_value={"value": []})
    client.post = AsyncMock(return_value={})
    client.patch = AsyncMock(return_value={})
    client.delete = AsyncMock(return_value={})
    return client


@pytest.fixture
def make_graph_session():
    """aiohttp 세션 모의 객체 생성기 (session.request 컨텍스트 매니저)"""

    def _make(status: int = 200, body: str = "{}", exc: Exception = None):
        mock_response = AsyncMock()
        mock_response.status = status
        mock_response.text = AsyncMock(return_value=body)

        mock_session = MagicMock()
        mock_session.closed = False
        if exc is not None:
            mock_session.request = MagicMock(side_effect=exc)
        else:
            mock_session.request = MagicMock(return_value=AsyncMock(
                __aenter__=AsyncMock(return_value=mock_response),
                __aexit__=AsyncMock(return_value=None)
            ))
        return mock_session

    return _make
