"""
인증 모듈 테스트 공통 Fixtures
"""

import os
import sys
import asyncio
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock, MagicMock

# 프로젝트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from auth.azure_config import AzureConfig
from auth.auth_errors import InvalidGrant
from auth.token_types import AuthorizationResult

FIXED_NOW = datetime(2025, 1, 9, 10, 30, 0, tzinfo=timezone.utc)


class FakeClock:
    """수동으로 진행되는 시계"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int):
        self.now = self.now + timedelta(seconds=seconds)


class FakeAcquirer:
    """
    TokenAcquirer 대역

    refresh_results / code_results에 AuthorizationResult 또는 예외를 넣으면 순서대로 반환.
    gate가 설정되면 교환 전에 gate.wait()로 대기합니다.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.refresh_calls = []
        self.code_calls = []
        self.refresh_results = []
        self.code_results = []
        self.gate = None

    def build_authorization_url(self, scopes, redirect_uri, state=None):
        from urllib.parse import urlencode
        params = {"redirect_uri": redirect_uri, "scope": " ".join(scopes)}
        if state:
            params["state"] = state
        return f"https://login.example.com/authorize?{urlencode(params)}"

    async def _next(self, results):
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        outcome = results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def exchange_refresh_token(self, refresh_token, scopes):
        self.refresh_calls.append(refresh_token)
        return await self._next(self.refresh_results)

    async def exchange_authorization_code(self, code, scopes, redirect_uri):
        self.code_calls.append((code, redirect_uri))
        if code != "validcode" and not self.code_results:
            raise InvalidGrant("AADSTS70008: The provided authorization code has expired.")
        if self.code_results:
            return await self._next(self.code_results)
        await asyncio.sleep(0)
        return AuthorizationResult(
            access_token="A1",
            refresh_token="R1",
            expires_at=self.clock() + timedelta(seconds=3600),
        )

    async def close(self):
        pass


@pytest.fixture
def clock():
    """고정 시계"""
    return FakeClock()


@pytest.fixture
def azure_config(tmp_path):
    """테스트용 Azure 설정"""
    return AzureConfig(
        client_id="11111111-2222-3333-4444-555555555555",
        client_secret="super-secret-value",
        tenant_id="contoso-tenant",
        redirect_uri="http://localhost:8080/callback",
        token_cache_path=str(tmp_path / "token-cache.json"),
    )


@pytest.fixture
def fake_acquirer(clock):
    """모의 TokenAcquirer"""
    return FakeAcquirer(clock)


@pytest.fixture
def make_token_response():
    """aiohttp 토큰 응답을 흉내내는 세션 생성기"""

    def _make(status: int = 200, body: str = "{}", exc: Exception = None):
        mock_response = AsyncMock()
        mock_response.status = status
        mock_response.text = AsyncMock(return_value=body)

        mock_session = MagicMock()
        mock_session.closed = False
        if exc is not None:
            mock_session.post = MagicMock(side_effect=exc)
        else:
            mock_session.post = MagicMock(return_value=AsyncMock(
                __aenter__=AsyncMock(return_value=mock_response),
                __aexit__=AsyncMock(return_value=None)
            ))
        return mock_session

    return _make
