"""
callback_server.py 단위 테스트 (aiohttp TestServer 사용)
"""

import pytest
from aiohttp import test_utils

from auth.auth_errors import AuthenticationRequired, AuthorizationStateMismatch
from callback_server import CallbackServer


class TestCallbackServer:
    """CallbackServer 라우트 테스트"""

    @pytest.mark.asyncio
    async def test_callback_completes_authorization(self, token_provider):
        server = CallbackServer(token_provider)
        async with test_utils.TestClient(test_utils.TestServer(server.init_app())) as client:
            resp = await client.get("/callback", params={"code": "code-1", "state": "nonce-1"})
            assert resp.status == 200

        assert token_provider.completed == [("code-1", "nonce-1")]
        assert await server.wait_for_auth(timeout=1) is True

    @pytest.mark.asyncio
    async def test_provider_error(self, token_provider):
        server = CallbackServer(token_provider)
        async with test_utils.TestClient(test_utils.TestServer(server.init_app())) as client:
            resp = await client.get("/callback", params={
                "error": "access_denied", "error_description": "<b>user cancelled</b>"
            })
            body = await resp.text()

        assert resp.status == 400
        assert "<b>user cancelled</b>" not in body
        assert await server.wait_for_auth(timeout=1) is False
        assert token_provider.completed == []

    @pytest.mark.asyncio
    async def test_missing_code(self, token_provider):
        server = CallbackServer(token_provider)
        async with test_utils.TestClient(test_utils.TestServer(server.init_app())) as client:
            resp = await client.get("/callback")
        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_unknown_state_does_not_end_wait(self, fake_provider_factory):
        """알 수 없는 state → 400, login 대기는 계속됨"""
        provider = fake_provider_factory(error=AuthorizationStateMismatch("Authorization state did not match"))
        server = CallbackServer(provider)
        async with test_utils.TestClient(test_utils.TestServer(server.init_app())) as client:
            resp = await client.get("/callback", params={"code": "code-1", "state": "forged"})
        assert resp.status == 400
        assert not server.auth_completed.is_set()
        assert server.auth_error is None

    @pytest.mark.asyncio
    async def test_rejected_code(self, fake_provider_factory):
        """코드 거부 → 401, 실패로 대기 종료"""
        provider = fake_provider_factory(error=AuthenticationRequired("Authorization code was rejected"))
        server = CallbackServer(provider)
        async with test_utils.TestClient(test_utils.TestServer(server.init_app())) as client:
            resp = await client.get("/callback", params={"code": "expired", "state": "nonce-1"})
        assert resp.status == 401
        assert server.auth_error is not None
        assert await server.wait_for_auth(timeout=1) is False

    @pytest.mark.asyncio
    async def test_status(self, token_provider):
        server = CallbackServer(token_provider, port=8765)
        async with test_utils.TestClient(test_utils.TestServer(server.init_app())) as client:
            resp = await client.get("/status")
            data = await resp.json()
        assert data["callback_url"] == "http://localhost:8765/callback"
        assert data["auth"]["state"] == "authenticated"

    def test_from_redirect_uri(self, token_provider):
        server = CallbackServer.from_redirect_uri(token_provider, "http://127.0.0.1:9000/auth/cb")
        assert (server.host, server.port, server.path) == ("127.0.0.1", 9000, "/auth/cb")
