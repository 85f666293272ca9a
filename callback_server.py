#!/usr/bin/env python3
"""
OAuth Callback Server
Azure AD 인증 리다이렉트(/callback)를 받아 TokenLifecycleManager로 인증을 완료하는 웹서버입니다.
"""

import asyncio
import html
import logging
import socket
from typing import Optional
from urllib.parse import urlparse

from aiohttp import web

from auth.auth_errors import AuthError, AuthorizationStateMismatch
from core.protocols import TokenProviderProtocol

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = """
<html>
<head>
    <title>{title}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; background: #f0f0f0; }}
        .container {{ background: white; padding: 30px; border-radius: 10px; max-width: 600px; margin: auto; }}
        h1 {{ color: {color}; }}
        .detail {{ background: #f7f7f7; padding: 20px; border-radius: 5px; margin: 20px 0; }}
    </style>
    {script}
</head>
<body>
    <div class="container">
        <h1>{heading}</h1>
        <div class="detail">{detail}</div>
    </div>
</body>
</html>
"""

CLOSE_SCRIPT = "<script>setTimeout(function() { window.close(); }, 3000);</script>"


def _page(title: str, heading: str, detail: str, success: bool) -> str:
    return PAGE_TEMPLATE.format(
        title=title,
        heading=heading,
        detail=detail,
        color="#27ae60" if success else "#d73027",
        script=CLOSE_SCRIPT if success else "",
    )


class CallbackServer:
    """OAuth 콜백 서버 클래스"""

    def __init__(self, token_provider: TokenProviderProtocol, host: str = "localhost", port: int = 8080,
                 path: str = "/callback"):
        """
        콜백 서버 초기화

        Args:
            token_provider: 인증을 완료할 TokenLifecycleManager
            host: 바인드 호스트
            port: 서버 포트 (기본 8080)
            path: 콜백 경로
        """
        self.token_provider = token_provider
        self.host = host
        self.port = port
        self.path = path
        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None
        self.auth_completed = asyncio.Event()
        self.auth_error: Optional[str] = None

    @classmethod
    def from_redirect_uri(cls, token_provider: TokenProviderProtocol, redirect_uri: str) -> "CallbackServer":
        """redirect URI(예: http://localhost:8080/callback)에서 호스트/포트/경로 결정"""
        parsed = urlparse(redirect_uri)
        return cls(
            token_provider,
            host=parsed.hostname or "localhost",
            port=parsed.port or 80,
            path=parsed.path or "/callback",
        )

    def is_running(self) -> bool:
        """서버 실행 상태 확인"""
        return self.site is not None

    def check_port_availability(self) -> bool:
        """
        포트 사용 가능 여부 확인

        Returns:
            포트가 사용 가능하면 True
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self.host, self.port))
            return True
        except OSError:
            return False
        finally:
            sock.close()

    async def handle_callback(self, request: web.Request) -> web.Response:
        """OAuth 콜백 처리"""
        # 쿼리 문자열에는 인증 코드가 있으므로 기록하지 않음
        logger.info(f"Callback received - Path: {request.path}")

        code = request.query.get("code")
        state = request.query.get("state")
        error = request.query.get("error")
        error_description = request.query.get("error_description")

        if error:
            logger.error(f"Authorization failed at provider: {error}")
            self.auth_error = error
            self.auth_completed.set()
            detail = (
                f"<strong>Error:</strong> {html.escape(error)}<br>"
                f"<strong>Description:</strong> "
                f"{html.escape(error_description or 'No additional information')}"
            )
            return web.Response(
                text=_page("Authentication Failed", "❌ Authentication Failed", detail, success=False),
                content_type="text/html",
                status=400,
            )

        if not code:
            return web.Response(text="Missing authorization code", status=400)

        try:
            await self.token_provider.complete_interactive_authorization(code, state=state)
        except AuthorizationStateMismatch:
            # login 대기는 유지 (정상 리다이렉트가 뒤이어 올 수 있음)
            logger.warning("Callback with unknown state ignored")
            return web.Response(text="Unknown or expired authorization state", status=400)
        except AuthError as e:
            logger.error(f"❌ Authorization could not be completed: {type(e).__name__}")
            self.auth_error = str(e)
            self.auth_completed.set()
            return web.Response(
                text=_page("Authentication Failed", "❌ Authentication Failed", html.escape(str(e)), success=False),
                content_type="text/html",
                status=401,
            )

        logger.info("✅ Authentication successful")
        self.auth_error = None
        self.auth_completed.set()
        return web.Response(
            text=_page(
                "Authentication Successful",
                "✅ Authentication Successful!",
                "This window will close automatically in 3 seconds. You can now return to your application.",
                success=True,
            ),
            content_type="text/html",
        )

    async def handle_status(self, request: web.Request) -> web.Response:
        """Status endpoint - returns JSON status"""
        status = {
            "status": "running",
            "port": self.port,
            "callback_url": f"http://{self.host}:{self.port}{self.path}",
            "auth": self.token_provider.status(),
        }
        return web.json_response(status)

    def init_app(self) -> web.Application:
        """Initialize the web application"""
        self.app = web.Application()
        self.app.router.add_get(self.path, self.handle_callback)
        self.app.router.add_get("/status", self.handle_status)
        return self.app

    async def start(self):
        """서버 시작"""
        if self.is_running():
            logger.warning("Server already running")
            return

        if not self.check_port_availability():
            raise OSError(f"Port {self.port} is already in use")

        self.init_app()
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(f"Callback server started on http://{self.host}:{self.port}{self.path}")

    async def stop(self):
        """서버 종료"""
        if self.site:
            await self.site.stop()
            self.site = None

        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Callback server stopped")

    async def wait_for_auth(self, timeout: float = 300) -> bool:
        """
        인증 완료 대기

        Args:
            timeout: 대기 시간 (초)

        Returns:
            인증 성공 여부 (타임아웃/실패 시 False)
        """
        try:
            await asyncio.wait_for(self.auth_completed.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Authentication timeout")
            return False
        return self.auth_error is None

    def reset_auth_event(self):
        """인증 이벤트 초기화"""
        self.auth_completed.clear()
        self.auth_error = None
