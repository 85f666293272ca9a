"""
Auth Tool Service - 대화형 인증 도구
outlook_auth: authCode 없으면 인증 URL 반환, 있으면 코드 교환으로 인증 완료
outlook_auth_status: 토큰 상태 요약
"""
import logging
from typing import Dict, Any

from core.protocols import TokenProviderProtocol

from .mcp_service_decorators import mcp_service
from .outlook_types import AuthParams, EmptyParams

logger = logging.getLogger(__name__)


class AuthToolService:
    """인증 도구 서비스"""

    def __init__(self, token_provider: TokenProviderProtocol):
        self.token_provider = token_provider

    @mcp_service(
        tool_name="outlook_auth",
        description=(
            "Authenticate with Microsoft Outlook. Call without authCode to get the sign-in URL, "
            "then call again with the code (and state) from the redirect URL."
        ),
        params_model=AuthParams,
        category="auth",
        priority=10,
    )
    async def authenticate(self, params: AuthParams) -> str:
        if not params.authCode:
            auth_url = self.token_provider.begin_interactive_authorization()
            return (
                f"Please visit this URL to authenticate:\n{auth_url}\n\n"
                "Then call this tool again with the 'authCode' parameter (and 'state') "
                "from the redirect URL."
            )

        await self.token_provider.complete_interactive_authorization(
            params.authCode.strip(), state=params.state
        )
        return "Authentication successful! You can now use other Outlook tools."

    @mcp_service(
        tool_name="outlook_auth_status",
        description="Show the current authentication state (no token values)",
        params_model=EmptyParams,
        category="auth",
    )
    async def auth_status(self, params: EmptyParams) -> Dict[str, Any]:
        return self.token_provider.status()
