"""
Core Protocols - 모듈 간 의존성 추상화를 위한 Protocol 정의

현재 정의:
    - TokenProviderProtocol: mcp_outlook이 auth.TokenLifecycleManager를 직접 알지 않아도 되게 함

사용 예시:
    # 테스트용 Mock 주입
    mock_provider = MockTokenProvider()
    client = GraphClient(token_provider=mock_provider)
"""

from typing import Protocol, Optional, List, Dict, Any, runtime_checkable


@runtime_checkable
class TokenProviderProtocol(Protocol):
    """
    토큰 제공자 프로토콜 - TokenLifecycleManager 추상화

    auth.TokenLifecycleManager가 이 Protocol을 구현합니다.
    """

    async def get_access_token(self) -> str:
        """
        유효한 액세스 토큰 반환 (필요시 자동 갱신)

        Raises:
            AuthenticationRequired: 대화형 인증 필요
            TemporaryAuthFailure: 재시도 가능한 일시적 장애
        """
        ...

    def begin_interactive_authorization(
        self, scopes: Optional[List[str]] = None, redirect_uri: Optional[str] = None
    ) -> str:
        """대화형 인증 URL 생성"""
        ...

    async def complete_interactive_authorization(
        self,
        code: str,
        scopes: Optional[List[str]] = None,
        redirect_uri: Optional[str] = None,
        state: Optional[str] = None,
    ) -> None:
        """인증 코드로 인증 완료"""
        ...

    def status(self) -> Dict[str, Any]:
        """토큰 상태 요약 (토큰 값 제외)"""
        ...
