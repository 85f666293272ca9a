"""
Authentication Errors
토큰 획득/갱신/저장 과정에서 발생하는 예외 분류

TokenAcquirer는 전송/프로바이더 오류를 InvalidGrant, NetworkError, ProviderError로
재분류하고, TokenLifecycleManager는 이를 AuthenticationRequired 또는
TemporaryAuthFailure로 변환해 외부(도구 디스패처)에 전달합니다.
메시지에는 토큰, 인증 코드, client secret이 포함되지 않습니다.
"""

from typing import Iterable, Optional

REDACTED = "[REDACTED]"


def redact(text: Optional[str], secrets: Iterable[Optional[str]]) -> str:
    """text에서 민감한 값을 [REDACTED]로 치환"""
    if not text:
        return ""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


class AuthError(Exception):
    """인증 관련 예외의 기본 클래스"""


class ConfigurationError(AuthError):
    """필수 설정(client id/secret/tenant) 누락"""


class AuthenticationRequired(AuthError):
    """
    사용 가능한 자격 증명이 없고 자동 복구도 불가능한 상태

    호출자는 대화형 인증 URL을 사용자에게 보여줘야 합니다.
    """

    def __init__(self, message: str = "Authentication required. Run the authorization flow first."):
        super().__init__(message)


class AuthorizationStateMismatch(AuthenticationRequired):
    """콜백의 state가 발급된 nonce와 일치하지 않음 - 코드 교환을 시도하지 않음"""


class TemporaryAuthFailure(AuthError):
    """유효한 refresh 도중 네트워크/프로바이더 장애 - 사용자 조치 없이 재시도 가능"""


class PersistenceFailure(AuthError):
    """토큰 캐시 파일 읽기/쓰기 실패"""


class AcquisitionError(AuthError):
    """TokenAcquirer 경계에서 재분류된 프로바이더 오류"""


class InvalidGrant(AcquisitionError):
    """인증 코드 또는 refresh token이 만료/폐기/재사용됨 (invalid_grant)"""


class NetworkError(AcquisitionError):
    """Identity provider에 연결할 수 없음 (연결 실패 또는 타임아웃)"""


class ProviderError(AcquisitionError):
    """invalid_grant 이외의 non-2xx 응답"""

    def __init__(self, status: int, error: Optional[str] = None, description: Optional[str] = None):
        self.status = status
        self.error = error
        self.description = description
        detail = error or "unknown_error"
        if description:
            detail = f"{detail}: {description}"
        super().__init__(f"Token endpoint returned {status} ({detail})")
