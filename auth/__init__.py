"""
Azure Authentication Module
Azure AD OAuth 2.0 토큰 생애주기를 관리하는 모듈입니다.
"""

from .auth_errors import (
    AuthError,
    AuthenticationRequired,
    AuthorizationStateMismatch,
    TemporaryAuthFailure,
    InvalidGrant,
    NetworkError,
    ProviderError,
    PersistenceFailure,
    ConfigurationError,
)
from .azure_config import AzureConfig
from .token_types import CredentialRecord, AuthorizationResult, TokenState
from .token_store import TokenStore
from .token_acquirer import TokenAcquirer
from .token_manager import TokenLifecycleManager

# 메인 인터페이스
__all__ = [
    # 클래스
    'TokenLifecycleManager',  # 메인 매니저 - 토큰 상태/refresh 조정
    'TokenAcquirer',          # OAuth grant 수행
    'TokenStore',             # 토큰 캐시 파일
    'AzureConfig',            # Azure 설정 관리
    # 타입
    'CredentialRecord',
    'AuthorizationResult',
    'TokenState',
    # 예외
    'AuthError',
    'AuthenticationRequired',
    'AuthorizationStateMismatch',
    'TemporaryAuthFailure',
    'InvalidGrant',
    'NetworkError',
    'ProviderError',
    'PersistenceFailure',
    'ConfigurationError',
]

__version__ = '1.0.0'
