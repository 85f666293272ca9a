"""
Azure AD configuration management module.
Azure AD 앱 설정(client id/secret/tenant)과 토큰 캐시 설정을 담당합니다.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Mapping

from dotenv import load_dotenv

from .auth_errors import ConfigurationError

logger = logging.getLogger(__name__)

GRAPH_DEFAULT_SCOPE = "https://graph.microsoft.com/.default"
OFFLINE_ACCESS_SCOPE = "offline_access"

DEFAULT_REDIRECT_URI = "http://localhost:8080/callback"
DEFAULT_TOKEN_CACHE_PATH = ".mcp-outlook-token-cache.json"
DEFAULT_REFRESH_MARGIN = 300
DEFAULT_HTTP_TIMEOUT = 30

REQUIRED_ENV_VARS = ("OUTLOOK_CLIENT_ID", "OUTLOOK_CLIENT_SECRET", "OUTLOOK_TENANT_ID")


def _ensure_offline_access(scopes: List[str]) -> List[str]:
    """refresh token 발급을 보장하기 위해 offline_access 스코프 추가"""
    if OFFLINE_ACCESS_SCOPE not in scopes:
        scopes = scopes + [OFFLINE_ACCESS_SCOPE]
    return scopes


@dataclass(frozen=True)
class AzureConfig:
    """Azure AD 설정"""

    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scopes: List[str] = field(default_factory=lambda: [GRAPH_DEFAULT_SCOPE, OFFLINE_ACCESS_SCOPE])
    token_cache_path: str = DEFAULT_TOKEN_CACHE_PATH
    refresh_margin_seconds: int = DEFAULT_REFRESH_MARGIN
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self):
        missing = [
            name for name, value in (
                ("client_id", self.client_id),
                ("client_secret", self.client_secret),
                ("tenant_id", self.tenant_id),
            ) if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing Azure AD configuration: {', '.join(missing)}")
        object.__setattr__(self, "scopes", _ensure_offline_access(list(self.scopes)))

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> "AzureConfig":
        """
        환경변수에서 Azure 설정 로드

        필수 변수(OUTLOOK_CLIENT_ID, OUTLOOK_CLIENT_SECRET, OUTLOOK_TENANT_ID) 중
        하나라도 없으면 시작 시점에 ConfigurationError를 발생시킵니다.

        Args:
            env: 환경변수 매핑 (None이면 .env 로드 후 os.environ 사용)
            dotenv_path: .env 파일 경로 (선택적)

        Returns:
            AzureConfig 인스턴스
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        scopes_str = env.get("OUTLOOK_SCOPES")
        scopes = scopes_str.split() if scopes_str else [GRAPH_DEFAULT_SCOPE, OFFLINE_ACCESS_SCOPE]

        try:
            refresh_margin = int(env.get("OUTLOOK_REFRESH_MARGIN", DEFAULT_REFRESH_MARGIN))
            http_timeout = float(env.get("OUTLOOK_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric configuration value: {e}") from e

        config = cls(
            client_id=env["OUTLOOK_CLIENT_ID"],
            client_secret=env["OUTLOOK_CLIENT_SECRET"],
            tenant_id=env["OUTLOOK_TENANT_ID"],
            redirect_uri=env.get("OUTLOOK_REDIRECT_URI", DEFAULT_REDIRECT_URI),
            scopes=scopes,
            token_cache_path=env.get("OUTLOOK_TOKEN_CACHE", DEFAULT_TOKEN_CACHE_PATH),
            refresh_margin_seconds=refresh_margin,
            http_timeout=http_timeout,
        )
        logger.info(f"✅ Azure config loaded from environment: client_id={config.client_id[:8]}...")
        return config

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant_id}"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.authority}/oauth2/v2.0/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.authority}/oauth2/v2.0/token"
