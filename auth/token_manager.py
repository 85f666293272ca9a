"""
Token Lifecycle Manager
토큰 상태 판단, refresh/대화형 인증 조정, 프로세스 내 단일 refresh 보장

상태:
    UNAUTHENTICATED → (complete_interactive_authorization) → AUTHENTICATED
    AUTHENTICATED → (만료 - margin) → NEEDS_REFRESH
    NEEDS_REFRESH → REFRESH_IN_FLIGHT → AUTHENTICATED | NEEDS_REFRESH | UNAUTHENTICATED
    any → (begin_interactive_authorization) → AUTHORIZATION_PENDING
    AUTHORIZATION_PENDING → (PENDING_AUTHORIZATION_TTL 경과, nonce 만료) → 토큰 상태에 따른 분류

동시에 여러 도구 호출이 만료된 토큰을 보더라도 refresh는 하나의 Task로만 실행되고,
모든 대기자는 같은 결과(토큰 또는 예외)를 받습니다.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List, Callable

from .azure_config import AzureConfig
from .auth_errors import (
    AcquisitionError,
    AuthenticationRequired,
    AuthorizationStateMismatch,
    InvalidGrant,
    PersistenceFailure,
    TemporaryAuthFailure,
)
from .time_utils import utc_now, is_expired, time_until_expiry
from .token_acquirer import TokenAcquirer
from .token_store import TokenStore
from .token_types import AuthorizationResult, CredentialRecord, TokenState

logger = logging.getLogger(__name__)

# 대기 중인 state nonce 최대 보관 수
MAX_PENDING_AUTHORIZATIONS = 16

# 발급된 인증 URL의 유효 시간 (초)
PENDING_AUTHORIZATION_TTL = 600


class TokenLifecycleManager:
    """토큰 생애주기 관리자 - 단일 identity"""

    def __init__(
        self,
        config: AzureConfig,
        store: Optional[TokenStore] = None,
        acquirer: Optional[TokenAcquirer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        생성 시 토큰 캐시를 로드하고 상태를 분류합니다.

        Args:
            config: AzureConfig 인스턴스
            store: TokenStore (None이면 config.token_cache_path 사용)
            acquirer: TokenAcquirer (None이면 새로 생성)
            clock: 현재 시각 함수 (테스트용 주입)
        """
        self.config = config
        self.store = store or TokenStore(config.token_cache_path)
        self.acquirer = acquirer or TokenAcquirer(config, clock=clock)
        self.margin_seconds = config.refresh_margin_seconds
        self._clock = clock

        self._record: CredentialRecord = self.store.load() or CredentialRecord()
        self._exchange_lock = asyncio.Lock()
        self._refresh_task: Optional["asyncio.Task[str]"] = None
        self._pending_states: Dict[str, datetime] = {}

        logger.info(f"Token manager initialized: state={self.state.value}")

    # ===== 상태 =====

    def _is_usable(self, record: CredentialRecord) -> bool:
        return bool(record.access_token) and not is_expired(
            record.expires_at, self.margin_seconds, now=self._clock()
        )

    def _classify(self, record: CredentialRecord) -> TokenState:
        if self._is_usable(record):
            return TokenState.AUTHENTICATED
        if record.refresh_token:
            return TokenState.NEEDS_REFRESH
        return TokenState.UNAUTHENTICATED

    def _prune_pending_states(self) -> None:
        """만료된 state nonce 제거"""
        cutoff = self._clock() - timedelta(seconds=PENDING_AUTHORIZATION_TTL)
        for state, issued_at in list(self._pending_states.items()):
            if issued_at <= cutoff:
                del self._pending_states[state]

    @property
    def state(self) -> TokenState:
        """현재 상태"""
        if self._refresh_task is not None:
            return TokenState.REFRESH_IN_FLIGHT
        self._prune_pending_states()
        if self._pending_states:
            return TokenState.AUTHORIZATION_PENDING
        return self._classify(self._record)

    def status(self) -> Dict[str, Any]:
        """토큰 상태 요약 (토큰 값은 포함하지 않음)"""
        record = self._record
        result: Dict[str, Any] = {
            "state": self.state.value,
            "has_access_token": bool(record.access_token),
            "has_refresh_token": bool(record.refresh_token),
            "authorization_pending": bool(self._pending_states),
        }
        if record.expires_at is not None:
            result["expires_at"] = record.expires_at.isoformat()
            result["expires_in"] = time_until_expiry(record.expires_at, now=self._clock())
        return result

    # ===== 토큰 조회 =====

    async def get_access_token(self) -> str:
        """
        유효한 액세스 토큰 반환 (필요시 refresh)

        Returns:
            액세스 토큰

        Raises:
            AuthenticationRequired: 자격 증명 없음 또는 refresh token 폐기
            TemporaryAuthFailure: refresh 중 네트워크/프로바이더 장애
        """
        record = self._record
        if self._is_usable(record):
            return record.access_token

        if self._refresh_task is None:
            if not record.refresh_token:
                raise AuthenticationRequired()
            logger.info("Access token expired or within margin; refreshing")
            self._refresh_task = asyncio.create_task(self._run_refresh())
            self._refresh_task.add_done_callback(_consume_task_exception)
        else:
            logger.debug("Refresh already in flight; waiting for its outcome")

        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self) -> str:
        """단일 refresh 시도 - 결과는 모든 대기자에게 공유됨"""
        try:
            async with self._exchange_lock:
                record = self._record
                # 락 대기 중 코드 교환이 완료되었을 수 있음
                if self._is_usable(record):
                    return record.access_token
                if not record.refresh_token:
                    raise AuthenticationRequired()

                try:
                    result = await self.acquirer.exchange_refresh_token(
                        record.refresh_token, self.config.scopes
                    )
                except InvalidGrant as e:
                    logger.warning("Refresh token rejected by provider; re-authentication required")
                    self._record = CredentialRecord()
                    raise AuthenticationRequired(
                        "Refresh token expired or revoked. Re-authentication required."
                    ) from e
                except AcquisitionError as e:
                    logger.warning(f"Token refresh failed temporarily: {e}")
                    raise TemporaryAuthFailure(f"Token refresh temporarily unavailable: {e}") from e

                return self._apply_result(result, previous_refresh_token=record.refresh_token)
        finally:
            self._refresh_task = None

    def _apply_result(self, result: AuthorizationResult, previous_refresh_token: Optional[str]) -> str:
        """결과를 레코드로 원자적으로 교체하고 저장 - exchange 락 안에서만 호출"""
        self._record = CredentialRecord.from_result(result, previous_refresh_token)
        if not self.store.save(self._record):
            # 메모리 상태가 우선. 재시작 시 재인증 필요
            logger.warning("Token cache could not be persisted; continuing with in-memory credentials")
        logger.info(f"✅ Access token valid until {self._record.expires_at.isoformat()}")
        return self._record.access_token

    # ===== 대화형 인증 =====

    def begin_interactive_authorization(
        self, scopes: Optional[List[str]] = None, redirect_uri: Optional[str] = None
    ) -> str:
        """
        대화형 인증 URL 생성 - 어느 상태에서든 호출 가능

        기존 유효 토큰은 무효화하지 않습니다.

        Returns:
            인증 URL (state nonce 포함)
        """
        state = secrets.token_urlsafe(32)
        self._pending_states[state] = self._clock()
        while len(self._pending_states) > MAX_PENDING_AUTHORIZATIONS:
            oldest = next(iter(self._pending_states))
            del self._pending_states[oldest]

        url = self.acquirer.build_authorization_url(
            scopes or self.config.scopes, redirect_uri or self.config.redirect_uri, state=state
        )
        logger.info(f"Auth flow started with state: {state[:10]}...")
        return url

    async def complete_interactive_authorization(
        self,
        code: str,
        scopes: Optional[List[str]] = None,
        redirect_uri: Optional[str] = None,
        state: Optional[str] = None,
    ) -> None:
        """
        인증 코드로 인증 완료

        state가 주어지면 발급된 nonce와 일치해야 합니다. state 없이 전달된 코드
        (사용자가 직접 붙여넣은 경우)는 그대로 교환을 시도합니다.

        Raises:
            AuthenticationRequired: state 불일치, 코드 거부, 기타 프로바이더 거부
            TemporaryAuthFailure: 네트워크 장애
        """
        self._prune_pending_states()
        if state is not None:
            if state not in self._pending_states:
                logger.warning("Authorization callback with unknown or expired state rejected")
                raise AuthorizationStateMismatch("Authorization state did not match a pending request.")
            del self._pending_states[state]
        elif not self._pending_states:
            logger.info("Completing unsolicited authorization code")

        async with self._exchange_lock:
            try:
                result = await self.acquirer.exchange_authorization_code(
                    code, scopes or self.config.scopes, redirect_uri or self.config.redirect_uri
                )
            except AcquisitionError as e:
                logger.error(f"❌ Failed to complete auth flow: {e}")
                self._record = CredentialRecord()
                self._pending_states.clear()
                if isinstance(e, InvalidGrant):
                    raise AuthenticationRequired(
                        "Authorization code was rejected. Start the authorization flow again."
                    ) from e
                raise TemporaryAuthFailure(f"Authorization could not be completed: {e}") from e

            self._pending_states.clear()
            self._apply_result(result, previous_refresh_token=None)
            logger.info("Authentication successful")

    # ===== 운영 =====

    async def clear_credentials(self) -> None:
        """
        메모리와 캐시 파일의 자격 증명 삭제 (운영자 조치)

        Raises:
            PersistenceFailure: 캐시 파일 삭제 실패
        """
        async with self._exchange_lock:
            self._record = CredentialRecord()
            self._pending_states.clear()
            if not self.store.clear():
                raise PersistenceFailure(f"Could not remove token cache {self.store.path}")
        logger.info("Credentials cleared")

    async def close(self) -> None:
        """리소스 정리"""
        await self.acquirer.close()


def _consume_task_exception(task: "asyncio.Task") -> None:
    # 모든 대기자가 취소된 경우에도 "exception was never retrieved" 경고가 남지 않도록
    if not task.cancelled():
        task.exception()
