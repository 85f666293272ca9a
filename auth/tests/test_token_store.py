"""
token_store.py / token_types.py 단위 테스트

테스트 대상:
    - TokenStore.load / save / clear
    - CredentialRecord.from_dict / to_dict / from_result
"""

import json
import os
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import patch

from auth.token_store import TokenStore
from auth.token_types import CredentialRecord, AuthorizationResult


EXPIRES = datetime(2025, 1, 9, 11, 30, 0, tzinfo=timezone.utc)


class TestCredentialRecord:
    """CredentialRecord 변환 테스트"""

    def test_to_dict_omits_absent_fields(self):
        """없는 필드는 생략"""
        record = CredentialRecord(refresh_token="R1")
        assert record.to_dict() == {"refreshToken": "R1"}

    def test_from_dict_accepts_js_date_format(self):
        """JavaScript 직렬화 형식의 만료 시각 파싱"""
        record = CredentialRecord.from_dict({
            "accessToken": "A1",
            "refreshToken": "R1",
            "expiresOn": "2025-01-09T11:30:00.000Z",
        })
        assert record.access_token == "A1"
        assert record.refresh_token == "R1"
        assert record.expires_at == EXPIRES

    def test_from_dict_drops_access_token_without_expiry(self):
        """만료 시각 없는 access token은 버림"""
        record = CredentialRecord.from_dict({"accessToken": "A1", "refreshToken": "R1"})
        assert record.access_token is None
        assert record.refresh_token == "R1"

    def test_from_dict_rejects_wrong_types(self):
        """필드 타입 오류 → ValueError"""
        with pytest.raises(ValueError):
            CredentialRecord.from_dict({"accessToken": 123, "expiresOn": "2025-01-09T11:30:00Z"})
        with pytest.raises(ValueError):
            CredentialRecord.from_dict(["not", "an", "object"])

    def test_access_token_requires_expiry(self):
        """access token만 있고 만료 시각 없음 → ValueError"""
        with pytest.raises(ValueError):
            CredentialRecord(access_token="A1")

    def test_from_result_carries_forward_refresh_token(self):
        """응답에 refresh token이 없으면 이전 값 유지"""
        result = AuthorizationResult(access_token="A2", expires_at=EXPIRES)
        record = CredentialRecord.from_result(result, previous_refresh_token="R1")
        assert record.access_token == "A2"
        assert record.refresh_token == "R1"

    def test_from_result_rotates_refresh_token(self):
        """새 refresh token이 오면 교체"""
        result = AuthorizationResult(access_token="A2", expires_at=EXPIRES, refresh_token="R2")
        record = CredentialRecord.from_result(result, previous_refresh_token="R1")
        assert record.refresh_token == "R2"

    def test_repr_hides_tokens(self):
        """repr에 토큰 값이 나타나지 않음"""
        record = CredentialRecord(access_token="secret-access", refresh_token="secret-refresh",
                                  expires_at=EXPIRES)
        assert "secret-access" not in repr(record)
        assert "secret-refresh" not in repr(record)


class TestTokenStore:
    """TokenStore 파일 저장소 테스트"""

    def test_load_missing_file(self, tmp_path):
        """파일 없음 → None"""
        store = TokenStore(tmp_path / "missing.json")
        assert store.load() is None

    @pytest.mark.parametrize("record", [
        CredentialRecord(),
        CredentialRecord(refresh_token="R1"),
        CredentialRecord(refresh_token="R1", expires_at=EXPIRES),
        CredentialRecord(expires_at=EXPIRES),
        CredentialRecord(access_token="A1", expires_at=EXPIRES),
        CredentialRecord(access_token="A1", refresh_token="R1", expires_at=EXPIRES),
    ], ids=["empty", "refresh", "refresh-expiry", "expiry", "access-expiry", "all"])
    def test_save_then_load(self, tmp_path, record):
        """저장한 레코드를 그대로 로드 (빈 레코드 포함)"""
        store = TokenStore(tmp_path / "cache.json")

        assert store.save(record) is True
        loaded = store.load()

        assert loaded == record

    def test_saved_file_format(self, tmp_path):
        """캐시 파일 JSON 키 형식"""
        path = tmp_path / "cache.json"
        TokenStore(path).save(CredentialRecord(access_token="A1", refresh_token="R1", expires_at=EXPIRES))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"accessToken", "refreshToken", "expiresOn"}
        assert data["accessToken"] == "A1"
        assert datetime.fromisoformat(data["expiresOn"]) == EXPIRES

    def test_save_creates_parent_directory(self, tmp_path):
        """상위 디렉토리 자동 생성"""
        path = tmp_path / "nested" / "dir" / "cache.json"
        assert TokenStore(path).save(CredentialRecord(refresh_token="R1")) is True
        assert path.exists()

    def test_save_replaces_whole_record(self, tmp_path):
        """이전 내용 전체 교체"""
        store = TokenStore(tmp_path / "cache.json")
        store.save(CredentialRecord(access_token="A1", refresh_token="R1", expires_at=EXPIRES))
        store.save(CredentialRecord(refresh_token="R2"))

        loaded = store.load()
        assert loaded.access_token is None
        assert loaded.refresh_token == "R2"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX 권한 전용")
    def test_saved_file_permissions(self, tmp_path):
        """소유자만 읽기/쓰기"""
        path = tmp_path / "cache.json"
        TokenStore(path).save(CredentialRecord(refresh_token="R1"))
        assert (path.stat().st_mode & 0o777) == 0o600

    def test_corrupted_file_loads_as_none(self, tmp_path):
        """손상된 JSON → None"""
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        assert TokenStore(path).load() is None

    def test_invalid_expiry_loads_as_none(self, tmp_path):
        """파싱 불가한 만료 시각 → None"""
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({"accessToken": "A1", "expiresOn": "yesterday"}), encoding="utf-8")
        assert TokenStore(path).load() is None

    def test_empty_object_loads_as_empty_record(self, tmp_path):
        """빈 객체 → 빈 레코드 (파일 없음과 구분)"""
        path = tmp_path / "cache.json"
        path.write_text("{}", encoding="utf-8")
        assert TokenStore(path).load() == CredentialRecord()

    def test_failed_replace_keeps_previous_file(self, tmp_path):
        """교체 실패 시 기존 파일 유지, 임시 파일 정리"""
        path = tmp_path / "cache.json"
        store = TokenStore(path)
        store.save(CredentialRecord(refresh_token="R1"))

        with patch("auth.token_store.os.replace", side_effect=OSError(28, "No space left on device")):
            assert store.save(CredentialRecord(refresh_token="R2")) is False

        assert store.load().refresh_token == "R1"
        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    def test_clear(self, tmp_path):
        """캐시 삭제 (없어도 성공)"""
        path = tmp_path / "cache.json"
        store = TokenStore(path)
        store.save(CredentialRecord(refresh_token="R1"))

        assert store.clear() is True
        assert not path.exists()
        assert store.clear() is True
