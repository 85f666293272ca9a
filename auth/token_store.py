"""
Token Store Module
단일 자격 증명 레코드를 JSON 파일로 영속화

- load(): 파일이 없거나 파싱 불가하면 None (예외를 던지지 않음)
- save(): 임시 파일에 기록 후 os.replace로 교체 (반쯤 쓰인 파일이 남지 않음)

여러 프로세스가 같은 캐시 파일을 공유하는 경우의 파일 잠금은 지원하지 않습니다.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .token_types import CredentialRecord

logger = logging.getLogger(__name__)


class TokenStore:
    """토큰 캐시 파일 저장소"""

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: 토큰 캐시 파일 경로
        """
        self.path = Path(path)

    def load(self) -> Optional[CredentialRecord]:
        """
        마지막으로 저장된 레코드 로드

        Returns:
            CredentialRecord (빈 레코드 포함) 또는 None (파일 없음 / 읽기 실패 / 파싱 실패)
        """
        if not self.path.exists():
            logger.info(f"No token cache at {self.path}")
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            record = CredentialRecord.from_dict(data)
        except OSError as e:
            logger.error(f"❌ Failed to read token cache {self.path}: {e.strerror or type(e).__name__}")
            return None
        except ValueError as e:
            # json.JSONDecodeError도 ValueError. 메시지에 파일 내용이 포함될 수 있어 타입만 기록
            logger.error(f"❌ Token cache {self.path} is not valid ({type(e).__name__}); treating as empty")
            return None

        logger.info(f"Token cache loaded from {self.path}")
        return record

    def save(self, record: CredentialRecord) -> bool:
        """
        레코드 전체를 저장 (이전 내용 교체)

        Args:
            record: 저장할 레코드

        Returns:
            성공 여부
        """
        directory = self.path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=str(directory))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            try:
                os.chmod(tmp_path, 0o600)
            except OSError:
                logger.debug("Could not restrict token cache permissions")
            os.replace(tmp_path, self.path)
            tmp_path = None
            logger.info(f"✅ Token cache saved to {self.path}")
            return True
        except OSError as e:
            logger.error(f"❌ Failed to save token cache {self.path}: {e.strerror or type(e).__name__}")
            return False
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def clear(self) -> bool:
        """
        토큰 캐시 파일 삭제 (운영자 조치용)

        Returns:
            성공 여부 (파일이 원래 없으면 True)
        """
        try:
            self.path.unlink()
            logger.info(f"Token cache {self.path} removed")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"❌ Failed to remove token cache {self.path}: {e.strerror or type(e).__name__}")
            return False
        return True
