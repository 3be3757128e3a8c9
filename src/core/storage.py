"""
파일 저장소 유틸: templates.json

- store_lock: <path>.lock 파일 락, 시간 초과 시 STORE_LOCK_TIMEOUT
- load_json: 깨진 파일은 빈 저장소로 취급하지 않고 STORE_CORRUPT
- atomic_write_json: 읽는 쪽은 항상 이전 또는 새 파일 전체만 봄
"""

import json
import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from src.domain.constants import STORE_LOCK_TIMEOUT_SECONDS
from src.domain.errors import ErrorCodes, TemplateTransportError

logger = logging.getLogger(__name__)


# =============================================================================
# Lock Management
# =============================================================================

@contextmanager
def store_lock(
    path: Path,
    timeout: float = STORE_LOCK_TIMEOUT_SECONDS,
) -> Generator[None, None, None]:
    """
    저장 파일 단위 락 획득.

    락 파일: <path>.lock

    Args:
        path: 보호할 저장 파일 경로
        timeout: 락 대기 시간(초)

    Raises:
        TemplateTransportError: STORE_LOCK_TIMEOUT
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(path) + ".lock", timeout=timeout)

    try:
        lock.acquire()
    except Timeout:
        raise TemplateTransportError(
            ErrorCodes.STORE_LOCK_TIMEOUT,
            f"Failed to acquire lock for '{path.name}'",
            path=str(path),
            timeout=timeout,
        ) from None

    try:
        yield
    finally:
        lock.release()


# =============================================================================
# Read / Atomic Write
# =============================================================================

def load_json(path: Path, default: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    JSON 파일 로드.

    Args:
        path: 파일 경로
        default: 파일이 없을 때 반환할 값

    Returns:
        파싱된 dict

    Raises:
        TemplateTransportError: STORE_CORRUPT (파싱 실패 / 최상위가 dict 아님)
    """
    if not path.exists():
        return dict(default or {})

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TemplateTransportError(
            ErrorCodes.STORE_CORRUPT,
            f"Template store '{path.name}' is not valid JSON",
            path=str(path),
            cause=str(e),
        ) from e

    if not isinstance(data, dict):
        raise TemplateTransportError(
            ErrorCodes.STORE_CORRUPT,
            f"Template store '{path.name}' must contain a JSON object",
            path=str(path),
        )
    return data


def _sync_parent_dir(path: Path) -> None:
    """replace 결과(디렉토리 엔트리)를 디스크에 반영. 디렉토리를 열 수 없는 플랫폼은 건너뜀."""
    flags = os.O_RDONLY | getattr(os, "O_DIRECTORY", 0)
    try:
        fd = os.open(path.parent, flags)
    except OSError as e:
        logger.warning(f"Skipping directory sync for {path.parent}: {e}")
        return

    try:
        os.fsync(fd)
    except OSError as e:
        logger.warning(f"Directory sync failed for {path.parent}: {e}")
    finally:
        os.close(fd)


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """
    같은 디렉토리의 임시 파일(.<name>.*.tmp)에 쓰고 os.replace로 교체.

    직렬화/쓰기 중 실패하면 임시 파일만 지우고 예외를 다시 던짐.
    기존 파일은 교체 전까지 그대로 유지.

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    _sync_parent_dir(path)
