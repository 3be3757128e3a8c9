"""
설정 로드: default.yaml + 환경 변수.

우선순위 (높은 것 먼저):
1. 환경 변수 (TEMPLATES_*), .env 파일 포함
2. default.yaml 의 templates: 섹션
3. 코드 기본값
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.domain.constants import BACKEND_LOCAL, BACKEND_MODES, STORE_FILENAME
from src.domain.errors import ErrorCodes, TemplateValidationError

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "default.yaml"


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드 (없으면 빈 dict)."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


@dataclass
class TemplatesSettings:
    """템플릿 backend 설정."""
    backend: str = BACKEND_LOCAL
    api_base: str = "http://127.0.0.1:8000/api"
    store_path: Path = PROJECT_ROOT / "data" / STORE_FILENAME
    http_timeout: float = 15.0
    # None = 무제한 (append-only). 지정하면 오래된 버전을 버림 → 이력 길이 단조 증가 보장 안 됨
    max_versions: int | None = None

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "TemplatesSettings":
        """
        설정 dict + 환경 변수로 생성.

        Args:
            config: load_config() 결과 (templates: 섹션 사용)
            env: 환경 변수 (None이면 .env 로드 후 os.environ)

        Raises:
            TemplateValidationError: 알 수 없는 backend 모드
        """
        if env is None:
            load_dotenv()
            env = os.environ

        section = dict((config or {}).get("templates") or {})
        defaults = cls()

        backend = str(env.get("TEMPLATES_BACKEND") or section.get("backend") or defaults.backend).lower()
        if backend not in BACKEND_MODES:
            raise TemplateValidationError(
                ErrorCodes.VALIDATION_FAILED,
                f"Unknown templates backend: {backend}",
                allowed=list(BACKEND_MODES),
            )

        store_path = env.get("TEMPLATES_STORE_PATH") or section.get("store_path")
        store = Path(store_path) if store_path else defaults.store_path
        if not store.is_absolute():
            store = PROJECT_ROOT / store

        max_versions = env.get("TEMPLATES_MAX_VERSIONS") or section.get("max_versions")

        return cls(
            backend=backend,
            api_base=str(env.get("TEMPLATES_API_BASE") or section.get("api_base") or defaults.api_base),
            store_path=store,
            http_timeout=float(env.get("TEMPLATES_HTTP_TIMEOUT") or section.get("http_timeout") or defaults.http_timeout),
            max_versions=int(max_versions) if max_versions else None,
        )
