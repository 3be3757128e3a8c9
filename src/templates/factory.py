"""
Backend 선택: 설정의 backend 모드 → TemplatesBackend 인스턴스.

모듈 전역 싱글턴을 두지 않음: 호출자가 인스턴스를 만들어 Manager에 주입.
"""

import logging

from src.core.config import TemplatesSettings, load_config
from src.domain.constants import BACKEND_MEMORY, BACKEND_REST
from src.templates.backend import TemplatesBackend
from src.templates.local_backend import FileTemplatesBackend, InMemoryTemplatesBackend
from src.templates.rest_backend import RestTemplatesBackend

logger = logging.getLogger(__name__)


def get_templates_backend(settings: TemplatesSettings | None = None) -> TemplatesBackend:
    """
    설정에 맞는 backend 생성.

    Args:
        settings: None이면 default.yaml + 환경 변수에서 로드

    Returns:
        local → FileTemplatesBackend, memory → InMemoryTemplatesBackend,
        rest → RestTemplatesBackend
    """
    if settings is None:
        settings = TemplatesSettings.from_config(load_config())

    if settings.backend == BACKEND_REST:
        logger.info(f"Using REST templates backend: {settings.api_base}")
        return RestTemplatesBackend(api_base=settings.api_base, timeout=settings.http_timeout)

    if settings.backend == BACKEND_MEMORY:
        logger.info("Using in-memory templates backend")
        return InMemoryTemplatesBackend(max_versions=settings.max_versions)

    logger.info(f"Using file templates backend: {settings.store_path}")
    return FileTemplatesBackend(settings.store_path, max_versions=settings.max_versions)
