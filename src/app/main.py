"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.core.config import TemplatesSettings, load_config
from src.domain.constants import BACKEND_MEMORY
from src.templates.backend import TemplatesBackend
from src.templates.local_backend import FileTemplatesBackend, InMemoryTemplatesBackend

# Routes
from src.app.routes import templates

logger = logging.getLogger(__name__)


def build_store(settings: TemplatesSettings) -> TemplatesBackend:
    """
    서버 측 저장소 생성.

    서버는 항상 로컬 저장소를 사용 (rest 모드여도 자기 자신을 호출하지 않음).
    """
    if settings.backend == BACKEND_MEMORY:
        return InMemoryTemplatesBackend(max_versions=settings.max_versions)
    return FileTemplatesBackend(settings.store_path, max_versions=settings.max_versions)


def create_app(settings: TemplatesSettings | None = None) -> FastAPI:
    """
    앱 생성.

    Args:
        settings: None이면 시작 시 default.yaml + 환경 변수에서 로드
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        애플리케이션 생명주기 관리.

        시작 시: 설정 로드, 저장소 생성
        종료 시: 저장소 정리
        """
        # Startup
        app.state.config = load_config()
        app.state.settings = settings or TemplatesSettings.from_config(app.state.config)
        app.state.templates_backend = build_store(app.state.settings)
        logger.info(f"Template store ready: backend={app.state.settings.backend}")

        yield

        # Shutdown
        await app.state.templates_backend.aclose()

    app = FastAPI(
        title="Email Template Manager",
        description="이메일 템플릿 저장소 API (목록/저장/메타 수정/복제/테스트 발송)",
        version="0.1.0",
        lifespan=lifespan,
    )

    # API 라우트
    app.include_router(
        templates.api_router, prefix="/api/templates", tags=["Templates API"]
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "message": "Email Template Manager",
            "endpoints": {"templates": "/api/templates"},
        }

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
