"""
Pytest fixtures for the template manager tests.

구성:
- 저장소 fixture (memory / file)
- 호출 순서 기록용 backend, 실패 주입용 backend
- REST 테스트용 FastAPI 앱 + ASGI transport 클라이언트
"""

from pathlib import Path

import httpx
import pytest

from src.app.main import create_app
from src.core.config import TemplatesSettings
from src.domain.errors import ErrorCodes, TemplateTransportError
from src.domain.schemas import (
    SaveTemplateInput,
    TemplateMeta,
    TemplateRecord,
    UpdateTemplateMetaInput,
)
from src.templates.local_backend import FileTemplatesBackend, InMemoryTemplatesBackend
from src.templates.rest_backend import RestTemplatesBackend

# =============================================================================
# Test Doubles
# =============================================================================

class RecordingBackend(InMemoryTemplatesBackend):
    """
    호출 순서를 calls에 기록하는 in-memory backend.

    fail_on: 이 이름의 연산이 호출되면 TemplateTransportError
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise TemplateTransportError(
                ErrorCodes.TRANSPORT_ERROR,
                f"{name} unavailable",
                operation=name,
            )

    async def list_templates(self) -> list[TemplateMeta]:
        self._check("list")
        return await super().list_templates()

    async def get(self, template_id: str) -> TemplateRecord:
        self._check("get")
        return await super().get(template_id)

    async def save(self, data: SaveTemplateInput) -> TemplateRecord:
        self._check("save")
        return await super().save(data)

    async def update_meta(self, data: UpdateTemplateMetaInput) -> TemplateRecord | None:
        self._check("update_meta")
        return await super().update_meta(data)

    async def remove(self, template_id: str) -> None:
        self._check("remove")
        await super().remove(template_id)

    async def clone(self, template_id: str) -> TemplateRecord:
        self._check("clone")
        return await super().clone(template_id)

    async def send_test(self, template_id: str, email: str) -> dict[str, bool]:
        self._check("send_test")
        return await super().send_test(template_id, email)


# =============================================================================
# Backend Fixtures
# =============================================================================

@pytest.fixture
def memory_backend() -> InMemoryTemplatesBackend:
    """빈 in-memory 저장소."""
    return InMemoryTemplatesBackend()


@pytest.fixture
def recording_backend() -> RecordingBackend:
    """호출 기록 저장소."""
    return RecordingBackend()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """테스트용 templates.json 경로."""
    return tmp_path / "data" / "templates.json"


@pytest.fixture
def file_backend(store_path: Path) -> FileTemplatesBackend:
    """tmp 디렉터리의 파일 저장소."""
    return FileTemplatesBackend(store_path)


# =============================================================================
# Input Fixtures
# =============================================================================

@pytest.fixture
def welcome_input() -> SaveTemplateInput:
    """생성용 기본 입력."""
    return SaveTemplateInput(name="Welcome", subject="Hi", design={"body": {}})


# =============================================================================
# REST Fixtures
# =============================================================================

@pytest.fixture
def api_app(memory_backend: InMemoryTemplatesBackend):
    """
    in-memory 저장소를 쓰는 FastAPI 앱.

    ASGITransport는 lifespan을 실행하지 않으므로 state를 직접 채움.
    """
    app = create_app(TemplatesSettings(backend="memory"))
    app.state.templates_backend = memory_backend
    return app


@pytest.fixture
def rest_backend(api_app) -> RestTemplatesBackend:
    """ASGI transport로 api_app을 호출하는 REST backend."""
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app))
    return RestTemplatesBackend(api_base="http://testserver/api", client=client)
