"""
test_rest_backend.py - REST backend 테스트

검증:
- FastAPI 앱(ASGI transport) 대상 CRUD 왕복
- 상태 코드 → 에러 분류 매핑 (404/400/5xx/네트워크)
- update_meta 404 → None
"""

import httpx
import pytest

from src.domain.errors import (
    ErrorCodes,
    TemplateNotFoundError,
    TemplateTransportError,
    TemplateValidationError,
)
from src.domain.schemas import SaveTemplateInput, TemplateStatus, UpdateTemplateMetaInput
from src.templates.rest_backend import RestTemplatesBackend


def backend_with_handler(handler) -> RestTemplatesBackend:
    """MockTransport 응답을 쓰는 backend."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RestTemplatesBackend(api_base="http://api.test/api/", client=client)


# =============================================================================
# ASGI (실제 라우트) 대상
# =============================================================================

class TestAgainstApp:
    """FastAPI 앱을 통한 왕복."""

    @pytest.mark.asyncio
    async def test_create_get_list(self, rest_backend, memory_backend):
        created = await rest_backend.save(
            SaveTemplateInput(name="Welcome", subject="Hi", design={"body": {}}, tags=["a"])
        )

        fetched = await rest_backend.get(created.id)
        metas = await rest_backend.list_templates()

        assert fetched.design == {"body": {}}
        assert len(fetched.versions) == 1
        assert [m.id for m in metas] == [created.id]
        # 서버 측 저장소에 실제로 저장됨
        assert (await memory_backend.get(created.id)).name == "Welcome"

    @pytest.mark.asyncio
    async def test_update_uses_put_and_appends_version(self, rest_backend):
        created = await rest_backend.save(SaveTemplateInput(name="A", subject="S", design={"v": 1}))

        updated = await rest_backend.save(
            SaveTemplateInput(id=created.id, name="A", subject="S", design={"v": 2})
        )

        assert updated.id == created.id
        assert len(updated.versions) == 2

    @pytest.mark.asyncio
    async def test_update_meta(self, rest_backend):
        created = await rest_backend.save(SaveTemplateInput(name="A", subject="S", design={"v": 1}))

        updated = await rest_backend.update_meta(
            UpdateTemplateMetaInput(id=created.id, tags=["x"], status=TemplateStatus.ARCHIVED)
        )

        assert updated.tags == ["x"]
        assert updated.status == TemplateStatus.ARCHIVED
        assert updated.design == {"v": 1}

    @pytest.mark.asyncio
    async def test_update_meta_missing_returns_none(self, rest_backend):
        assert await rest_backend.update_meta(UpdateTemplateMetaInput(id="missing", name="X")) is None

    @pytest.mark.asyncio
    async def test_clone_remove_send_test(self, rest_backend, memory_backend):
        created = await rest_backend.save(SaveTemplateInput(name="A", subject="S"))

        copied = await rest_backend.clone(created.id)
        assert copied.name == "A Copy"

        assert await rest_backend.send_test(created.id, "qa@example.com") == {"ok": True}
        assert memory_backend.sent_tests == [(created.id, "qa@example.com")]

        await rest_backend.remove(created.id)
        assert [m.id for m in await rest_backend.list_templates()] == [copied.id]

    @pytest.mark.asyncio
    async def test_error_mapping(self, rest_backend):
        """404 → NotFound, 400 → Validation (서버 에러 코드 유지)."""
        with pytest.raises(TemplateNotFoundError) as exc_info:
            await rest_backend.get("missing-id")
        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND

        with pytest.raises(TemplateNotFoundError):
            await rest_backend.remove("missing-id")

        with pytest.raises(TemplateNotFoundError):
            await rest_backend.clone("missing-id")

        with pytest.raises(TemplateValidationError) as exc_info:
            await rest_backend.save(SaveTemplateInput(name="", subject="S"))
        assert exc_info.value.code == ErrorCodes.MISSING_REQUIRED_FIELD

        created = await rest_backend.save(SaveTemplateInput(name="A", subject="S"))
        with pytest.raises(TemplateValidationError) as exc_info:
            await rest_backend.send_test(created.id, "bad")
        assert exc_info.value.code == ErrorCodes.INVALID_EMAIL


# =============================================================================
# MockTransport 대상
# =============================================================================

class TestTransportFailures:
    """서버 장애 / 네트워크 에러."""

    @pytest.mark.asyncio
    async def test_server_error_is_transport(self):
        backend = backend_with_handler(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(TemplateTransportError) as exc_info:
            await backend.list_templates()

        assert exc_info.value.context["status_code"] == 500

    @pytest.mark.asyncio
    async def test_network_error_is_transport(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = backend_with_handler(handler)

        with pytest.raises(TemplateTransportError) as exc_info:
            await backend.get("abc")

        assert exc_info.value.code == ErrorCodes.TRANSPORT_ERROR

    @pytest.mark.asyncio
    async def test_update_meta_server_error_raises(self):
        """update_meta: 404만 None, 나머지 실패는 에러."""
        backend = backend_with_handler(lambda request: httpx.Response(503, json={"detail": "down"}))

        with pytest.raises(TemplateTransportError):
            await backend.update_meta(UpdateTemplateMetaInput(id="abc", name="X"))

    @pytest.mark.asyncio
    async def test_non_json_success_body_is_transport(self):
        """200인데 JSON이 아님 → Transport."""
        backend = backend_with_handler(lambda request: httpx.Response(200, text="<html>proxy</html>"))

        with pytest.raises(TemplateTransportError) as exc_info:
            await backend.get("abc")

        assert exc_info.value.code == ErrorCodes.TRANSPORT_ERROR
        assert exc_info.value.context["status_code"] == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"unexpected": 1},  # id 없음
            [1, 2],
            None,
        ],
    )
    async def test_wrong_shape_success_body_is_transport(self, body):
        """200 + 형태가 다른 JSON → Transport (KeyError/TypeError 노출 안 함)."""
        backend = backend_with_handler(lambda request: httpx.Response(200, json=body))

        with pytest.raises(TemplateTransportError):
            await backend.clone("abc")

    @pytest.mark.asyncio
    async def test_list_wrong_shape_is_transport(self):
        backend = backend_with_handler(lambda request: httpx.Response(200, json={"templates": []}))

        with pytest.raises(TemplateTransportError):
            await backend.list_templates()

    @pytest.mark.asyncio
    async def test_request_urls_and_methods(self):
        """save: id 없음 → POST, id 있음 → PUT."""
        seen: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json={"id": "abc", "name": "A", "subject": "S"})

        backend = backend_with_handler(handler)
        await backend.save(SaveTemplateInput(name="A", subject="S"))
        await backend.save(SaveTemplateInput(id="abc", name="A", subject="S"))

        assert seen == [("POST", "/api/templates"), ("PUT", "/api/templates/abc")]


class TestClientOwnership:
    """aclose: 주입된 client는 닫지 않음."""

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        backend = RestTemplatesBackend(client=client)

        async with backend:
            await backend.list_templates()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        backend = RestTemplatesBackend()

        await backend.aclose()

        assert backend._client.is_closed is True
