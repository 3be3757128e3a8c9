"""
REST 템플릿 저장소 클라이언트 (rest 모드).

엔드포인트 ({api_base}/templates):
- GET    /templates                 → 목록
- GET    /templates/{id}            → 상세
- POST   /templates                 → 생성
- PUT    /templates/{id}            → 수정 (새 버전)
- PATCH  /templates/{id}            → 메타 수정
- DELETE /templates/{id}            → 삭제
- POST   /templates/{id}/clone      → 복제
- POST   /templates/{id}/send-test  → 테스트 발송

응답 매핑:
- 404 → TemplateNotFoundError (update_meta는 None)
- 400/422 → TemplateValidationError
- 그 외 non-2xx, 네트워크 에러, 2xx인데 본문이 깨진 경우 → TemplateTransportError
- 재시도 없음 (transport 계층 책임)
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from src.domain.errors import (
    ErrorCodes,
    TemplateError,
    TemplateNotFoundError,
    TemplateTransportError,
    TemplateValidationError,
)
from src.domain.schemas import (
    SaveTemplateInput,
    TemplateMeta,
    TemplateRecord,
    UpdateTemplateMetaInput,
)
from src.templates.backend import TemplatesBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_detail(response: httpx.Response) -> tuple[str | None, str]:
    """응답 본문에서 {"detail": {"code", "message"}} 추출."""
    try:
        body = response.json()
    except ValueError:
        return None, response.text or response.reason_phrase

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return detail.get("code"), str(detail.get("message", ""))
    if detail is not None:
        return None, str(detail)
    return None, response.reason_phrase


class RestTemplatesBackend(TemplatesBackend):
    """
    httpx 기반 REST backend.

    client를 주입하면 (예: ASGI transport) 그대로 사용하고 닫지 않음.
    주입하지 않으면 내부 AsyncClient를 만들고 aclose()에서 닫음.
    """

    def __init__(
        self,
        api_base: str = "http://127.0.0.1:8000/api",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    # =========================================================================
    # Public API
    # =========================================================================

    async def list_templates(self) -> list[TemplateMeta]:
        response = await self._request("GET", "/templates")
        self._raise_for_status(response)
        return self._decode(response, lambda body: [TemplateMeta.from_dict(item) for item in body])

    async def get(self, template_id: str) -> TemplateRecord:
        response = await self._request("GET", f"/templates/{template_id}")
        self._raise_for_status(response, template_id=template_id)
        return self._decode(response, TemplateRecord.from_dict)

    async def save(self, data: SaveTemplateInput) -> TemplateRecord:
        if data.id:
            response = await self._request("PUT", f"/templates/{data.id}", json=data.to_dict())
        else:
            response = await self._request("POST", "/templates", json=data.to_dict())
        self._raise_for_status(response, template_id=data.id)
        return self._decode(response, TemplateRecord.from_dict)

    async def update_meta(self, data: UpdateTemplateMetaInput) -> TemplateRecord | None:
        response = await self._request(
            "PATCH",
            f"/templates/{data.id}",
            json={"id": data.id, **data.to_patch()},
        )
        if response.status_code == 404:
            return None
        self._raise_for_status(response, template_id=data.id)
        return self._decode(response, TemplateRecord.from_dict)

    async def remove(self, template_id: str) -> None:
        response = await self._request("DELETE", f"/templates/{template_id}")
        self._raise_for_status(response, template_id=template_id)

    async def clone(self, template_id: str) -> TemplateRecord:
        response = await self._request("POST", f"/templates/{template_id}/clone")
        self._raise_for_status(response, template_id=template_id)
        return self._decode(response, TemplateRecord.from_dict)

    async def send_test(self, template_id: str, email: str) -> dict[str, bool]:
        response = await self._request(
            "POST",
            f"/templates/{template_id}/send-test",
            json={"email": email},
        )
        self._raise_for_status(response, template_id=template_id)
        return {"ok": True}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.api_base}{path}"
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Template API request failed: {method} {url}: {e}")
            raise TemplateTransportError(
                ErrorCodes.TRANSPORT_ERROR,
                f"{method} {path} failed: {e}",
                method=method,
                url=url,
            ) from e

    def _decode(self, response: httpx.Response, parse: Callable[[Any], T]) -> T:
        """성공 응답 본문 파싱 (JSON 아님 / 형태 불일치 → TemplateTransportError)."""
        try:
            return parse(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            request = response.request
            logger.error(f"Unexpected template API response: {request.method} {request.url}: {e!r}")
            raise TemplateTransportError(
                ErrorCodes.TRANSPORT_ERROR,
                f"Malformed response body for {request.method} {request.url.path}",
                status_code=response.status_code,
                cause=repr(e),
            ) from e

    def _raise_for_status(
        self,
        response: httpx.Response,
        template_id: str | None = None,
    ) -> None:
        if response.is_success:
            return

        code, message = _error_detail(response)
        status = response.status_code
        context = {"status_code": status, "template_id": template_id}

        error: TemplateError
        if status == 404:
            error = TemplateNotFoundError(
                code or ErrorCodes.TEMPLATE_NOT_FOUND,
                message or f"Template '{template_id}' not found",
                **context,
            )
        elif status in (400, 422):
            error = TemplateValidationError(
                code or ErrorCodes.VALIDATION_FAILED,
                message or "Request rejected by template API",
                **context,
            )
        else:
            logger.error(f"Template API error {status}: {message}")
            error = TemplateTransportError(
                code or ErrorCodes.TRANSPORT_ERROR,
                message or f"Template API responded with {status}",
                **context,
            )
        raise error
