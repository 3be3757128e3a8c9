"""
Templates Routes: 템플릿 저장소 REST API.

RestTemplatesBackend가 호출하는 계약:
- GET    /api/templates                → 목록 (meta)
- POST   /api/templates                → 생성
- GET    /api/templates/{id}           → 상세
- PUT    /api/templates/{id}           → 수정 (새 버전)
- PATCH  /api/templates/{id}           → 메타 수정
- DELETE /api/templates/{id}           → 삭제
- POST   /api/templates/{id}/clone     → 복제
- POST   /api/templates/{id}/send-test → 테스트 발송

에러 응답: {"detail": {"code", "message"}}
- Validation → 400, NotFound → 404, Transport → 503
"""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from src.domain.errors import (
    ErrorCodes,
    TemplateError,
    TemplateNotFoundError,
    TemplateValidationError,
)
from src.domain.schemas import SaveTemplateInput, UpdateTemplateMetaInput
from src.templates.backend import TemplatesBackend

api_router = APIRouter()  # API endpoints


def _backend(request: Request) -> TemplatesBackend:
    """lifespan에서 만든 저장소."""
    backend: TemplatesBackend = request.app.state.templates_backend
    return backend


def _to_http_error(e: TemplateError) -> HTTPException:
    if isinstance(e, TemplateNotFoundError):
        status_code = 404
    elif isinstance(e, TemplateValidationError):
        status_code = 400
    else:
        status_code = 503
    return HTTPException(status_code=status_code, detail={"code": e.code, "message": e.message})


# =============================================================================
# API Routes
# =============================================================================

@api_router.get("")
async def list_templates(request: Request) -> list[dict[str, Any]]:
    """템플릿 목록 (updated_at 최신순)."""
    try:
        templates = await _backend(request).list_templates()
    except TemplateError as e:
        raise _to_http_error(e) from e
    return [meta.to_dict() for meta in templates]


@api_router.post("", status_code=201)
async def create_template(
    request: Request,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """템플릿 생성 (payload의 id는 무시)."""
    try:
        data = SaveTemplateInput.from_dict({**payload, "id": None})
        record = await _backend(request).save(data)
    except TemplateError as e:
        raise _to_http_error(e) from e
    return record.to_dict()


@api_router.get("/{template_id}")
async def get_template(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿 상세 조회."""
    try:
        record = await _backend(request).get(template_id)
    except TemplateError as e:
        raise _to_http_error(e) from e
    return record.to_dict()


@api_router.put("/{template_id}")
async def save_template(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """템플릿 저장 (새 버전)."""
    try:
        data = SaveTemplateInput.from_dict({**payload, "id": template_id})
        record = await _backend(request).save(data)
    except TemplateError as e:
        raise _to_http_error(e) from e
    return record.to_dict()


@api_router.patch("/{template_id}")
async def update_template_meta(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """템플릿 메타 수정 (design/versions 무시)."""
    try:
        data = UpdateTemplateMetaInput.from_dict({**payload, "id": template_id})
    except TemplateError as e:
        raise _to_http_error(e) from e
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCodes.INVALID_STATUS, "message": f"Invalid status: {payload.get('status')}"},
        ) from None

    try:
        record = await _backend(request).update_meta(data)
    except TemplateError as e:
        raise _to_http_error(e) from e

    if record is None:
        raise HTTPException(
            status_code=404,
            detail={"code": ErrorCodes.TEMPLATE_NOT_FOUND, "message": f"Template '{template_id}' not found"},
        )
    return record.to_dict()


@api_router.delete("/{template_id}")
async def delete_template(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿 삭제."""
    try:
        await _backend(request).remove(template_id)
    except TemplateError as e:
        raise _to_http_error(e) from e
    return {"success": True, "template_id": template_id}


@api_router.post("/{template_id}/clone", status_code=201)
async def clone_template(request: Request, template_id: str) -> dict[str, Any]:
    """템플릿 복제."""
    try:
        record = await _backend(request).clone(template_id)
    except TemplateError as e:
        raise _to_http_error(e) from e
    return record.to_dict()


@api_router.post("/{template_id}/send-test")
async def send_test_email(
    request: Request,
    template_id: str,
    payload: dict[str, Any] = Body(...),
) -> dict[str, bool]:
    """테스트 메일 발송."""
    try:
        return await _backend(request).send_test(template_id, str(payload.get("email") or ""))
    except TemplateError as e:
        raise _to_http_error(e) from e
