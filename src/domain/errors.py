"""
Error definitions for the template store.

분류 (taxonomy):
- Validation: 입력 형식 오류 (필수 필드 누락, 잘못된 이메일)
- NotFound: 참조한 id가 존재하지 않음
- Transport: 네트워크/백엔드 불가, non-success 응답

규칙:
- 조용한 실패 금지 → 호출자에게 그대로 전파
- Manager는 새로운 종류의 에러를 만들지 않음 (pass-through)
"""

from typing import Any


class TemplateError(Exception):
    """
    템플릿 관련 에러의 기반 클래스.

    Usage:
        raise TemplateNotFoundError(
            ErrorCodes.TEMPLATE_NOT_FOUND,
            f"Template '{template_id}' not found",
            template_id=template_id,
        )
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class TemplateValidationError(TemplateError):
    """입력 검증 실패 (backend 호출 전 또는 backend가 거부)."""

    pass


class TemplateNotFoundError(TemplateError):
    """참조한 template id가 존재하지 않음."""

    pass


class TemplateTransportError(TemplateError):
    """백엔드 접근 불가 또는 non-success 응답."""

    pass


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Validation ===
    VALIDATION_FAILED = "VALIDATION_FAILED"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_STATUS = "INVALID_STATUS"

    # === Lookup ===
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"

    # === Transport / Store ===
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"
    STORE_CORRUPT = "STORE_CORRUPT"
