"""
Templates Backend 추상 인터페이스.

원격 템플릿 저장소와의 유일한 접점.
- 모든 연산은 async
- 실패는 TemplateError 계열로 명시적으로 전파 (삼키지 않음)
- 구현체: InMemory (테스트 대역), File (local 모드), Rest (rest 모드)
"""

import re
from abc import ABC, abstractmethod

from src.domain.errors import ErrorCodes, TemplateValidationError
from src.domain.schemas import (
    SaveTemplateInput,
    TemplateMeta,
    TemplateRecord,
    UpdateTemplateMetaInput,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# =============================================================================
# Validation
# =============================================================================

def validate_save_input(data: SaveTemplateInput) -> None:
    """
    저장 입력 검증.

    규칙:
    - name, subject 필수 (공백만 있는 값도 누락으로 취급)

    Raises:
        TemplateValidationError: MISSING_REQUIRED_FIELD
    """
    missing = [
        name for name in ("name", "subject")
        if not (getattr(data, name) or "").strip()
    ]
    if missing:
        raise TemplateValidationError(
            ErrorCodes.MISSING_REQUIRED_FIELD,
            f"Missing required field(s): {', '.join(missing)}",
            fields=missing,
        )


def validate_email(email: str) -> None:
    """
    테스트 발송 주소 검증.

    Raises:
        TemplateValidationError: INVALID_EMAIL
    """
    if not email or not EMAIL_PATTERN.match(email.strip()):
        raise TemplateValidationError(
            ErrorCodes.INVALID_EMAIL,
            f"Invalid email address: {email!r}",
            email=email,
        )


# =============================================================================
# Capability
# =============================================================================

class TemplatesBackend(ABC):
    """
    템플릿 저장소 capability.

    실패 분류:
    - TemplateValidationError: 잘못된 입력
    - TemplateNotFoundError: 존재하지 않는 id
    - TemplateTransportError: 저장소/네트워크 불가
    """

    @abstractmethod
    async def list_templates(self) -> list[TemplateMeta]:
        """전체 템플릿 요약 (updated_at 최신순)."""

    @abstractmethod
    async def get(self, template_id: str) -> TemplateRecord:
        """전체 레코드 조회. 없으면 TemplateNotFoundError."""

    @abstractmethod
    async def save(self, data: SaveTemplateInput) -> TemplateRecord:
        """id 없음 → 생성, id 있음 → 수정 + 버전 추가."""

    @abstractmethod
    async def update_meta(self, data: UpdateTemplateMetaInput) -> TemplateRecord | None:
        """메타 부분 수정. 일치하는 레코드가 없으면 None (에러 아님)."""

    @abstractmethod
    async def remove(self, template_id: str) -> None:
        """삭제. 없으면 TemplateNotFoundError."""

    @abstractmethod
    async def clone(self, template_id: str) -> TemplateRecord:
        """새 id로 복제. 원본이 없으면 TemplateNotFoundError."""

    @abstractmethod
    async def send_test(self, template_id: str, email: str) -> dict[str, bool]:
        """테스트 메일 발송 요청."""

    async def aclose(self) -> None:
        """보유 리소스 정리 (기본: 없음)."""
        return None

    async def __aenter__(self) -> "TemplatesBackend":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
