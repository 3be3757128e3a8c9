"""
Data schemas for the template store.

구성:
- TemplateMeta: 목록용 요약 레코드
- TemplateRecord: 전체 레코드 (meta + design + versions)
- SaveTemplateInput / UpdateTemplateMetaInput: 저장/메타 수정 입력

규칙:
- design은 외부 에디터의 불투명(opaque) 문서 → 내용 검사 금지
- versions는 append-only (오래된 것 먼저)
- dict에서 파싱한 레코드는 실제로 존재했던 필드를 기억 (present_fields)
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domain.errors import ErrorCodes, TemplateValidationError

# =============================================================================
# Status
# =============================================================================

class TemplateStatus(str, Enum):
    """템플릿 상태."""
    DRAFT = "DRAFT"        # 작성 중 (생성 기본값)
    ACTIVE = "ACTIVE"      # 발송 가능
    ARCHIVED = "ARCHIVED"  # 보관됨


def _parse_status(value: Any) -> TemplateStatus:
    if isinstance(value, TemplateStatus):
        return value
    return TemplateStatus(str(value).upper())


def _invalid_field(name: str, expected: str, value: Any) -> TemplateValidationError:
    return TemplateValidationError(
        ErrorCodes.VALIDATION_FAILED,
        f"Field '{name}' must be {expected}, got {type(value).__name__}",
        field=name,
    )


def _optional_str(data: dict[str, Any], name: str) -> str | None:
    """입력 payload의 문자열 필드 (없음/None 허용)."""
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise _invalid_field(name, "a string", value)
    return value


def _optional_tags(data: dict[str, Any]) -> list[str] | None:
    """입력 payload의 tags (문자열 list만 허용, 문자열 하나는 거부)."""
    value = data.get("tags")
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
        raise _invalid_field("tags", "a list of strings", value)
    return list(value)


# =============================================================================
# Records
# =============================================================================

@dataclass
class TemplateVersion:
    """design 스냅샷 (불변)."""
    id: str
    created_at: str  # ISO 8601
    design: Any
    html_snippet: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at,
            "design": copy.deepcopy(self.design),
            "html_snippet": self.html_snippet,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TemplateVersion":
        return cls(
            id=data["id"],
            created_at=data.get("created_at", ""),
            design=copy.deepcopy(data.get("design")),
            html_snippet=data.get("html_snippet") or "",
        )


@dataclass
class TemplateMeta:
    """템플릿 요약 (목록 표시용)."""
    id: str
    name: str
    subject: str
    tags: list[str] = field(default_factory=list)
    preheader: str | None = None
    status: TemplateStatus = TemplateStatus.DRAFT
    updated_at: str = ""
    thumbnail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "subject": self.subject,
            "tags": list(self.tags),
            "preheader": self.preheader,
            "status": self.status.value if isinstance(self.status, TemplateStatus) else self.status,
            "updated_at": self.updated_at,
            "thumbnail": self.thumbnail,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TemplateMeta":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            subject=data.get("subject", ""),
            tags=list(data.get("tags") or []),
            preheader=data.get("preheader"),
            status=_parse_status(data.get("status", TemplateStatus.DRAFT)),
            updated_at=data.get("updated_at", ""),
            thumbnail=data.get("thumbnail"),
        )


@dataclass
class TemplateRecord(TemplateMeta):
    """
    템플릿 전체 레코드.

    present_fields:
        dict에서 파싱된 경우 payload에 실제로 있던 필드 이름들.
        None이면 모든 필드가 존재하는 것으로 취급 (직접 생성한 레코드).
        merge_record()가 "없는 필드 = 이전 값 유지" 판단에 사용.
    """
    design: Any = None
    versions: list[TemplateVersion] = field(default_factory=list)
    present_fields: frozenset[str] | None = field(default=None, compare=False, repr=False)

    def has_field(self, name: str) -> bool:
        """payload에 해당 필드가 존재했는지."""
        return self.present_fields is None or name in self.present_fields

    def to_meta(self) -> TemplateMeta:
        """design/versions를 제외한 요약."""
        return TemplateMeta.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["design"] = copy.deepcopy(self.design)
        data["versions"] = [v.to_dict() for v in self.versions]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TemplateRecord":
        meta = TemplateMeta.from_dict(data)
        return cls(
            id=meta.id,
            name=meta.name,
            subject=meta.subject,
            tags=meta.tags,
            preheader=meta.preheader,
            status=meta.status,
            updated_at=meta.updated_at,
            thumbnail=meta.thumbnail,
            design=copy.deepcopy(data.get("design")),
            versions=[TemplateVersion.from_dict(v) for v in data.get("versions") or []],
            present_fields=frozenset(data) & frozenset(RECORD_FIELDS),
        )


# merge 대상 필드 (bookkeeping 필드 제외)
RECORD_FIELDS = (
    "id",
    "name",
    "subject",
    "tags",
    "preheader",
    "status",
    "updated_at",
    "thumbnail",
    "design",
    "versions",
)


# =============================================================================
# Inputs
# =============================================================================

@dataclass
class SaveTemplateInput:
    """
    저장 입력.

    id 없음 → 생성, id 있음 → 수정 (새 버전 추가).
    html은 버전 미리보기/썸네일 생성용 (선택).
    """
    name: str
    subject: str
    design: Any = None
    id: str | None = None
    tags: list[str] | None = None
    preheader: str | None = None
    html: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "subject": self.subject,
            "design": copy.deepcopy(self.design),
        }
        if self.id is not None:
            data["id"] = self.id
        if self.tags is not None:
            data["tags"] = list(self.tags)
        if self.preheader is not None:
            data["preheader"] = self.preheader
        if self.html is not None:
            data["html"] = self.html
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SaveTemplateInput":
        """
        요청 payload 파싱.

        Raises:
            TemplateValidationError: VALIDATION_FAILED (필드 타입 불일치)
        """
        return cls(
            id=_optional_str(data, "id"),
            name=_optional_str(data, "name") or "",
            subject=_optional_str(data, "subject") or "",
            design=copy.deepcopy(data.get("design")),
            tags=_optional_tags(data),
            preheader=_optional_str(data, "preheader"),
            html=_optional_str(data, "html"),
        )


@dataclass
class UpdateTemplateMetaInput:
    """
    메타 부분 수정 입력.

    None = 지정하지 않음. design/versions는 수정 불가.
    """
    id: str
    name: str | None = None
    subject: str | None = None
    preheader: str | None = None
    tags: list[str] | None = None
    status: TemplateStatus | None = None

    def to_patch(self) -> dict[str, Any]:
        """지정된 필드만 담은 patch (id 제외)."""
        patch: dict[str, Any] = {}
        if self.name is not None:
            patch["name"] = self.name
        if self.subject is not None:
            patch["subject"] = self.subject
        if self.preheader is not None:
            patch["preheader"] = self.preheader
        if self.tags is not None:
            patch["tags"] = list(self.tags)
        if self.status is not None:
            patch["status"] = _parse_status(self.status).value
        return patch

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UpdateTemplateMetaInput":
        status = data.get("status")
        return cls(
            id=data["id"],
            name=_optional_str(data, "name"),
            subject=_optional_str(data, "subject"),
            preheader=_optional_str(data, "preheader"),
            tags=_optional_tags(data),
            status=_parse_status(status) if status is not None else None,
        )
