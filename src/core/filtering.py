"""
클라이언트 측 템플릿 필터링.

규칙:
- 텍스트: name + subject + tags(공백 join) 에 대소문자 무시 부분 문자열 포함
- 태그: 요구 태그가 모두 템플릿 tags에 포함 (집합 포함, 부분 문자열 아님)
- 두 조건은 AND
- 빈 텍스트 / 빈 태그 목록 = 조건 없음
- backend 호출 없음, 입력 목록 변경 없음
"""

from collections.abc import Iterable, Sequence

from src.domain.schemas import TemplateMeta


def search_text(template: TemplateMeta) -> str:
    """텍스트 검색 대상 문자열."""
    return f"{template.name} {template.subject} {' '.join(template.tags)}"


def matches_text(template: TemplateMeta, text: str) -> bool:
    if not text:
        return True
    return text.lower() in search_text(template).lower()


def matches_tags(template: TemplateMeta, required: Iterable[str]) -> bool:
    required_set = set(required)
    if not required_set:
        return True
    return required_set.issubset(template.tags)


def filter_templates(
    templates: Sequence[TemplateMeta],
    text: str = "",
    tags: Iterable[str] = (),
) -> list[TemplateMeta]:
    """
    텍스트/태그 조건을 모두 만족하는 템플릿 목록 (원래 순서 유지).

    Args:
        templates: 전체 캐시 목록
        text: 자유 텍스트 필터
        tags: 필수 태그들

    Returns:
        새 리스트 (입력은 변경하지 않음)
    """
    required = list(tags)
    return [
        t for t in templates
        if matches_text(t, text) and matches_tags(t, required)
    ]
