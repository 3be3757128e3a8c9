"""
레코드 병합: Manager의 current 갱신용.

필드 존재(presence) 규칙:
- update에 존재하는 필드 → update 값으로 덮어씀 (빈 값도 "존재"로 취급, 예: tags=[])
- update에 키 자체가 없는 필드 → previous 값 유지
- 얕은(shallow) 병합: 중첩 구조는 통째로 교체
"""

import copy

from src.domain.schemas import RECORD_FIELDS, TemplateRecord


def merge_record(previous: TemplateRecord, update: TemplateRecord) -> TemplateRecord:
    """
    previous 위에 update의 존재하는 필드를 덮어쓴 새 레코드 반환.

    입력 레코드는 변경하지 않음.

    Args:
        previous: 기존 레코드 (Manager의 current)
        update: backend가 반환한 레코드

    Returns:
        병합된 새 TemplateRecord
    """
    values = {}
    for name in RECORD_FIELDS:
        source = update if update.has_field(name) else previous
        values[name] = copy.deepcopy(getattr(source, name))

    return TemplateRecord(**values)
