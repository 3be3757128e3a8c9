"""
Core layer: 도메인 무관 헬퍼.

역할:
- id 발급, 필드 병합, 클라이언트 필터링
- 파일 저장소 락 + 원자적 쓰기
- 설정 로드
"""

from .config import TemplatesSettings, load_config
from .filtering import filter_templates, matches_tags, matches_text
from .ids import generate_template_id, generate_version_id, utc_now_iso
from .merge import merge_record
from .storage import atomic_write_json, load_json, store_lock

__all__ = [
    # config
    "TemplatesSettings",
    "load_config",
    # filtering
    "filter_templates",
    "matches_tags",
    "matches_text",
    # ids
    "generate_template_id",
    "generate_version_id",
    "utc_now_iso",
    # merge
    "merge_record",
    # storage
    "atomic_write_json",
    "load_json",
    "store_lock",
]
