"""
ID 생성: template_id, version_id

규칙:
- template_id는 최초 저장 시 한 번만 발급, 이후 수정 금지
- 전역 고유: 암호학적 난수 (secrets)
"""

import secrets
from datetime import UTC, datetime

from src.domain.constants import TEMPLATE_ID_LENGTH, VERSION_ID_LENGTH

# URL-safe 알파벳 (nanoid 호환)
ID_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"


def _random_id(length: int) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def generate_template_id() -> str:
    """
    Template ID 생성.

    포맷: URL-safe 10자

    Returns:
        template_id 문자열
    """
    return _random_id(TEMPLATE_ID_LENGTH)


def generate_version_id() -> str:
    """Version ID 생성 (URL-safe 8자)."""
    return _random_id(VERSION_ID_LENGTH)


def utc_now_iso() -> str:
    """현재 시각 (UTC, ISO 8601)."""
    return datetime.now(UTC).isoformat()
