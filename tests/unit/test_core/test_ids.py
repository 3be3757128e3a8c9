"""
test_ids.py - ID 생성 테스트

규칙:
- template_id: URL-safe 10자, 호출마다 다름
- version_id: URL-safe 8자
"""

from datetime import datetime

from src.core.ids import (
    ID_ALPHABET,
    generate_template_id,
    generate_version_id,
    utc_now_iso,
)


class TestGenerateTemplateId:
    """generate_template_id 테스트."""

    def test_length_and_alphabet(self):
        template_id = generate_template_id()

        assert len(template_id) == 10
        assert set(template_id) <= set(ID_ALPHABET)

    def test_unique(self):
        """1000번 생성 → 모두 다름."""
        ids = {generate_template_id() for _ in range(1000)}

        assert len(ids) == 1000


class TestGenerateVersionId:
    """generate_version_id 테스트."""

    def test_length(self):
        assert len(generate_version_id()) == 8


def test_alphabet_is_url_safe():
    """알파벳 64자, 중복 없음, URL 예약 문자 없음."""
    assert len(ID_ALPHABET) == 64
    assert len(set(ID_ALPHABET)) == 64
    assert not set(ID_ALPHABET) & set("/?#&=+% ")


def test_utc_now_iso_has_timezone():
    parsed = datetime.fromisoformat(utc_now_iso())

    assert parsed.utcoffset() is not None
    assert parsed.utcoffset().total_seconds() == 0
