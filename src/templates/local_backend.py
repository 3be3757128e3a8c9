"""
프로세스 내 / 로컬 파일 템플릿 저장소.

구현:
- InMemoryTemplatesBackend: dict 저장소 (테스트 대역, memory 모드)
- FileTemplatesBackend: templates.json 단일 파일 (local 모드)
  - 프로세스 간 락 (filelock) + 원자적 쓰기

저장 규칙:
- 생성: 새 id, DRAFT, 버전 1개
- 수정: design이 최신 버전과 다를 때만 버전 추가 (append-only, 오래된 것 먼저)
- tags/preheader가 None이면 기존 값 유지
- clone: "<name> Copy", 최신 design 복사, 버전 1개로 시작
- 반환 레코드는 항상 복사본
"""

import asyncio
import base64
import copy
import logging
import re
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from src.core.ids import generate_template_id, generate_version_id, utc_now_iso
from src.core.storage import atomic_write_json, load_json, store_lock
from src.domain.constants import (
    CLONE_NAME_SUFFIX,
    HTML_SNIPPET_LENGTH,
    STORE_LOCK_TIMEOUT_SECONDS,
    THUMBNAIL_PREFIX,
    THUMBNAIL_TEXT_LENGTH,
)
from src.domain.errors import ErrorCodes, TemplateNotFoundError
from src.domain.schemas import (
    SaveTemplateInput,
    TemplateMeta,
    TemplateRecord,
    TemplateStatus,
    TemplateVersion,
    UpdateTemplateMetaInput,
)
from src.templates.backend import TemplatesBackend, validate_email, validate_save_input

logger = logging.getLogger(__name__)

T = TypeVar("T")

Records = dict[str, TemplateRecord]


# =============================================================================
# Helpers
# =============================================================================

def make_thumbnail(html: str) -> str | None:
    """
    html → 텍스트 요약 썸네일 (data URL).

    style/script 제거 → 태그 제거 → 공백 정리 → 앞 120자.
    """
    text = re.sub(r"<style[\s\S]*?</style>", "", html, flags=re.IGNORECASE)
    text = re.sub(r"<script[\s\S]*?</script>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"\s+", " ", text).strip()[:THUMBNAIL_TEXT_LENGTH]
    if not text:
        return None
    return THUMBNAIL_PREFIX + base64.b64encode(text.encode("utf-8")).decode("ascii")


def _not_found(template_id: str) -> TemplateNotFoundError:
    return TemplateNotFoundError(
        ErrorCodes.TEMPLATE_NOT_FOUND,
        f"Template '{template_id}' not found",
        template_id=template_id,
    )


# =============================================================================
# In-memory Backend
# =============================================================================

class InMemoryTemplatesBackend(TemplatesBackend):
    """
    dict 기반 저장소.

    FileTemplatesBackend는 _open_store()/_run()만 교체해서 같은 규칙을 재사용.
    """

    def __init__(self, max_versions: int | None = None) -> None:
        """
        Args:
            max_versions: 버전 보관 개수 (None = 무제한)
                None이면 versions는 append-only로만 늘어남.
                값을 지정하면 한도를 넘을 때 오래된 버전을 버리므로
                versions 길이가 더 이상 단조 증가하지 않음 (이력 대신 크기 제한을 택함).
        """
        self.max_versions = max_versions
        self._records: Records = {}
        # 발송 요청 기록 (template_id, email)
        self.sent_tests: list[tuple[str, str]] = []

    # =========================================================================
    # Storage hooks
    # =========================================================================

    @contextmanager
    def _open_store(self, write: bool = False) -> Generator[Records, None, None]:
        yield self._records

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        return func(*args)

    # =========================================================================
    # Public API
    # =========================================================================

    async def list_templates(self) -> list[TemplateMeta]:
        return await self._run(self._list)

    async def get(self, template_id: str) -> TemplateRecord:
        return await self._run(self._get, template_id)

    async def save(self, data: SaveTemplateInput) -> TemplateRecord:
        return await self._run(self._save, data)

    async def update_meta(self, data: UpdateTemplateMetaInput) -> TemplateRecord | None:
        return await self._run(self._update_meta, data)

    async def remove(self, template_id: str) -> None:
        await self._run(self._remove, template_id)

    async def clone(self, template_id: str) -> TemplateRecord:
        return await self._run(self._clone, template_id)

    async def send_test(self, template_id: str, email: str) -> dict[str, bool]:
        await self._run(self._send_test, template_id, email)
        return {"ok": True}

    # =========================================================================
    # Operations
    # =========================================================================

    def _list(self) -> list[TemplateMeta]:
        with self._open_store() as records:
            ordered = sorted(records.values(), key=lambda r: r.updated_at, reverse=True)
            return [r.to_meta() for r in ordered]

    def _get(self, template_id: str) -> TemplateRecord:
        with self._open_store() as records:
            record = records.get(template_id)
            if record is None:
                raise _not_found(template_id)
            return copy.deepcopy(record)

    def _save(self, data: SaveTemplateInput) -> TemplateRecord:
        validate_save_input(data)
        now = utc_now_iso()

        with self._open_store(write=True) as records:
            if data.id is not None:
                record = records.get(data.id)
                if record is None:
                    raise _not_found(data.id)
                record.name = data.name
                record.subject = data.subject
                if data.tags is not None:
                    record.tags = list(data.tags)
                if data.preheader is not None:
                    record.preheader = data.preheader
                record.design = copy.deepcopy(data.design)
                record.updated_at = now
                logger.info(f"Template updated: {record.id}")
            else:
                record = TemplateRecord(
                    id=self._new_id(records),
                    name=data.name,
                    subject=data.subject,
                    tags=list(data.tags or []),
                    preheader=data.preheader,
                    status=TemplateStatus.DRAFT,
                    updated_at=now,
                    design=copy.deepcopy(data.design),
                )
                records[record.id] = record
                logger.info(f"Template created: {record.id}")

            self._append_version(record, data.design, data.html, now)
            if record.thumbnail is None and data.html:
                record.thumbnail = make_thumbnail(data.html)

            return copy.deepcopy(record)

    def _update_meta(self, data: UpdateTemplateMetaInput) -> TemplateRecord | None:
        patch = data.to_patch()

        with self._open_store(write=True) as records:
            record = records.get(data.id)
            if record is None:
                logger.info(f"Meta update matched nothing: {data.id}")
                return None

            for key, value in patch.items():
                if key == "status":
                    value = TemplateStatus(value)
                setattr(record, key, value)
            record.updated_at = utc_now_iso()

            logger.info(f"Template meta updated: {record.id} fields={sorted(patch)}")
            return copy.deepcopy(record)

    def _remove(self, template_id: str) -> None:
        with self._open_store(write=True) as records:
            if template_id not in records:
                raise _not_found(template_id)
            del records[template_id]
            logger.info(f"Template removed: {template_id}")

    def _clone(self, template_id: str) -> TemplateRecord:
        now = utc_now_iso()

        with self._open_store(write=True) as records:
            source = records.get(template_id)
            if source is None:
                raise _not_found(template_id)

            snippet = source.versions[-1].html_snippet if source.versions else ""
            record = TemplateRecord(
                id=self._new_id(records),
                name=source.name + CLONE_NAME_SUFFIX,
                subject=source.subject,
                tags=list(source.tags),
                preheader=source.preheader,
                status=TemplateStatus.DRAFT,
                updated_at=now,
                thumbnail=source.thumbnail,
                design=copy.deepcopy(source.design),
                versions=[
                    TemplateVersion(
                        id=generate_version_id(),
                        created_at=now,
                        design=copy.deepcopy(source.design),
                        html_snippet=snippet,
                    )
                ],
            )
            records[record.id] = record

            logger.info(f"Template cloned: {template_id} -> {record.id}")
            return copy.deepcopy(record)

    def _send_test(self, template_id: str, email: str) -> None:
        with self._open_store() as records:
            if template_id not in records:
                raise _not_found(template_id)
        validate_email(email)

        # 실제 발송 없음: 기록만 남김
        self.sent_tests.append((template_id, email.strip()))
        logger.info(f"Pretend sending test email: template={template_id} to={email}")

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _new_id(self, records: Records) -> str:
        template_id = generate_template_id()
        while template_id in records:
            template_id = generate_template_id()
        return template_id

    def _append_version(
        self,
        record: TemplateRecord,
        design: Any,
        html: str | None,
        now: str,
    ) -> None:
        """design이 최신 버전과 다르면 버전 추가."""
        if record.versions and record.versions[-1].design == design:
            return

        record.versions.append(
            TemplateVersion(
                id=generate_version_id(),
                created_at=now,
                design=copy.deepcopy(design),
                html_snippet=(html or "")[:HTML_SNIPPET_LENGTH],
            )
        )
        if self.max_versions is not None and len(record.versions) > self.max_versions:
            del record.versions[: len(record.versions) - self.max_versions]


# =============================================================================
# File Backend
# =============================================================================

class FileTemplatesBackend(InMemoryTemplatesBackend):
    """
    templates.json 단일 파일 저장소.

    구조:
    {"templates": [record, ...]}

    - 매 연산마다 락 → 읽기 → (쓰기)
    - 블로킹 I/O는 스레드에서 실행 (이벤트 루프 차단 방지)
    """

    def __init__(
        self,
        path: Path,
        max_versions: int | None = None,
        lock_timeout: float = STORE_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(max_versions=max_versions)
        self.path = path
        self.lock_timeout = lock_timeout

    @contextmanager
    def _open_store(self, write: bool = False) -> Generator[Records, None, None]:
        with store_lock(self.path, timeout=self.lock_timeout):
            records = self._read()
            yield records
            if write:
                self._write(records)

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(func, *args)

    def _read(self) -> Records:
        data = load_json(self.path, default={"templates": []})
        records: Records = {}
        for item in data.get("templates") or []:
            record = TemplateRecord.from_dict(item)
            records[record.id] = record
        return records

    def _write(self, records: Records) -> None:
        atomic_write_json(
            self.path,
            {"templates": [r.to_dict() for r in records.values()]},
        )
