"""
템플릿 관리자: 클라이언트 측 상태 + backend 호출 순서 보장.

상태:
- all_templates: 마지막 전체 refresh 결과 (필터 전)
- current: 마지막으로 load/save 한 전체 레코드 (없으면 None)
- loading: 바쁨 표시 (실패해도 항상 해제)
- filter / tag_filter: 클라이언트 필터 조건

핵심 규칙:
- 모든 변경 연산(save/update_meta/remove/clone) 뒤에는 반드시 전체 refresh
  → 낙관적 패치 없음, 항상 서버 기준
- 목록은 refresh로만 교체, 제자리 수정 금지
- backend 에러는 그대로 전파 (재시도/무시 없음)
- 동시 호출 간 상호 배제 없음: 마지막으로 끝난 refresh가 목록을 결정
"""

import asyncio
import copy
import logging
from collections.abc import Iterable

from src.core.filtering import filter_templates
from src.core.merge import merge_record
from src.domain.schemas import (
    SaveTemplateInput,
    TemplateMeta,
    TemplateRecord,
    UpdateTemplateMetaInput,
)
from src.templates.backend import TemplatesBackend

logger = logging.getLogger(__name__)


class TemplateManager:
    """
    TemplatesBackend 위의 상태 컨테이너.

    Usage:
        manager = TemplateManager(backend)   # 실행 중인 이벤트 루프 안에서
        await manager.ready()                # 최초 refresh 완료 대기
        record = await manager.save(SaveTemplateInput(name="Welcome", subject="Hi"))
        manager.set_filter("welcome")
        visible = manager.templates
    """

    def __init__(self, backend: TemplatesBackend, auto_refresh: bool = True) -> None:
        """
        Args:
            backend: 주입할 TemplatesBackend
            auto_refresh: True면 생성 즉시 refresh() 1회 예약
                (실행 중인 이벤트 루프 필요)
        """
        self.backend = backend
        self._templates: list[TemplateMeta] = []
        self._current: TemplateRecord | None = None
        self._loading = False
        self._filter = ""
        self._tag_filter: list[str] = []
        self._initial_refresh: asyncio.Task[None] | None = None

        if auto_refresh:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    "TemplateManager(auto_refresh=True) requires a running event loop"
                ) from None
            # 최초 refresh가 끝나기 전까지 loading=True, 목록은 비어 있음
            self._loading = True
            self._initial_refresh = loop.create_task(self.refresh())
            self._initial_refresh.add_done_callback(self._on_initial_refresh_done)

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def templates(self) -> list[TemplateMeta]:
        """필터 적용된 목록 (읽을 때마다 새로 계산)."""
        return copy.deepcopy(
            filter_templates(self._templates, self._filter, self._tag_filter)
        )

    @property
    def visible_templates(self) -> list[TemplateMeta]:
        return self.templates

    @property
    def all_templates(self) -> list[TemplateMeta]:
        """필터 전 캐시 목록."""
        return copy.deepcopy(self._templates)

    @property
    def current(self) -> TemplateRecord | None:
        return copy.deepcopy(self._current)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def filter(self) -> str:
        return self._filter

    @property
    def tag_filter(self) -> list[str]:
        return list(self._tag_filter)

    def _on_initial_refresh_done(self, task: asyncio.Task[None]) -> None:
        """ready()를 기다리지 않는 호출자용: 최초 refresh 실패를 로그로 남김."""
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Initial template refresh failed: {error}")

    async def ready(self) -> None:
        """최초 refresh 완료 대기 (실패 시 그 에러를 전파)."""
        if self._initial_refresh is not None:
            await self._initial_refresh

    # =========================================================================
    # Local setters
    # =========================================================================

    def set_filter(self, text: str) -> None:
        self._filter = text or ""

    def set_tag_filter(self, tags: Iterable[str]) -> None:
        self._tag_filter = list(tags or [])

    # =========================================================================
    # Backend operations
    # =========================================================================

    async def refresh(self) -> None:
        """전체 목록 다시 조회 → 캐시 교체."""
        self._loading = True
        try:
            self._templates = await self.backend.list_templates()
            logger.debug(f"Template list refreshed: {len(self._templates)} item(s)")
        finally:
            self._loading = False

    async def load(self, template_id: str) -> None:
        """전체 레코드 조회 → current 교체."""
        self._loading = True
        try:
            self._current = await self.backend.get(template_id)
        finally:
            self._loading = False

    async def save(self, data: SaveTemplateInput) -> TemplateRecord:
        """
        저장 → refresh → current 갱신 → 반환.

        반환 시점에 templates 목록은 이미 저장 결과를 반영.
        """
        record = await self.backend.save(data)
        await self.refresh()
        self._current = copy.deepcopy(record)
        return record

    async def update_meta(self, data: UpdateTemplateMetaInput) -> TemplateRecord | None:
        """
        메타 수정 → refresh (결과와 무관하게 항상).

        current가 같은 id면 반환 레코드의 필드를 덮어써서 병합.
        backend가 None을 반환하면 current는 그대로, None 반환.
        """
        record = await self.backend.update_meta(data)
        await self.refresh()

        if record is not None and self._current is not None and self._current.id == record.id:
            self._current = merge_record(self._current, record)
        return record

    async def remove(self, template_id: str) -> None:
        """삭제 → refresh → current가 같은 id면 비움."""
        await self.backend.remove(template_id)
        await self.refresh()

        if self._current is not None and self._current.id == template_id:
            self._current = None
        logger.info(f"Template removed from manager: {template_id}")

    async def clone(self, template_id: str) -> TemplateRecord:
        """복제 → refresh → 새 레코드 반환 (current 변경 없음)."""
        record = await self.backend.clone(template_id)
        await self.refresh()
        return record

    async def send_test(self, template_id: str, email: str) -> dict[str, bool]:
        """backend로 그대로 전달 (상태 변경 없음)."""
        return await self.backend.send_test(template_id, email)
