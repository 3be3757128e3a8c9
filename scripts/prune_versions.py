#!/usr/bin/env python3
"""
prune_versions.py - 파일 저장소 버전 이력 정리 스크립트

templates.json (local 모드 저장소)의 각 템플릿에 대해:
1. 최신 버전 keep개만 남기고 오래된 버전부터 정리
2. 템플릿 본문(design)과 메타는 건드리지 않음
3. 최소 1개 버전은 항상 유지

주의: 정리 후에는 versions가 짧아짐 (append-only 이력을 포기하고 파일 크기를 택하는 운영 작업).

keep 기본값: 설정의 max_versions (TEMPLATES_MAX_VERSIONS)

사용법:
    # 기본 실행 (dry-run)
    uv run python scripts/prune_versions.py --keep 20

    # 실제 정리
    uv run python scripts/prune_versions.py --keep 20 --execute

    # 특정 템플릿만
    uv run python scripts/prune_versions.py --template abcDEF1234 --keep 5 --execute

    # cron 예시 (매주 일요일 새벽 4시)
    0 4 * * 0 cd /path/to/project && uv run python scripts/prune_versions.py --execute >> /var/log/prune_versions.log 2>&1
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import TemplatesSettings, load_config
from src.core.storage import atomic_write_json, load_json, store_lock

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

MIN_KEEP_VERSIONS = 1


@dataclass
class PruneResult:
    """Prune 결과."""
    scanned_templates: int = 0
    scanned_versions: int = 0

    pruned_templates: int = 0
    pruned_versions: int = 0

    errors: list[str] = field(default_factory=list)


def select_pruned(versions: list[dict[str, Any]], keep: int) -> list[dict[str, Any]]:
    """정리 대상 버전 (오래된 것 먼저, 최신 keep개 제외)."""
    keep = max(keep, MIN_KEEP_VERSIONS)
    if len(versions) <= keep:
        return []
    return versions[: len(versions) - keep]


def prune_store(
    store_path: Path,
    keep: int,
    execute: bool,
    template_id: str | None = None,
) -> PruneResult:
    """저장소 전체 (또는 특정 템플릿) 버전 정리."""
    result = PruneResult()

    if not store_path.exists():
        logger.warning(f"저장소 파일 없음: {store_path}")
        return result

    with store_lock(store_path):
        data = load_json(store_path, default={"templates": []})
        templates = data.get("templates") or []

        if template_id:
            templates = [t for t in templates if t.get("id") == template_id]
            if not templates:
                result.errors.append(f"템플릿 없음: {template_id}")
                logger.error(f"템플릿 없음: {template_id}")
                return result

        logger.info(f"스캔 대상 템플릿: {len(templates)}개")

        for item in templates:
            versions = item.get("versions") or []
            result.scanned_templates += 1
            result.scanned_versions += len(versions)

            pruned = select_pruned(versions, keep)
            if not pruned:
                continue

            result.pruned_templates += 1
            result.pruned_versions += len(pruned)

            if execute:
                item["versions"] = versions[len(pruned):]
                logger.info(f"정리됨: {item.get('id')} ({len(pruned)} versions)")
            else:
                logger.info(f"[DRY-RUN] 정리 예정: {item.get('id')} ({len(pruned)} versions)")

        # 목록 객체는 data 안의 dict를 그대로 참조 → 수정이 data에 반영됨
        if execute and result.pruned_versions:
            atomic_write_json(store_path, data)

    return result


def main():
    parser = argparse.ArgumentParser(
        description="템플릿 버전 이력 정리 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="실제 정리 실행 (기본: dry-run)",
    )
    parser.add_argument(
        "--keep",
        type=int,
        help="템플릿당 유지할 최신 버전 수 (기본: 설정의 max_versions)",
    )
    parser.add_argument(
        "--template",
        type=str,
        help="특정 템플릿만 처리 (template id)",
    )
    parser.add_argument(
        "--store",
        type=str,
        help="저장소 파일 경로 (기본: 설정의 store_path)",
    )

    args = parser.parse_args()

    settings = TemplatesSettings.from_config(load_config())
    store_path = Path(args.store) if args.store else settings.store_path
    keep = args.keep or settings.max_versions

    if not keep:
        logger.error("유지할 버전 수 없음: --keep 또는 TEMPLATES_MAX_VERSIONS 설정 필요")
        return 1

    logger.info(f"보관 정책: 템플릿당 최신 {max(keep, MIN_KEEP_VERSIONS)}개 버전, 저장소: {store_path}")

    if not args.execute:
        logger.info("=" * 50)
        logger.info("DRY-RUN 모드 (실제 정리 없음)")
        logger.info("실제 실행: --execute 옵션 추가")
        logger.info("=" * 50)

    result = prune_store(
        store_path=store_path,
        keep=keep,
        execute=args.execute,
        template_id=args.template,
    )

    # 결과 출력
    logger.info("=" * 50)
    logger.info("Prune 결과:")
    logger.info(f"  스캔: {result.scanned_templates} templates, {result.scanned_versions} versions")
    logger.info(f"  정리: {result.pruned_templates} templates, {result.pruned_versions} versions")
    if result.errors:
        logger.warning(f"  에러: {len(result.errors)}개")
        for err in result.errors[:5]:
            logger.warning(f"    - {err}")

    return 0 if not result.errors else 1


if __name__ == "__main__":
    sys.exit(main())
