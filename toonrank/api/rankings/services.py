# toonrank/api/rankings/services.py

import math
from typing import List, Optional

from toonrank.core.exceptions import InvalidInput
from toonrank.models.work import PLATFORMS, SnapshotMeta, Work, read_number, work_key
from toonrank.services.document_store import DOCUMENT_ID, DocumentStore, doc_path
from toonrank.utils.datetime_utils import DateTimeUtils

RANKINGS_COLLECTION = 'externalRankings'
SNAPSHOTS_COLLECTION = 'snapshots'
ITEMS_COLLECTION = 'items'
WORKS_COLLECTION = 'works'

MAX_TAKE = 100


def _rank_key(work: Work) -> float:
    return work.rank if work.rank is not None else math.inf


class RankingService:
    """
    외부 수집 파이프라인이 적재한 랭킹 스냅샷/작품 문서를 조회하는 읽기 전용 서비스.
    이 서비스는 어떤 문서도 쓰지 않습니다.
    """
    def __init__(self, store: DocumentStore):
        self.store = store

    def _check_platform(self, platform: str) -> str:
        if platform not in PLATFORMS:
            raise InvalidInput(f"지원하지 않는 플랫폼입니다: {platform}")
        return platform

    def _check_date(self, date: str) -> str:
        try:
            DateTimeUtils.parse_snapshot_date(date)
        except ValueError as e:
            raise InvalidInput(str(e))
        return date

    def _check_take(self, take: int) -> int:
        if take < 1 or take > MAX_TAKE:
            raise InvalidInput(f"take 는 1~{MAX_TAKE} 사이여야 합니다.")
        return take

    def _snapshots_path(self, platform: str) -> str:
        return doc_path(RANKINGS_COLLECTION, platform, SNAPSHOTS_COLLECTION)

    def _items_path(self, platform: str, date: str) -> str:
        return doc_path(RANKINGS_COLLECTION, platform, SNAPSHOTS_COLLECTION, date, ITEMS_COLLECTION)

    def latest_snapshot_date(self, platform: str = 'naver') -> Optional[str]:
        """가장 최근 스냅샷 날짜(문서 ID 역순 첫 번째)를 반환합니다."""
        rows = self.store.query(self._snapshots_path(self._check_platform(platform)),
                                order_by=DOCUMENT_ID, descending=True, limit=1)
        return rows[0][0] if rows else None

    def snapshot_meta(self, platform: str, date: str) -> Optional[SnapshotMeta]:
        path = doc_path(RANKINGS_COLLECTION, self._check_platform(platform), SNAPSHOTS_COLLECTION,
                        self._check_date(date))
        data = self.store.get(path)
        if data is None:
            return None
        return SnapshotMeta(date=date, count=read_number(data.get('count')))

    def snapshot_items(self, platform: str, date: str, take: int = 30) -> List[Work]:
        """스냅샷 항목을 문서 ID 순서로 take 개 조회합니다."""
        platform = self._check_platform(platform)
        rows = self.store.query(self._items_path(platform, self._check_date(date)),
                                order_by=DOCUMENT_ID, limit=self._check_take(take))
        return [Work.from_document(platform, data) for _, data in rows]

    def snapshot_items_by_weekday(self, platform: str, date: str, weekday: str, take: int = 30) -> List[Work]:
        """
        특정 요일 항목을 rank 오름차순으로 take 개 반환합니다. rank 가 없는 항목은 뒤로 보냅니다.
        정렬 전 후보를 넉넉히(최소 50개) 가져옵니다.
        """
        platform = self._check_platform(platform)
        take = self._check_take(take)
        rows = self.store.query(self._items_path(platform, self._check_date(date)),
                                where=[('weekday', '==', weekday)], limit=max(50, take))
        items = [Work.from_document(platform, data) for _, data in rows]
        items.sort(key=_rank_key)
        return items[:take]

    def get_work(self, platform: str, work_id: str) -> Optional[Work]:
        platform = self._check_platform(platform)
        data = self.store.get(doc_path(WORKS_COLLECTION, work_key(platform, work_id)))
        if data is None:
            return None
        return Work.from_document(platform, data, fallback_id=work_id)
