# toonrank/models/work.py
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

PLATFORMS = ('naver', 'kakao')


def work_key(platform: str, work_id: str) -> str:
    """작품을 식별하는 키. 'works' 문서 ID 와 댓글/찜 경로에 사용됩니다."""
    return f"{platform}_{work_id}"


def read_string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def read_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def read_string_list(value: Any) -> Optional[List[str]]:
    """문자열 목록에서 공백을 제거한 비어 있지 않은 항목만 남깁니다. 결과가 비면 None."""
    if not isinstance(value, list):
        return None
    items = [item.strip() for item in value if isinstance(item, str)]
    items = [item for item in items if item]
    return items or None


@dataclass
class Work:
    """
    외부 수집 파이프라인이 적재한 작품 프로젝션(읽기 전용).
    'externalRankings/{platform}/snapshots/{date}/items/*' 와 'works/{platform}_{id}' 문서가 같은 필드를 가집니다.
    """
    platform: str
    id: str
    title: Optional[str] = None
    author: Optional[str] = None
    thumbnail: Optional[str] = None
    rating: Optional[float] = None
    rank: Optional[float] = None
    weekday: Optional[str] = None
    link: Optional[str] = None
    tags: Optional[List[str]] = None

    @property
    def key(self) -> str:
        return work_key(self.platform, self.id)

    @classmethod
    def from_document(cls, platform: str, data: Dict[str, Any], fallback_id: str = '') -> 'Work':
        raw_id = data.get('id')
        return cls(
            platform=platform,
            id=str(raw_id) if raw_id not in (None, '') else str(fallback_id),
            title=read_string(data.get('title')),
            author=read_string(data.get('author')),
            thumbnail=read_string(data.get('thumbnail')),
            rating=read_number(data.get('rating')),
            rank=read_number(data.get('rank')),
            weekday=read_string(data.get('weekday')),
            link=read_string(data.get('link')),
            tags=read_string_list(data.get('tags')),
        )


@dataclass
class SnapshotMeta:
    date: str
    count: Optional[float] = None


@dataclass
class Favorite:
    """'favorites/{uid}/items/{workKey}' 문서. 찜한 시점의 작품 표시 정보를 복사해 둡니다."""
    platform: str
    id: str
    title: Optional[str] = None
    author: Optional[str] = None
    thumbnail: Optional[str] = None
    rating: Optional[float] = None
    weekday: Optional[str] = None
    link: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> 'Favorite':
        return cls(
            platform=read_string(data.get('platform')) or 'naver',
            id=str(data.get('id') or doc_id.split('_', 1)[-1]),
            title=read_string(data.get('title')),
            author=read_string(data.get('author')),
            thumbnail=read_string(data.get('thumbnail')),
            rating=read_number(data.get('rating')),
            weekday=read_string(data.get('weekday')),
            link=read_string(data.get('link')),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )
