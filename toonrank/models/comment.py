# toonrank/models/comment.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from toonrank.core.exceptions import InvalidInput


class VoteDirection(Enum):
    """추천/비추천 방향. value 는 투표 문서에 기록되는 부호 있는 값입니다."""
    UP = 1
    DOWN = -1

    @classmethod
    def parse(cls, raw: str) -> 'VoteDirection':
        mapping = {'up': cls.UP, 'down': cls.DOWN}
        direction = mapping.get(str(raw).strip().lower()) if raw is not None else None
        if direction is None:
            raise InvalidInput("추천 방향은 'up' 또는 'down' 이어야 합니다.")
        return direction


@dataclass
class Comment:
    """
    'comments/{workKey}/items/{commentId}' 문서 구조를 정의하는 데이터클래스.
    up_count/down_count 는 투표 문서로부터 트랜잭션으로 유지되는 집계값입니다.
    """
    comment_id: str
    work_key: str
    uid: str
    nickname: Optional[str]
    text: str
    up_count: int = 0
    down_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def score(self) -> int:
        return self.up_count - self.down_count

    @classmethod
    def from_document(cls, work_key: str, comment_id: str, data: Dict[str, Any]) -> 'Comment':
        return cls(
            comment_id=comment_id,
            work_key=work_key,
            uid=data.get('uid'),
            nickname=data.get('nickname'),
            text=data.get('text', ''),
            up_count=read_count(data.get('upCount')),
            down_count=read_count(data.get('downCount')),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )


@dataclass
class VoteResult:
    """투표 트랜잭션 커밋 후의 내 투표 값과 댓글 집계."""
    value: int
    up_count: int
    down_count: int


def read_count(value: Any) -> int:
    """숫자가 아니거나 유한하지 않은 값은 0 으로 읽습니다."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if value != value or value in (float('inf'), float('-inf')):
        return 0
    return int(value)
