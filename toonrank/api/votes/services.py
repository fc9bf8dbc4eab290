# toonrank/api/votes/services.py

import logging
from typing import Callable, Dict, Iterable, Optional, Union

from toonrank.api.comments.services import COMMENTS_COLLECTION, ITEMS_COLLECTION
from toonrank.core.exceptions import NotFound, SelfVoteForbidden
from toonrank.models.comment import VoteDirection, VoteResult, read_count
from toonrank.models.identity import Identity
from toonrank.services.document_store import DocumentStore, Subscription, doc_path

VOTES_COLLECTION = 'votes'


def read_vote_value(data: Optional[dict]) -> int:
    """투표 문서의 value 를 -1/0/+1 로 읽습니다. 문서가 없거나 값이 이상하면 0(투표 안 함)."""
    value = (data or {}).get('value')
    if isinstance(value, bool) or value not in (1, -1):
        return 0
    return int(value)


def next_vote_value(current: int, direction: VoteDirection) -> int:
    """같은 방향을 다시 누르면 취소(0), 아니면 요청한 방향의 값."""
    return 0 if current == direction.value else direction.value


class VoteService:
    """
    댓글 추천/비추천 집계를 담당하는 서비스 클래스.

    투표 문서 'comments/{workKey}/items/{commentId}/votes/{uid}' 의 value 와
    댓글 문서의 upCount/downCount 를 하나의 트랜잭션에서 함께 갱신하므로,
    서로 다른 사용자가 같은 댓글에 동시에 투표해도 집계가 유실되지 않습니다.
    """
    def __init__(self, store: DocumentStore, comment_service):
        self.store = store
        self.comment_service = comment_service

    def vote_path(self, uid: str, work_key: str, comment_id: str) -> str:
        return doc_path(COMMENTS_COLLECTION, work_key, ITEMS_COLLECTION, comment_id, VOTES_COLLECTION, uid)

    def _decrement(self, count: int, field: str, comment_id: str) -> int:
        if count > 0:
            return count - 1
        logging.warning(f"집계값이 0 미만으로 내려가려 해 0으로 보정합니다 (comment_id: {comment_id}, field: {field})")
        return 0

    def cast_vote(self, identity: Identity, work_key: str, comment_id: str,
                  direction: Union[VoteDirection, str]) -> VoteResult:
        """
        추천/비추천을 누르거나, 같은 방향을 다시 눌러 취소하거나, 반대 방향으로 전환합니다.

        상태 전이 (현재 -> up / down)
        - 투표 안 함 -> 추천(up+1) / 비추천(down+1)
        - 추천      -> 투표 안 함(up-1) / 비추천(up-1, down+1)
        - 비추천    -> 추천(down-1, up+1) / 투표 안 함(down-1)

        자기 댓글에 대한 투표는 트랜잭션 시작 전에 SelfVoteForbidden 으로 거부합니다.
        """
        if not isinstance(direction, VoteDirection):
            direction = VoteDirection.parse(direction)

        comment = self.comment_service.get_comment(work_key, comment_id)
        if comment is None:
            raise NotFound("추천할 댓글을 찾을 수 없습니다.")
        if comment.uid == identity.uid:
            raise SelfVoteForbidden(comment_id)

        uid = identity.uid
        vote_path = self.vote_path(uid, work_key, comment_id)
        comment_path = self.comment_service.comment_path(work_key, comment_id)

        def _vote_in_transaction(transaction) -> VoteResult:
            # --- 읽기 ---
            current = read_vote_value(transaction.get(vote_path))
            new_value = next_vote_value(current, direction)

            comment_data = transaction.get(comment_path)
            if comment_data is None:
                raise NotFound("추천할 댓글을 찾을 수 없습니다.")
            up = read_count(comment_data.get('upCount'))
            down = read_count(comment_data.get('downCount'))

            # --- 집계 계산 ---
            if current == 1:
                up = self._decrement(up, 'upCount', comment_id)
            elif current == -1:
                down = self._decrement(down, 'downCount', comment_id)
            if new_value == 1:
                up += 1
            elif new_value == -1:
                down += 1

            # --- 쓰기 ---
            now = self.store.server_timestamp()
            transaction.set(vote_path, {'uid': uid, 'value': new_value, 'updatedAt': now}, merge=True)
            transaction.set(comment_path, {'upCount': up, 'downCount': down, 'updatedAt': now}, merge=True)
            return VoteResult(value=new_value, up_count=up, down_count=down)

        result = self.store.run_transaction(_vote_in_transaction)
        logging.info(
            f"댓글 투표 반영 (comment_id: {comment_id}, uid: {uid}, value: {result.value}, "
            f"up: {result.up_count}, down: {result.down_count})"
        )
        return result

    def get_vote(self, uid: str, work_key: str, comment_id: str) -> int:
        """내 현재 투표 값(-1/0/+1)을 조회합니다."""
        return read_vote_value(self.store.get(self.vote_path(uid, work_key, comment_id)))

    def get_votes(self, uid: str, work_key: str, comment_ids: Iterable[str]) -> Dict[str, int]:
        """여러 댓글에 대한 내 투표 값을 한 번에 조회합니다."""
        return {comment_id: self.get_vote(uid, work_key, comment_id) for comment_id in comment_ids}

    def subscribe_vote(self, uid: str, work_key: str, comment_id: str,
                       on_change: Callable[[int], None]) -> Subscription:
        """내 투표 값을 즉시 한 번, 이후 바뀔 때마다 전달합니다."""
        return self.store.subscribe(
            self.vote_path(uid, work_key, comment_id),
            lambda data: on_change(read_vote_value(data))
        )
