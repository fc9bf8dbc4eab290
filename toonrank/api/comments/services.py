# toonrank/api/comments/services.py

import logging
import uuid
from typing import List, Optional

from toonrank.core.exceptions import InvalidInput, NotFound, PermissionDenied
from toonrank.models.comment import Comment
from toonrank.models.identity import Identity
from toonrank.services.document_store import DocumentStore, doc_path

COMMENTS_COLLECTION = 'comments'
ITEMS_COLLECTION = 'items'

SORT_LATEST = 'latest'
SORT_RECOMMENDED = 'recommended'


class CommentService:
    """
    작품 댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 댓글 작성/목록/수정/삭제를 처리합니다.
    - upCount/downCount 집계는 VoteService 의 트랜잭션만 변경합니다.
    """
    def __init__(self, store: DocumentStore, profile_service, max_length: int = 1000, page_size: int = 50):
        self.store = store
        self.profile_service = profile_service
        self.max_length = max_length
        self.page_size = page_size

    def items_path(self, work_key: str) -> str:
        return doc_path(COMMENTS_COLLECTION, work_key, ITEMS_COLLECTION)

    def comment_path(self, work_key: str, comment_id: str) -> str:
        return doc_path(COMMENTS_COLLECTION, work_key, ITEMS_COLLECTION, comment_id)

    def _validate_text(self, text: Optional[str]) -> str:
        text = (text or '').strip()
        if not text:
            raise InvalidInput("댓글 내용을 입력해주세요.")
        if len(text) > self.max_length:
            raise InvalidInput(f"댓글은 1~{self.max_length}자 사이여야 합니다.")
        return text

    def create_comment(self, identity: Identity, work_key: str, text: str) -> Comment:
        """새 댓글을 작성합니다. 작성자 표시 이름은 프로필 닉네임, 없으면 이메일을 사용합니다."""
        text = self._validate_text(text)
        comment_id = uuid.uuid4().hex
        path = self.comment_path(work_key, comment_id)

        profile = self.profile_service.get_profile(identity.uid)
        display_name = (profile.nickname if profile else None) or identity.email

        now = self.store.server_timestamp()
        self.store.set(path, {
            'uid': identity.uid,
            'nickname': display_name,
            'text': text,
            'createdAt': now,
            'updatedAt': now,
            'upCount': 0,
            'downCount': 0,
        })
        logging.info(f"댓글 작성 완료 (work: {work_key}, comment_id: {comment_id}, uid: {identity.uid})")
        return self.get_comment(work_key, comment_id)

    def get_comment(self, work_key: str, comment_id: str) -> Optional[Comment]:
        data = self.store.get(self.comment_path(work_key, comment_id))
        if data is None:
            return None
        return Comment.from_document(work_key, comment_id, data)

    def list_comments(self, work_key: str, sort: str = SORT_LATEST, limit: Optional[int] = None) -> List[Comment]:
        """
        최신순으로 limit 개를 조회합니다.
        'recommended' 는 같은 페이지를 (추천 - 비추천) 내림차순으로 다시 정렬합니다. (동점은 최신순 유지)
        """
        if sort not in (SORT_LATEST, SORT_RECOMMENDED):
            raise InvalidInput(f"지원하지 않는 정렬 방식입니다: {sort}")
        limit = limit or self.page_size
        rows = self.store.query(self.items_path(work_key), order_by='createdAt', descending=True, limit=limit)
        comments = [Comment.from_document(work_key, comment_id, data) for comment_id, data in rows]
        if sort == SORT_RECOMMENDED:
            comments.sort(key=lambda c: c.score, reverse=True)
        return comments

    def _load_owned(self, transaction, path: str, uid: str, action: str) -> dict:
        data = transaction.get(path)
        if data is None:
            raise NotFound(f"{action}할 댓글이 없습니다.")
        if data.get('uid') != uid:
            raise PermissionDenied(f"{action} 권한이 없습니다.")
        return data

    def edit_comment(self, identity: Identity, work_key: str, comment_id: str, text: str) -> Comment:
        """댓글 내용을 수정합니다. (작성자 본인만 가능)"""
        text = self._validate_text(text)
        path = self.comment_path(work_key, comment_id)

        def _edit_in_transaction(transaction):
            self._load_owned(transaction, path, identity.uid, '수정')
            transaction.set(path, {'text': text, 'updatedAt': self.store.server_timestamp()}, merge=True)

        self.store.run_transaction(_edit_in_transaction)
        return self.get_comment(work_key, comment_id)

    def delete_comment(self, identity: Identity, work_key: str, comment_id: str) -> None:
        """댓글을 삭제합니다. (작성자 본인만 가능)"""
        path = self.comment_path(work_key, comment_id)

        def _delete_in_transaction(transaction):
            self._load_owned(transaction, path, identity.uid, '삭제')
            transaction.delete(path)

        try:
            self.store.run_transaction(_delete_in_transaction)
        except (NotFound, PermissionDenied):
            raise
        except Exception as e:
            logging.error(f"댓글 삭제 실패 (comment_id: {comment_id}): {e}", exc_info=True)
            raise
        logging.info(f"댓글 삭제 완료 (work: {work_key}, comment_id: {comment_id})")
