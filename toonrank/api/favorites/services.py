# toonrank/api/favorites/services.py

import logging
from typing import List

from toonrank.core.exceptions import NotFound
from toonrank.models.identity import Identity
from toonrank.models.work import Favorite, work_key
from toonrank.services.document_store import DocumentStore, doc_path

FAVORITES_COLLECTION = 'favorites'
ITEMS_COLLECTION = 'items'


class FavoriteService:
    """사용자별 찜 목록 'favorites/{uid}/items/{workKey}' 를 관리합니다."""

    def __init__(self, store: DocumentStore, ranking_service):
        self.store = store
        self.ranking_service = ranking_service

    def _items_path(self, uid: str) -> str:
        return doc_path(FAVORITES_COLLECTION, uid, ITEMS_COLLECTION)

    def _favorite_path(self, uid: str, platform: str, work_id: str) -> str:
        return doc_path(FAVORITES_COLLECTION, uid, ITEMS_COLLECTION, work_key(platform, work_id))

    def is_favorite(self, uid: str, platform: str, work_id: str) -> bool:
        return self.store.get(self._favorite_path(uid, platform, work_id)) is not None

    def toggle_favorite(self, identity: Identity, platform: str, work_id: str) -> bool:
        """찜을 추가하거나 해제하고, 변경 후 찜 여부를 반환합니다."""
        work = self.ranking_service.get_work(platform, work_id)
        if work is None:
            raise NotFound("작품 정보를 찾을 수 없습니다.")
        path = self._favorite_path(identity.uid, platform, work_id)

        def _toggle_in_transaction(transaction) -> bool:
            if transaction.get(path) is not None:
                transaction.delete(path)
                return False
            now = self.store.server_timestamp()
            transaction.set(path, {
                'platform': work.platform,
                'id': work.id,
                'title': work.title,
                'author': work.author,
                'thumbnail': work.thumbnail,
                'rating': work.rating,
                'weekday': work.weekday,
                'link': work.link,
                'createdAt': now,
                'updatedAt': now,
            }, merge=True)
            return True

        is_favorite = self.store.run_transaction(_toggle_in_transaction)
        logging.info(f"찜 상태 변경 (uid: {identity.uid}, work: {work.key}, favorite: {is_favorite})")
        return is_favorite

    def list_favorites(self, uid: str) -> List[Favorite]:
        """최근에 찜한 순서로 반환합니다."""
        rows = self.store.query(self._items_path(uid), order_by='updatedAt', descending=True)
        return [Favorite.from_document(doc_id, data) for doc_id, data in rows]
