# toonrank/services/firestore_store.py
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from toonrank.core.exceptions import StoreUnavailable
from toonrank.services.document_store import (
    DocumentStore, StoreTransaction, Subscription, WhereClause
)
from toonrank.utils.datetime_utils import DateTimeUtils

T = TypeVar('T')

# 재시도해도 되는 일시적 인프라 오류
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.Aborted,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
    google_exceptions.RetryError,
)

# firestore.transactional 이 max_attempts 를 모두 소진했을 때 던지는 ValueError 메시지
EXCEEDED_ATTEMPTS_PREFIX = "Failed to commit transaction"


def _snapshot_to_dict(snapshot) -> Optional[Dict[str, Any]]:
    if snapshot is None or not snapshot.exists:
        return None
    return DateTimeUtils.from_firestore(snapshot.to_dict() or {})


class _FirestoreTransaction(StoreTransaction):
    """google.cloud.firestore.Transaction 을 StoreTransaction 으로 감쌉니다."""

    def __init__(self, db, transaction):
        self._db = db
        self._transaction = transaction

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        snapshot = self._db.document(path).get(transaction=self._transaction)
        return _snapshot_to_dict(snapshot)

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        self._transaction.set(self._db.document(path), DateTimeUtils.for_firestore(data), merge=merge)

    def delete(self, path: str) -> None:
        self._transaction.delete(self._db.document(path))


class FirestoreDocumentStore(DocumentStore):
    """
    firebase_admin 의 Firestore 클라이언트를 사용하는 운영용 저장소.
    클라이언트는 create_app 에서 firestore.client() 로 생성해 주입합니다.
    """

    def __init__(self, client, max_attempts: int = 5):
        self.db = client
        self.max_attempts = max_attempts

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        try:
            return _snapshot_to_dict(self.db.document(path).get())
        except TRANSIENT_ERRORS as e:
            logging.error(f"Firestore 읽기 실패 (path: {path}): {e}", exc_info=True)
            raise StoreUnavailable(details=str(e)) from e

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        try:
            self.db.document(path).set(DateTimeUtils.for_firestore(data), merge=merge)
        except TRANSIENT_ERRORS as e:
            logging.error(f"Firestore 저장 실패 (path: {path}): {e}", exc_info=True)
            raise StoreUnavailable(details=str(e)) from e

    def delete(self, path: str) -> None:
        try:
            self.db.document(path).delete()
        except TRANSIENT_ERRORS as e:
            logging.error(f"Firestore 삭제 실패 (path: {path}): {e}", exc_info=True)
            raise StoreUnavailable(details=str(e)) from e

    def query(self, collection_path: str, where: Sequence[WhereClause] = (),
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Tuple[str, Dict[str, Any]]]:
        query = self.db.collection(collection_path)
        for field, op, value in where:
            query = query.where(field, op, value)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        try:
            return [(doc.id, DateTimeUtils.from_firestore(doc.to_dict() or {})) for doc in query.stream()]
        except TRANSIENT_ERRORS as e:
            logging.error(f"Firestore 조회 실패 (collection: {collection_path}): {e}", exc_info=True)
            raise StoreUnavailable(details=str(e)) from e

    def run_transaction(self, body: Callable[[StoreTransaction], T]) -> T:
        transaction = self.db.transaction(max_attempts=self.max_attempts)

        @firestore.transactional
        def _run_in_transaction(transaction):
            return body(_FirestoreTransaction(self.db, transaction))

        try:
            return _run_in_transaction(transaction)
        except TRANSIENT_ERRORS as e:
            logging.error(f"Firestore 트랜잭션 실패: {e}", exc_info=True)
            raise StoreUnavailable(details=str(e)) from e
        except ValueError as e:
            if str(e).startswith(EXCEEDED_ATTEMPTS_PREFIX):
                logging.error(f"Firestore 트랜잭션 재시도 한도 초과: {e}")
                raise StoreUnavailable(details=str(e)) from e
            raise

    def subscribe(self, path: str, on_change: Callable[[Optional[Dict[str, Any]]], None]) -> Subscription:
        subscription: Optional[Subscription] = None

        # Watch 콜백은 백그라운드 스레드에서 호출되므로 해제 이후 도착한 스냅샷은 버립니다.
        def _on_snapshot(doc_snapshots, changes, read_time):
            if subscription is not None and not subscription.active:
                return
            if not doc_snapshots:
                on_change(None)
                return
            for snapshot in doc_snapshots:
                on_change(_snapshot_to_dict(snapshot))

        watch = self.db.document(path).on_snapshot(_on_snapshot)
        subscription = Subscription(watch.unsubscribe)
        return subscription

    def server_timestamp(self) -> Any:
        return firestore.SERVER_TIMESTAMP
