# toonrank/services/memory_store.py
"""
프로세스 내부 메모리에서 동작하는 문서 저장소.

테스트/로컬 환경(DOCUMENT_STORE=memory)에서 Firestore 대신 사용합니다.
Firestore 와 같은 낙관적 동시성 제어를 흉내 냅니다.
- 모든 문서는 버전 번호를 가지며, 삭제된 문서도 버전을 남깁니다.
- 트랜잭션은 읽은 문서의 버전을 기록하고, 커밋 시점에 하나라도 바뀌었으면 본문 전체를 다시 실행합니다.
- 구독 콜백은 커밋한 스레드에서 커밋 직후 동기적으로 호출됩니다.
"""
import copy
import itertools
import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from toonrank.core.exceptions import StoreUnavailable
from toonrank.services.document_store import (
    DOCUMENT_ID, READ_AFTER_WRITE_ERROR, DocumentStore, StoreTransaction, Subscription, WhereClause
)
from toonrank.utils.datetime_utils import DateTimeUtils

T = TypeVar('T')


class _ServerTimestamp:
    """커밋 시 저장소 시계 값으로 치환되는 센티널."""
    def __repr__(self):
        return 'SERVER_TIMESTAMP'

    # 쓰기 예약 시 deepcopy 되어도 같은 객체로 남아야 커밋에서 치환됩니다.
    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return 'SERVER_TIMESTAMP'


SERVER_TIMESTAMP = _ServerTimestamp()


def _is_document_path(path: str) -> bool:
    return len(path.split('/')) % 2 == 0


def _check_document_path(path: str) -> None:
    if not path or not _is_document_path(path):
        raise ValueError(f"문서 경로는 짝수 개의 세그먼트여야 합니다: {path!r}")


def _resolve_timestamps(value: Any, timestamp) -> Any:
    if value is SERVER_TIMESTAMP:
        return timestamp
    if isinstance(value, dict):
        return {k: _resolve_timestamps(v, timestamp) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_timestamps(v, timestamp) for v in value]
    return value


def _merge(existing: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(existing)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _matches(data: Dict[str, Any], doc_id: str, clause: WhereClause) -> bool:
    field, op, expected = clause
    if field == DOCUMENT_ID:
        actual, present = doc_id, True
    else:
        present = field in data
        actual = data.get(field)
    if not present:
        return False
    if op == '==':
        return actual == expected
    if op == '!=':
        return actual != expected
    if op == 'in':
        return actual in expected
    if op == 'array_contains':
        return isinstance(actual, list) and expected in actual
    try:
        if op == '<':
            return actual < expected
        if op == '<=':
            return actual <= expected
        if op == '>':
            return actual > expected
        if op == '>=':
            return actual >= expected
    except TypeError:
        return False
    raise ValueError(f"지원하지 않는 연산자입니다: {op}")


class _Listener:
    def __init__(self, callback: Callable[[Optional[Dict[str, Any]]], None]):
        self.callback = callback
        self.active = True
        self._lock = threading.RLock()
        self._last_version = -1

    def deliver(self, version: int, value: Optional[Dict[str, Any]]) -> None:
        """이미 전달한 버전보다 오래된 값은 버립니다. (커밋 순서와 전달 순서가 어긋나는 경우)"""
        with self._lock:
            if not self.active or version <= self._last_version:
                return
            self._last_version = version
            self.callback(value)


class _MemoryTransaction(StoreTransaction):

    def __init__(self, store: 'MemoryDocumentStore'):
        self._store = store
        self.read_versions: Dict[str, int] = {}
        self.writes: List[Tuple[str, str, Optional[Dict[str, Any]], bool]] = []

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        if self.writes:
            raise ValueError(READ_AFTER_WRITE_ERROR)
        version, data = self._store._read(path)
        # 같은 문서를 두 번 읽으면 처음 읽은 버전을 기준으로 충돌을 판단합니다.
        self.read_versions.setdefault(path, version)
        return data

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        _check_document_path(path)
        self.writes.append(('set', path, copy.deepcopy(data), merge))

    def delete(self, path: str) -> None:
        _check_document_path(path)
        self.writes.append(('delete', path, None, False))


class MemoryDocumentStore(DocumentStore):

    def __init__(self, max_attempts: int = 5, clock: Callable = DateTimeUtils.now):
        self.max_attempts = max_attempts
        self._clock = clock
        self._lock = threading.RLock()
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._versions: Dict[str, int] = {}
        self._version_counter = itertools.count(1)
        self._listeners: Dict[str, List[_Listener]] = defaultdict(list)
        # 테스트에서 재시도 동작을 확인하기 위한 통계
        self.commit_count = 0
        self.conflict_count = 0

    # --- 읽기/쓰기 ---
    def _read(self, path: str) -> Tuple[int, Optional[Dict[str, Any]]]:
        _check_document_path(path)
        with self._lock:
            data = self._documents.get(path)
            return self._versions.get(path, 0), copy.deepcopy(data)

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        return self._read(path)[1]

    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        transaction = _MemoryTransaction(self)
        transaction.set(path, data, merge=merge)
        self._commit(transaction)

    def delete(self, path: str) -> None:
        transaction = _MemoryTransaction(self)
        transaction.delete(path)
        self._commit(transaction)

    def query(self, collection_path: str, where: Sequence[WhereClause] = (),
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Tuple[str, Dict[str, Any]]]:
        prefix = collection_path + '/'
        with self._lock:
            rows = [
                (path[len(prefix):], copy.deepcopy(data))
                for path, data in self._documents.items()
                if path.startswith(prefix) and '/' not in path[len(prefix):]
            ]
        rows = [row for row in rows if all(_matches(row[1], row[0], clause) for clause in where)]

        if order_by == DOCUMENT_ID or order_by is None:
            rows.sort(key=lambda row: row[0], reverse=descending and order_by is not None)
        else:
            # Firestore 와 마찬가지로 정렬 필드가 없는 문서는 결과에서 제외됩니다.
            rows = [row for row in rows if order_by in row[1]]
            rows.sort(key=lambda row: row[1][order_by], reverse=descending)

        if limit is not None:
            rows = rows[:limit]
        return rows

    # --- 트랜잭션 ---
    def run_transaction(self, body: Callable[[StoreTransaction], T]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            transaction = _MemoryTransaction(self)
            result = body(transaction)
            if self._commit(transaction):
                return result
            self.conflict_count += 1
            logging.warning(f"트랜잭션 충돌로 재시도합니다 (attempt: {attempt}/{self.max_attempts})")
        raise StoreUnavailable(details=f"Failed to commit transaction in {self.max_attempts} attempts.")

    def _commit(self, transaction: _MemoryTransaction) -> bool:
        notifications = []
        with self._lock:
            for path, version in transaction.read_versions.items():
                if self._versions.get(path, 0) != version:
                    return False

            timestamp = self._clock()
            for op, path, data, merge in transaction.writes:
                if op == 'delete':
                    self._documents.pop(path, None)
                else:
                    data = _resolve_timestamps(data, timestamp)
                    if merge and path in self._documents:
                        data = _merge(self._documents[path], data)
                    self._documents[path] = data
                self._versions[path] = next(self._version_counter)
                notifications.append(path)
            self.commit_count += 1

            deliveries = []
            for path in dict.fromkeys(notifications):
                current = self._documents.get(path)
                version = self._versions[path]
                for listener in list(self._listeners.get(path, ())):
                    deliveries.append((listener, version, copy.deepcopy(current)))

        # 콜백이 저장소를 다시 호출할 수 있도록 락 밖에서 전달합니다.
        for listener, version, value in deliveries:
            listener.deliver(version, value)
        return True

    # --- 구독 ---
    def subscribe(self, path: str, on_change: Callable[[Optional[Dict[str, Any]]], None]) -> Subscription:
        _check_document_path(path)
        listener = _Listener(on_change)
        with self._lock:
            self._listeners[path].append(listener)
            # 최초 값은 락을 쥔 채 전달해 이후 커밋 알림보다 먼저 도착하도록 합니다.
            listener.deliver(self._versions.get(path, 0), copy.deepcopy(self._documents.get(path)))

        def _cancel():
            listener.active = False
            with self._lock:
                if listener in self._listeners.get(path, ()):
                    self._listeners[path].remove(listener)

        return Subscription(_cancel)

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP
