# toonrank/services/document_store.py
"""
문서 저장소 계약(contract).

서비스 계층은 이 모듈의 DocumentStore / StoreTransaction 인터페이스에만 의존합니다.
운영 환경에서는 FirestoreDocumentStore, 테스트 환경에서는 MemoryDocumentStore 가
create_app 에서 하나만 생성되어 각 서비스에 주입됩니다.

트랜잭션 규칙
- 트랜잭션 본문(body)은 충돌 시 여러 번 다시 실행될 수 있으므로 외부 부수효과가 없어야 합니다.
- 모든 읽기는 모든 쓰기보다 먼저 수행되어야 합니다.
- 본문에서 발생한 도메인 예외는 쓰기 없이 트랜잭션을 중단시키고 그대로 전파됩니다.
- 시각 값은 호출자 시계가 아닌 server_timestamp() 로 기록합니다.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from toonrank.core.exceptions import InvalidInput

T = TypeVar('T')

# 문서 ID 정렬/필터에 사용하는 특수 필드 경로
DOCUMENT_ID = '__name__'

READ_AFTER_WRITE_ERROR = "Firestore transactions require all reads to be executed before all writes."

WhereClause = Tuple[str, str, Any]


def doc_path(*segments: str) -> str:
    """경로 세그먼트를 '/' 로 이어 문서/컬렉션 경로를 만듭니다."""
    parts = []
    for segment in segments:
        segment = str(segment)
        if not segment or '/' in segment:
            raise InvalidInput("잘못된 문서 경로입니다.", details=f"invalid path segment: {segment!r}")
        parts.append(segment)
    return '/'.join(parts)


class Subscription:
    """
    실시간 구독 핸들. unsubscribe() 이후에는 콜백이 더 이상 호출되지 않습니다.
    """
    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._cancel()
        logging.debug("구독이 해제되었습니다.")


class StoreTransaction(ABC):
    """트랜잭션 본문에 전달되는 핸들."""

    @abstractmethod
    def get(self, path: str) -> Optional[Dict[str, Any]]:
        """문서를 읽어 dict 로 반환합니다. 문서가 없으면 None."""

    @abstractmethod
    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        """커밋 시 문서를 쓰도록 예약합니다."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """커밋 시 문서를 삭제하도록 예약합니다."""


class DocumentStore(ABC):
    """계층형 컬렉션/문서 구조의 키-값 저장소."""

    @abstractmethod
    def get(self, path: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        ...

    @abstractmethod
    def query(self, collection_path: str, where: Sequence[WhereClause] = (),
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Tuple[str, Dict[str, Any]]]:
        """컬렉션 문서를 조회해 (문서 ID, 데이터) 목록으로 반환합니다."""

    @abstractmethod
    def run_transaction(self, body: Callable[[StoreTransaction], T]) -> T:
        """
        body(transaction) 을 실행하고 결과를 반환합니다.
        읽은 문서가 커밋 전에 다른 트랜잭션에 의해 변경되면 body 전체를 다시 실행하며,
        최대 시도 횟수를 넘기거나 일시적 장애가 나면 StoreUnavailable 을 발생시킵니다.
        """

    @abstractmethod
    def subscribe(self, path: str, on_change: Callable[[Optional[Dict[str, Any]]], None]) -> Subscription:
        """문서의 현재 값을 즉시 한 번, 이후 변경될 때마다 on_change 로 전달합니다."""

    @abstractmethod
    def server_timestamp(self) -> Any:
        """커밋 시점에 저장소 시계로 치환되는 타임스탬프 센티널."""
