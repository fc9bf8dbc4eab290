# conftest.py
"""
테스트 공용 fixture.

모든 테스트는 메모리 저장소(MemoryDocumentStore)를 사용하므로 Firebase 자격 증명이 필요 없습니다.
"""
import pytest

from toonrank import create_app
from toonrank.api.comments.services import CommentService
from toonrank.api.favorites.services import FavoriteService
from toonrank.api.profiles.services import ProfileService
from toonrank.api.rankings.services import RankingService
from toonrank.api.votes.services import VoteService
from toonrank.core.security import create_identity_token
from toonrank.models.identity import Identity
from toonrank.services.memory_store import MemoryDocumentStore


class InterleavingStore(MemoryDocumentStore):
    """
    읽기가 있는 첫 번째 트랜잭션이 커밋하기 직전에 competitor 를 한 번 실행하는 저장소.
    두 호출이 '동시에' 실행된 상황을 결정적으로 재현합니다.
    """
    def __init__(self, max_attempts: int = 5):
        super().__init__(max_attempts=max_attempts)
        self.competitor = None
        self.fired = False

    def _commit(self, transaction):
        if self.competitor is not None and not self.fired and transaction.read_versions:
            self.fired = True
            self.competitor()
        return super()._commit(transaction)


@pytest.fixture
def store():
    return MemoryDocumentStore(max_attempts=5)


@pytest.fixture
def make_interleaving_store():
    return InterleavingStore


@pytest.fixture
def profile_service(store):
    return ProfileService(store, nickname_max_length=20)


@pytest.fixture
def comment_service(store, profile_service):
    return CommentService(store, profile_service=profile_service)


@pytest.fixture
def vote_service(store, comment_service):
    return VoteService(store, comment_service=comment_service)


@pytest.fixture
def ranking_service(store):
    return RankingService(store)


@pytest.fixture
def favorite_service(store, ranking_service):
    return FavoriteService(store, ranking_service=ranking_service)


@pytest.fixture
def alice():
    return Identity(uid='uid-alice', email='alice@example.com', provider_id='google.com')


@pytest.fixture
def bob():
    return Identity(uid='uid-bob', email='bob@example.com', provider_id='google.com')


@pytest.fixture
def carol():
    return Identity(uid='uid-carol', email=None, provider_id='password')


@pytest.fixture
def app(store):
    app = create_app('testing', store=store)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Identity 로 Bearer 토큰 헤더를 만드는 함수."""
    def _make(identity: Identity) -> dict:
        with app.app_context():
            token = create_identity_token(identity)
        return {'Authorization': f'Bearer {token}'}
    return _make
