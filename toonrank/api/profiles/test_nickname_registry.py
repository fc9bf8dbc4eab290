# toonrank/api/profiles/test_nickname_registry.py
"""
프로필 생성 및 닉네임 레지스트리 테스트

사용법: python -m pytest toonrank/api/profiles/test_nickname_registry.py -v
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from toonrank.api.profiles.services import ProfileService, normalize_nickname
from toonrank.core.exceptions import InvalidInput, NicknameTaken, StoreUnavailable
from toonrank.models.identity import Identity
from toonrank.services.memory_store import MemoryDocumentStore

FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def _claim(store, normalized):
    return store.get(f'nicknames/{normalized}')


def test_normalize_nickname():
    assert normalize_nickname('  FooBar ') == 'foobar'
    assert normalize_nickname('토끼') == '토끼'


# --- ensure_profile ---

def test_ensure_profile_creates_profile(store, profile_service, alice):
    profile = profile_service.ensure_profile(alice)

    assert profile.uid == alice.uid
    assert profile.email == 'alice@example.com'
    assert profile.provider_id == 'google.com'
    assert profile.nickname is None
    assert profile.created_at is not None
    assert profile.created_at == profile.updated_at
    # 닉네임 클레임은 만들지 않음
    assert store.query('nicknames') == []


def test_ensure_profile_is_idempotent(store, profile_service, alice):
    profile_service.ensure_profile(alice)
    before = store.get('users/uid-alice')
    commits = store.commit_count

    again = profile_service.ensure_profile(Identity(uid=alice.uid, email='changed@example.com'))

    assert store.get('users/uid-alice') == before
    assert store.commit_count == commits
    assert again.email == 'alice@example.com'


def test_ensure_profile_keeps_existing_nickname(profile_service, alice):
    profile_service.set_nickname(alice, 'Foo')
    assert profile_service.ensure_profile(alice).nickname == 'Foo'


def test_ensure_profile_concurrent_calls_create_one(store, profile_service, alice):
    barrier = threading.Barrier(8)

    def call(_):
        barrier.wait()
        return profile_service.ensure_profile(alice)

    with ThreadPoolExecutor(max_workers=8) as pool:
        profiles = list(pool.map(call, range(8)))

    assert len(store.query('users')) == 1
    assert len({p.created_at for p in profiles}) == 1


# --- set_nickname ---

def test_set_nickname_claims_and_updates_profile(store, profile_service, alice):
    profile_service.ensure_profile(alice)

    profile = profile_service.set_nickname(alice, '  Foo  ')

    assert profile.nickname == 'Foo'
    claim = _claim(store, 'foo')
    assert claim['uid'] == alice.uid
    assert claim['nickname'] == 'Foo'
    assert claim['normalized'] == 'foo'
    assert claim['updatedAt'] is not None


def test_set_nickname_creates_missing_profile(store, profile_service, alice):
    profile = profile_service.set_nickname(alice, 'Foo')

    data = store.get('users/uid-alice')
    assert data['uid'] == alice.uid
    assert data['email'] == alice.email
    assert data['createdAt'] is not None
    assert profile.nickname == 'Foo'


def test_claim_and_profile_timestamps_come_from_store_clock(alice):
    store = MemoryDocumentStore(clock=lambda: FIXED_NOW)
    service = ProfileService(store)

    service.set_nickname(alice, 'Foo')

    claim = _claim(store, 'foo')
    profile = store.get('users/uid-alice')
    assert isinstance(claim['updatedAt'], datetime)
    assert claim['updatedAt'] == FIXED_NOW
    assert profile['createdAt'] == FIXED_NOW
    assert profile['updatedAt'] == FIXED_NOW


def test_set_nickname_keeps_email_missing_from_identity(store, profile_service, alice):
    profile_service.ensure_profile(alice)

    profile = profile_service.set_nickname(Identity(uid=alice.uid), 'Foo')

    assert profile.nickname == 'Foo'
    assert profile.email == 'alice@example.com'
    assert profile.provider_id == 'google.com'


def test_get_claim_is_case_insensitive(profile_service, alice):
    profile_service.set_nickname(alice, 'Foo')

    claim = profile_service.get_claim('  fOO ')
    assert claim.uid == alice.uid
    assert claim.nickname == 'Foo'
    assert profile_service.get_claim('Bar') is None


def test_rename_releases_previous_claim(store, profile_service, alice, bob):
    profile_service.set_nickname(alice, 'Foo')

    profile = profile_service.set_nickname(alice, 'Bar')

    assert profile.nickname == 'Bar'
    assert _claim(store, 'foo') is None
    assert _claim(store, 'bar')['uid'] == alice.uid

    # 해제된 닉네임은 다른 사용자가 점유할 수 있음
    assert profile_service.set_nickname(bob, 'foo').nickname == 'foo'
    assert _claim(store, 'foo')['uid'] == bob.uid


def test_reclaim_own_nickname_with_different_case(store, profile_service, alice):
    profile_service.set_nickname(alice, 'foo')

    profile = profile_service.set_nickname(alice, 'Foo')

    assert profile.nickname == 'Foo'
    assert store.query('nicknames') == [('foo', _claim(store, 'foo'))]
    assert _claim(store, 'foo')['nickname'] == 'Foo'


def test_case_insensitive_collision(store, profile_service, alice, bob):
    profile_service.set_nickname(alice, 'foo')
    claim_before = _claim(store, 'foo')

    with pytest.raises(NicknameTaken) as exc_info:
        profile_service.set_nickname(bob, 'FOO')

    assert exc_info.value.status_code == 409
    assert _claim(store, 'foo') == claim_before
    # 실패한 트랜잭션은 아무것도 남기지 않음
    assert store.get('users/uid-bob') is None


def test_failed_rename_keeps_previous_nickname(store, profile_service, alice, bob):
    profile_service.set_nickname(alice, 'foo')
    profile_service.set_nickname(bob, 'bob1')

    with pytest.raises(NicknameTaken):
        profile_service.set_nickname(bob, 'Foo')

    assert _claim(store, 'bob1')['uid'] == bob.uid
    assert profile_service.get_profile(bob.uid).nickname == 'bob1'


def test_previous_claim_owned_by_someone_else_is_kept(store, profile_service, alice, bob):
    store.set('users/uid-alice', {'uid': alice.uid, 'nickname': 'foo'})
    store.set('nicknames/foo', {'uid': bob.uid, 'nickname': 'foo', 'normalized': 'foo'})

    profile_service.set_nickname(alice, 'bar')

    assert _claim(store, 'foo')['uid'] == bob.uid
    assert _claim(store, 'bar')['uid'] == alice.uid


@pytest.mark.parametrize('raw', ['', '   ', None, 'x' * 21, 'a/b', '..', '__foo__'])
def test_invalid_nickname_rejected_without_store_access(store, profile_service, alice, raw):
    with pytest.raises(InvalidInput):
        profile_service.set_nickname(alice, raw)
    assert store.commit_count == 0


def test_nickname_max_length_is_configurable(store, alice):
    service = ProfileService(store, nickname_max_length=3)
    assert service.set_nickname(alice, 'abc').nickname == 'abc'
    with pytest.raises(InvalidInput):
        service.set_nickname(alice, 'abcd')


# --- 동시성 ---

def test_concurrent_claims_exactly_one_wins(store):
    service = ProfileService(store)
    identities = [Identity(uid=f'uid-{i}') for i in range(8)]
    barrier = threading.Barrier(len(identities))

    def attempt(identity):
        barrier.wait()
        try:
            service.set_nickname(identity, 'Winner')
            return 'ok'
        except NicknameTaken:
            return 'taken'

    with ThreadPoolExecutor(max_workers=len(identities)) as pool:
        results = list(pool.map(attempt, identities))

    assert results.count('ok') == 1
    assert results.count('taken') == len(identities) - 1

    winner = identities[results.index('ok')]
    assert _claim(store, 'winner')['uid'] == winner.uid
    assert store.query('nicknames') == [('winner', _claim(store, 'winner'))]
    # 실패한 사용자의 프로필에는 닉네임이 남지 않음
    for identity in identities:
        profile = service.get_profile(identity.uid)
        if identity is winner:
            assert profile.nickname == 'Winner'
        else:
            assert profile is None


def test_interleaved_claim_is_retried_and_rejected(make_interleaving_store, alice, bob):
    store = make_interleaving_store()
    service = ProfileService(store)
    store.competitor = lambda: service.set_nickname(bob, 'foo')

    with pytest.raises(NicknameTaken):
        service.set_nickname(alice, 'Foo')

    assert store.conflict_count == 1
    assert store.get('nicknames/foo')['uid'] == bob.uid
    assert store.get('users/uid-alice') is None


def test_interleaved_profile_change_is_retried(make_interleaving_store, alice):
    store = make_interleaving_store()
    service = ProfileService(store)
    service.set_nickname(alice, 'old')
    # 첫 시도가 읽은 뒤 다른 기기에서 닉네임이 먼저 바뀝니다.
    store.competitor = lambda: service.set_nickname(alice, 'middle')

    profile = service.set_nickname(alice, 'new')

    assert profile.nickname == 'new'
    assert store.conflict_count == 1
    # 재시도는 'middle' 클레임을 이전 클레임으로 보고 해제합니다.
    assert [doc_id for doc_id, _ in store.query('nicknames')] == ['new']


def test_exhausted_retries_leave_no_partial_state(make_interleaving_store, alice):
    store = make_interleaving_store(max_attempts=1)
    service = ProfileService(store)
    store.competitor = lambda: store.set('users/uid-alice', {'uid': alice.uid, 'email': 'other@example.com'})

    with pytest.raises(StoreUnavailable):
        service.set_nickname(alice, 'Foo')

    assert store.get('nicknames/foo') is None
    assert store.get('users/uid-alice') == {'uid': alice.uid, 'email': 'other@example.com'}


# --- 구독 ---

def test_subscribe_profile(profile_service, alice):
    seen = []
    subscription = profile_service.subscribe_profile(alice.uid, seen.append)
    assert seen == [None]

    profile_service.ensure_profile(alice)
    profile_service.set_nickname(alice, 'Foo')
    assert [p.nickname for p in seen[1:]] == [None, 'Foo']

    subscription.unsubscribe()
    profile_service.set_nickname(alice, 'Bar')
    assert len(seen) == 3
    subscription.unsubscribe()
