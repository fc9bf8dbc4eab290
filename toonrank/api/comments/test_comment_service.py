# toonrank/api/comments/test_comment_service.py
"""
작품 댓글 서비스 테스트

사용법: python -m pytest toonrank/api/comments/test_comment_service.py -v
"""
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from toonrank.api.comments.services import CommentService
from toonrank.core.exceptions import InvalidInput, NotFound, PermissionDenied
from toonrank.services.memory_store import MemoryDocumentStore

WORK_KEY = 'kakao_1001'
BASE_TIME = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """커밋마다 1초씩 흐르는 시계를 사용해 작성 순서를 결정적으로 만듭니다."""
    ticks = itertools.count()
    return MemoryDocumentStore(clock=lambda: BASE_TIME + timedelta(seconds=next(ticks)))


def test_create_comment_uses_profile_nickname(store, comment_service, profile_service, alice):
    profile_service.set_nickname(alice, '앨리스')

    comment = comment_service.create_comment(alice, WORK_KEY, '  다음 화가 기대돼요  ')

    assert comment.uid == alice.uid
    assert comment.nickname == '앨리스'
    assert comment.text == '다음 화가 기대돼요'
    assert comment.up_count == 0 and comment.down_count == 0
    assert comment.created_at == comment.updated_at
    raw = store.get(f'comments/{WORK_KEY}/items/{comment.comment_id}')
    assert raw['upCount'] == 0 and raw['downCount'] == 0


def test_create_comment_falls_back_to_email(comment_service, alice, carol):
    assert comment_service.create_comment(alice, WORK_KEY, '첫 댓글').nickname == 'alice@example.com'
    assert comment_service.create_comment(carol, WORK_KEY, '익명').nickname is None


@pytest.mark.parametrize('text', ['', '   ', None, 'x' * 1001])
def test_create_comment_rejects_invalid_text(store, comment_service, alice, text):
    with pytest.raises(InvalidInput):
        comment_service.create_comment(alice, WORK_KEY, text)
    assert store.query(f'comments/{WORK_KEY}/items') == []


def test_list_comments_latest_first(comment_service, alice):
    ids = [comment_service.create_comment(alice, WORK_KEY, f'댓글 {i}').comment_id for i in range(3)]

    listed = comment_service.list_comments(WORK_KEY)
    assert [c.comment_id for c in listed] == list(reversed(ids))

    assert [c.comment_id for c in comment_service.list_comments(WORK_KEY, limit=2)] == [ids[2], ids[1]]
    assert comment_service.list_comments('kakao_9999') == []


def test_list_comments_recommended(comment_service, vote_service, alice, bob, carol):
    first = comment_service.create_comment(alice, WORK_KEY, '첫 번째')
    second = comment_service.create_comment(alice, WORK_KEY, '두 번째')
    third = comment_service.create_comment(alice, WORK_KEY, '세 번째')
    vote_service.cast_vote(bob, WORK_KEY, first.comment_id, 'up')
    vote_service.cast_vote(carol, WORK_KEY, first.comment_id, 'up')
    vote_service.cast_vote(bob, WORK_KEY, second.comment_id, 'down')

    listed = comment_service.list_comments(WORK_KEY, sort='recommended')

    # 동점(third, 0점)은 최신순을 유지
    assert [c.comment_id for c in listed] == [first.comment_id, third.comment_id, second.comment_id]
    assert listed[0].score == 2


def test_list_comments_rejects_unknown_sort(comment_service):
    with pytest.raises(InvalidInput):
        comment_service.list_comments(WORK_KEY, sort='oldest')


def test_page_size_limits_listing(store, profile_service, alice):
    service = CommentService(store, profile_service=profile_service, page_size=2)
    for i in range(3):
        service.create_comment(alice, WORK_KEY, f'댓글 {i}')
    assert len(service.list_comments(WORK_KEY)) == 2


def test_edit_comment(comment_service, alice):
    comment = comment_service.create_comment(alice, WORK_KEY, '오타 있음')

    edited = comment_service.edit_comment(alice, WORK_KEY, comment.comment_id, '오타 수정')

    assert edited.text == '오타 수정'
    assert edited.created_at == comment.created_at
    assert edited.updated_at > comment.updated_at


def test_edit_comment_keeps_vote_counts(comment_service, vote_service, alice, bob):
    comment = comment_service.create_comment(alice, WORK_KEY, '원문')
    vote_service.cast_vote(bob, WORK_KEY, comment.comment_id, 'up')

    edited = comment_service.edit_comment(alice, WORK_KEY, comment.comment_id, '수정본')
    assert edited.up_count == 1


def test_edit_comment_requires_owner(comment_service, alice, bob):
    comment = comment_service.create_comment(alice, WORK_KEY, '내 댓글')

    with pytest.raises(PermissionDenied) as exc_info:
        comment_service.edit_comment(bob, WORK_KEY, comment.comment_id, '남의 댓글 수정')
    assert exc_info.value.status_code == 403
    assert comment_service.get_comment(WORK_KEY, comment.comment_id).text == '내 댓글'

    with pytest.raises(NotFound):
        comment_service.edit_comment(alice, WORK_KEY, 'missing', '없는 댓글')
    with pytest.raises(InvalidInput):
        comment_service.edit_comment(alice, WORK_KEY, comment.comment_id, '  ')


def test_delete_comment(comment_service, alice, bob):
    comment = comment_service.create_comment(alice, WORK_KEY, '지울 댓글')

    with pytest.raises(PermissionDenied):
        comment_service.delete_comment(bob, WORK_KEY, comment.comment_id)
    assert comment_service.get_comment(WORK_KEY, comment.comment_id) is not None

    comment_service.delete_comment(alice, WORK_KEY, comment.comment_id)
    assert comment_service.get_comment(WORK_KEY, comment.comment_id) is None

    with pytest.raises(NotFound):
        comment_service.delete_comment(alice, WORK_KEY, comment.comment_id)
