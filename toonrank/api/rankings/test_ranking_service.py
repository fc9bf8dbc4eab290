# toonrank/api/rankings/test_ranking_service.py
"""
랭킹 스냅샷/작품 조회 테스트

사용법: python -m pytest toonrank/api/rankings/test_ranking_service.py -v
"""
import pytest

from toonrank.core.exceptions import InvalidInput
from toonrank.models.work import Work, read_string_list

SNAPSHOTS = 'externalRankings/naver/snapshots'


@pytest.fixture
def seeded(store):
    store.set(f'{SNAPSHOTS}/2024-01-14', {'count': 2})
    store.set(f'{SNAPSHOTS}/2024-01-15', {'count': 4})
    items = f'{SNAPSHOTS}/2024-01-15/items'
    store.set(f'{items}/001', {'id': 747269, 'title': '전지적 독자 시점', 'rank': 2, 'weekday': 'mon',
                               'rating': 9.9, 'tags': [' 판타지 ', '', '액션']})
    store.set(f'{items}/002', {'id': '183559', 'title': '신의 탑', 'rank': 1, 'weekday': 'mon'})
    store.set(f'{items}/003', {'id': '769209', 'title': '랭크 없음', 'weekday': 'mon', 'rank': 'n/a'})
    store.set(f'{items}/004', {'id': '758037', 'title': '참교육', 'rank': 3, 'weekday': 'tue'})
    store.set('works/naver_747269', {'title': '전지적 독자 시점', 'author': '슬리피-C', 'rating': float('nan'),
                                     'thumbnail': 'https://example.com/747269.jpg', 'tags': []})
    return store


def test_latest_snapshot_date(ranking_service, seeded):
    assert ranking_service.latest_snapshot_date('naver') == '2024-01-15'
    assert ranking_service.latest_snapshot_date('kakao') is None


def test_snapshot_meta(ranking_service, seeded):
    meta = ranking_service.snapshot_meta('naver', '2024-01-15')
    assert meta.date == '2024-01-15'
    assert meta.count == 4
    assert ranking_service.snapshot_meta('naver', '2024-01-01') is None


def test_snapshot_items_in_document_order(ranking_service, seeded):
    items = ranking_service.snapshot_items('naver', '2024-01-15', take=3)

    assert [w.id for w in items] == ['747269', '183559', '769209']
    first = items[0]
    assert first.platform == 'naver'
    assert first.key == 'naver_747269'
    assert first.rating == 9.9
    assert first.tags == ['판타지', '액션']


def test_snapshot_items_by_weekday_sorted_by_rank(ranking_service, seeded):
    items = ranking_service.snapshot_items_by_weekday('naver', '2024-01-15', 'mon')

    assert [w.id for w in items] == ['183559', '747269', '769209']
    # 숫자가 아닌 rank 는 None 으로 읽혀 맨 뒤로
    assert items[-1].rank is None

    assert [w.id for w in ranking_service.snapshot_items_by_weekday('naver', '2024-01-15', 'mon', take=1)] == ['183559']
    assert ranking_service.snapshot_items_by_weekday('naver', '2024-01-15', 'sun') == []


def test_get_work_uses_fallback_id_and_sanitizes(ranking_service, seeded):
    work = ranking_service.get_work('naver', '747269')

    assert work.id == '747269'
    assert work.author == '슬리피-C'
    assert work.rating is None
    assert work.tags is None
    assert ranking_service.get_work('naver', '000000') is None


@pytest.mark.parametrize('call', [
    lambda s: s.latest_snapshot_date('lezhin'),
    lambda s: s.snapshot_items('naver', '2024/01/15'),
    lambda s: s.snapshot_items('naver', '2024-01-15', take=0),
    lambda s: s.snapshot_items('naver', '2024-01-15', take=101),
    lambda s: s.snapshot_meta('naver', '2024-02-30'),
    lambda s: s.get_work('ridi', '1'),
    lambda s: s.get_work('naver', 'a/b'),
])
def test_invalid_arguments(ranking_service, call):
    with pytest.raises(InvalidInput):
        call(ranking_service)


def test_work_from_document_ignores_wrong_types():
    work = Work.from_document('kakao', {'id': '', 'title': 123, 'rank': True, 'link': None}, fallback_id='42')
    assert work.id == '42'
    assert work.title is None
    assert work.rank is None
    assert read_string_list('판타지') is None
