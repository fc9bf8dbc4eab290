# toonrank/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 유틸리티 모듈

- 백엔드의 모든 시각은 UTC timezone-aware datetime 으로 통일합니다.
- 저장소에 쓰기 전/읽은 후 변환을 한 곳에서 처리합니다.
- 랭킹 스냅샷 날짜(YYYY-MM-DD) 검증을 제공합니다.
"""

import logging
import re
from datetime import datetime, date, timezone, time
from typing import Any
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 스냅샷 문서 ID 형식: 2024-01-15
SNAPSHOT_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 ISO 포맷 문자열로 변환 (Z 접미사)"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        elif isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        저장소에서 읽은 데이터의 datetime 필드를 UTC datetime 으로 변환

        Firestore 의 DatetimeWithNanoseconds 도 datetime 의 하위 클래스이므로 같은 규칙을 따릅니다.
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)
            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]
            return obj
        except Exception as e:
            logger.error(f"저장소 읽기 변환 실패: {obj} ({type(obj)}) - {e}")
            # 변환 실패 시 원본 객체 반환 (로그만 남김)
            return obj

    @staticmethod
    def parse_snapshot_date(value: str) -> date:
        """
        랭킹 스냅샷 날짜 문자열(YYYY-MM-DD)을 검증하고 date 로 변환

        Raises:
            ValueError: 형식이 맞지 않거나 존재하지 않는 날짜인 경우
        """
        if not value or not SNAPSHOT_DATE_PATTERN.match(value):
            raise ValueError(f"잘못된 스냅샷 날짜 형식입니다: {value}")
        try:
            return dateutil_parser.isoparse(value).date()
        except (ValueError, OverflowError) as e:
            logger.error(f"스냅샷 날짜 파싱 실패: {value} - {e}")
            raise ValueError(f"잘못된 스냅샷 날짜 형식입니다: {value}")


# 편의를 위한 글로벌 함수들
def now() -> datetime:
    """현재 UTC 시간 반환"""
    return DateTimeUtils.now()

def to_iso(dt: datetime) -> str:
    """datetime을 ISO 문자열로 변환"""
    return DateTimeUtils.to_iso_string(dt)

def for_firestore(obj: Any) -> Any:
    """저장용 변환"""
    return DateTimeUtils.for_firestore(obj)

def from_firestore(obj: Any) -> Any:
    """읽기용 변환"""
    return DateTimeUtils.from_firestore(obj)
