# toonrank/models/user.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class UserProfile:
    """
    'users/{uid}' 문서 구조를 정의하는 데이터클래스.
    nickname 은 표시용 원문(대소문자/공백 보존)이며, 아직 설정하지 않았다면 None 입니다.
    """
    uid: str
    email: Optional[str] = None
    provider_id: Optional[str] = None
    nickname: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, uid: str, data: Dict[str, Any]) -> 'UserProfile':
        return cls(
            uid=uid,
            email=data.get('email'),
            provider_id=data.get('providerId'),
            nickname=data.get('nickname'),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )


@dataclass
class NicknameClaim:
    """
    'nicknames/{normalized}' 문서 구조.
    정규화된 닉네임 하나당 문서 하나만 존재하며, uid 가 소유자에 대한 유일한 근거입니다.
    """
    uid: str
    nickname: str
    normalized: str
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> 'NicknameClaim':
        return cls(
            uid=data.get('uid'),
            nickname=data.get('nickname'),
            normalized=data.get('normalized'),
            updated_at=data.get('updatedAt'),
        )
