# toonrank/models/identity.py
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from toonrank.core.exceptions import InvalidInput


@dataclass(frozen=True)
class Identity:
    """
    외부 인증 제공자가 보증하는 사용자 신원.
    uid 만이 기본 키로 신뢰되며, email/provider_id 는 참고용 정보입니다.
    """
    uid: str
    email: Optional[str] = None
    provider_id: Optional[str] = None

    def __post_init__(self):
        if not self.uid or not str(self.uid).strip():
            raise InvalidInput("사용자 식별자가 비어 있습니다.")

    @classmethod
    def from_provider_record(cls, record: Mapping[str, Any]) -> 'Identity':
        """{uid, email, providerData: [{providerId}]} 형식의 인증 레코드로부터 생성합니다."""
        provider_data = record.get('providerData') or []
        provider_id = None
        if provider_data and isinstance(provider_data[0], Mapping):
            provider_id = provider_data[0].get('providerId')
        return cls(uid=record.get('uid'), email=record.get('email'), provider_id=provider_id)

    @classmethod
    def from_jwt_claims(cls, uid: str, claims: Dict[str, Any]) -> 'Identity':
        """JWT identity(uid)와 추가 클레임(email, provider_id)으로부터 생성합니다."""
        return cls(uid=uid, email=claims.get('email'), provider_id=claims.get('provider_id'))
