# toonrank/core/security.py
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity

from toonrank.models.identity import Identity


def current_identity() -> Identity:
    """@jwt_required() 로 보호된 요청에서 인증된 사용자 신원을 꺼냅니다."""
    return Identity.from_jwt_claims(get_jwt_identity(), get_jwt())


def create_identity_token(identity: Identity) -> str:
    """외부 인증 제공자가 확인한 신원으로 access token 을 발급합니다. (앱 컨텍스트 필요)"""
    return create_access_token(
        identity=identity.uid,
        additional_claims={'email': identity.email, 'provider_id': identity.provider_id}
    )
