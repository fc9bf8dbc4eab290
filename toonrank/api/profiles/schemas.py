# toonrank/api/profiles/schemas.py
from marshmallow import Schema, fields


class NicknameUpdateSchema(Schema):
    """
    PUT /api/profiles/me/nickname
    닉네임 변경 요청 본문. 길이/형식 검증은 서비스에서 설정값 기준으로 수행합니다.
    """
    nickname = fields.Str(required=True, error_messages={"required": "nickname은 필수 항목입니다."})


class ProfileResponseSchema(Schema):
    """본인 프로필 응답 스키마."""
    uid = fields.Str(required=True)
    email = fields.Str(allow_none=True)
    provider_id = fields.Str(allow_none=True)
    nickname = fields.Str(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class PublicProfileSchema(Schema):
    """
    GET /api/profiles/{uid}
    다른 사용자에게는 email, provider 정보를 노출하지 않습니다.
    """
    uid = fields.Str(required=True)
    nickname = fields.Str(allow_none=True)
