# toonrank/api/favorites/schemas.py
from marshmallow import Schema, fields


class FavoriteResponseSchema(Schema):
    """
    GET /api/favorites
    찜한 시점에 복사해 둔 작품 표시 정보.
    """
    platform = fields.Str(required=True)
    id = fields.Str(required=True)
    title = fields.Str(allow_none=True)
    author = fields.Str(allow_none=True)
    thumbnail = fields.Str(allow_none=True)
    rating = fields.Float(allow_none=True)
    weekday = fields.Str(allow_none=True)
    link = fields.Str(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
