# toonrank/api/rankings/schemas.py
from marshmallow import EXCLUDE, Schema, fields, validate


class WorkSchema(Schema):
    """랭킹 항목/작품 상세 응답 스키마."""
    platform = fields.Str(required=True)
    id = fields.Str(required=True)
    title = fields.Str(allow_none=True)
    author = fields.Str(allow_none=True)
    thumbnail = fields.Str(allow_none=True)
    rating = fields.Float(allow_none=True)
    rank = fields.Float(allow_none=True)
    weekday = fields.Str(allow_none=True)
    link = fields.Str(allow_none=True)
    tags = fields.List(fields.Str(), allow_none=True)


class SnapshotQuerySchema(Schema):
    """GET /api/rankings/{platform}/snapshots/{date} 쿼리 파라미터."""
    class Meta:
        unknown = EXCLUDE

    weekday = fields.Str(load_default=None, allow_none=True)
    take = fields.Int(load_default=30, validate=validate.Range(min=1, max=100))
