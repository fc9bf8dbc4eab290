# toonrank/api/votes/schemas.py
from marshmallow import Schema, fields, validate


class VoteRequestSchema(Schema):
    """
    POST /api/works/{work_key}/comments/{comment_id}/vote
    같은 방향을 다시 보내면 투표가 취소됩니다.
    """
    direction = fields.Str(
        required=True,
        validate=validate.OneOf(['up', 'down'], error="direction은 'up' 또는 'down'이어야 합니다.")
    )


class VoteResponseSchema(Schema):
    value = fields.Int(required=True)
    up_count = fields.Int(required=True)
    down_count = fields.Int(required=True)
