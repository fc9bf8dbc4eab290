# toonrank/api/comments/schemas.py
from marshmallow import EXCLUDE, Schema, fields, validate


class CommentCreateSchema(Schema):
    """
    POST /api/works/{work_key}/comments
    PATCH /api/works/{work_key}/comments/{comment_id}
    댓글 작성/수정 요청 본문.
    """
    text = fields.Str(required=True, error_messages={"required": "text는 필수 항목입니다."})


class CommentListQuerySchema(Schema):
    """GET /api/works/{work_key}/comments 쿼리 파라미터."""
    class Meta:
        unknown = EXCLUDE

    sort = fields.Str(load_default='latest', validate=validate.OneOf(['latest', 'recommended']))
    limit = fields.Int(load_default=None, allow_none=True, validate=validate.Range(min=1, max=100))


class CommentResponseSchema(Schema):
    """
    댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다.
    """
    comment_id = fields.Str(required=True)
    work_key = fields.Str(required=True)
    uid = fields.Str(required=True)
    nickname = fields.Str(allow_none=True)
    text = fields.Str(required=True)
    up_count = fields.Int(required=True)
    down_count = fields.Int(required=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)

    # 요청한 사용자가 로그인한 경우에만 채워지는 응답 전용 필드
    my_vote = fields.Int(dump_only=True, dump_default=0)
