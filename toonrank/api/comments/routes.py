# toonrank/api/comments/routes.py
from flask import Blueprint, request, jsonify, Response, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from toonrank.api.comments.schemas import CommentCreateSchema, CommentListQuerySchema, CommentResponseSchema
from toonrank.core.security import current_identity

comments_bp = Blueprint('comments_bp', __name__)


@comments_bp.route('/<string:work_key>/comments', methods=['POST'])
@jwt_required()
def create_comment(work_key: str):
    """
    작품에 새로운 댓글을 작성합니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    comment_service = current_app.services['comments']
    data = CommentCreateSchema().load(request.get_json(silent=True) or {})
    new_comment = comment_service.create_comment(current_identity(), work_key, data['text'])
    return jsonify(CommentResponseSchema().dump(new_comment)), 201


@comments_bp.route('/<string:work_key>/comments', methods=['GET'])
@jwt_required(optional=True)
def get_comments(work_key: str):
    """
    작품의 댓글 목록을 조회합니다. (sort=latest|recommended)
    로그인한 경우 각 댓글에 대한 내 투표 값(my_vote)을 함께 반환합니다.
    """
    comment_service = current_app.services['comments']
    vote_service = current_app.services['votes']
    query = CommentListQuerySchema().load(request.args)
    comments = comment_service.list_comments(work_key, query['sort'], query['limit'])
    payload = CommentResponseSchema(many=True).dump(comments)

    uid = get_jwt_identity()
    if uid:
        my_votes = vote_service.get_votes(uid, work_key, [c.comment_id for c in comments])
        for item in payload:
            item['my_vote'] = my_votes.get(item['comment_id'], 0)
    return jsonify({"comments": payload}), 200


@comments_bp.route('/<string:work_key>/comments/<string:comment_id>', methods=['PATCH'])
@jwt_required()
def edit_comment(work_key: str, comment_id: str):
    """댓글 내용을 수정합니다. (작성자 본인만 가능)"""
    comment_service = current_app.services['comments']
    data = CommentCreateSchema().load(request.get_json(silent=True) or {})
    comment = comment_service.edit_comment(current_identity(), work_key, comment_id, data['text'])
    return jsonify(CommentResponseSchema().dump(comment)), 200


@comments_bp.route('/<string:work_key>/comments/<string:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(work_key: str, comment_id: str):
    """댓글을 삭제합니다. (작성자 본인만 가능)"""
    comment_service = current_app.services['comments']
    comment_service.delete_comment(current_identity(), work_key, comment_id)
    return Response(status=204)
