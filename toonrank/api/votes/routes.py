# toonrank/api/votes/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from toonrank.api.votes.schemas import VoteRequestSchema, VoteResponseSchema
from toonrank.core.security import current_identity

votes_bp = Blueprint('votes_bp', __name__)


@votes_bp.route('/<string:work_key>/comments/<string:comment_id>/vote', methods=['POST'])
@jwt_required()
def cast_vote(work_key: str, comment_id: str):
    """
    댓글에 추천/비추천을 누르거나 취소합니다.
    - 내가 작성한 댓글이면 403 SELF_VOTE_FORBIDDEN
    """
    vote_service = current_app.services['votes']
    data = VoteRequestSchema().load(request.get_json(silent=True) or {})
    result = vote_service.cast_vote(current_identity(), work_key, comment_id, data['direction'])
    return jsonify(VoteResponseSchema().dump(result)), 200


@votes_bp.route('/<string:work_key>/comments/<string:comment_id>/vote', methods=['GET'])
@jwt_required()
def get_my_vote(work_key: str, comment_id: str):
    vote_service = current_app.services['votes']
    value = vote_service.get_vote(current_identity().uid, work_key, comment_id)
    return jsonify({"value": value}), 200
