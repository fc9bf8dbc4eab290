# toonrank/api/profiles/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from toonrank.api.profiles.schemas import NicknameUpdateSchema, ProfileResponseSchema, PublicProfileSchema
from toonrank.core.security import current_identity

profiles_bp = Blueprint('profiles_bp', __name__)


@profiles_bp.route('/me', methods=['POST'])
@jwt_required()
def ensure_my_profile():
    """
    로그인 직후 호출되어 프로필이 없으면 생성합니다. 이미 있으면 그대로 반환합니다.
    """
    profile_service = current_app.services['profiles']
    profile = profile_service.ensure_profile(current_identity())
    return jsonify(ProfileResponseSchema().dump(profile)), 200


@profiles_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    profile_service = current_app.services['profiles']
    profile = profile_service.get_profile(current_identity().uid)
    if not profile:
        return jsonify({"error_code": "PROFILE_NOT_FOUND", "message": "프로필이 아직 생성되지 않았습니다."}), 404
    return jsonify(ProfileResponseSchema().dump(profile)), 200


@profiles_bp.route('/me/nickname', methods=['PUT'])
@jwt_required()
def update_my_nickname():
    """
    닉네임을 변경합니다.
    - 다른 사용자가 사용 중이면 409 NICKNAME_TAKEN
    - 비어 있거나 형식이 잘못되면 400 INVALID_INPUT
    """
    profile_service = current_app.services['profiles']
    data = NicknameUpdateSchema().load(request.get_json(silent=True) or {})
    profile = profile_service.set_nickname(current_identity(), data['nickname'])
    return jsonify(ProfileResponseSchema().dump(profile)), 200


@profiles_bp.route('/nicknames/<string:nickname>/availability', methods=['GET'])
def get_nickname_availability(nickname: str):
    """닉네임 사용 가능 여부(대소문자 무관)를 조회합니다. 실제 점유는 변경 시점의 트랜잭션이 결정합니다."""
    profile_service = current_app.services['profiles']
    claim = profile_service.get_claim(nickname)
    return jsonify({"nickname": nickname.strip(), "available": claim is None}), 200


@profiles_bp.route('/<string:uid>', methods=['GET'])
def get_public_profile(uid: str):
    profile_service = current_app.services['profiles']
    profile = profile_service.get_profile(uid)
    if not profile:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
    return jsonify(PublicProfileSchema().dump(profile)), 200
