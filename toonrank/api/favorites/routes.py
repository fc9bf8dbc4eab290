# toonrank/api/favorites/routes.py
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

from toonrank.api.favorites.schemas import FavoriteResponseSchema
from toonrank.core.security import current_identity

favorites_bp = Blueprint('favorites_bp', __name__)


@favorites_bp.route('', methods=['GET'])
@jwt_required()
def get_my_favorites():
    """내 찜 목록을 최근 순으로 조회합니다."""
    favorite_service = current_app.services['favorites']
    favorites = favorite_service.list_favorites(current_identity().uid)
    return jsonify({"favorites": FavoriteResponseSchema(many=True).dump(favorites)}), 200


@favorites_bp.route('/<string:platform>/<string:work_id>', methods=['POST'])
@jwt_required()
def toggle_favorite(platform: str, work_id: str):
    """찜을 추가하거나 해제합니다."""
    favorite_service = current_app.services['favorites']
    is_favorite = favorite_service.toggle_favorite(current_identity(), platform, work_id)
    return jsonify({"is_favorite": is_favorite}), 200


@favorites_bp.route('/<string:platform>/<string:work_id>', methods=['GET'])
@jwt_required()
def get_favorite_state(platform: str, work_id: str):
    favorite_service = current_app.services['favorites']
    return jsonify({"is_favorite": favorite_service.is_favorite(current_identity().uid, platform, work_id)}), 200
