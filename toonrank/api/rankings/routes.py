# toonrank/api/rankings/routes.py
from flask import Blueprint, request, jsonify, current_app

from toonrank.api.rankings.schemas import SnapshotQuerySchema, WorkSchema

rankings_bp = Blueprint('rankings_bp', __name__)


@rankings_bp.route('/<string:platform>/latest', methods=['GET'])
def get_latest_snapshot(platform: str):
    """가장 최근 스냅샷 날짜와 메타 정보를 조회합니다."""
    ranking_service = current_app.services['rankings']
    date = ranking_service.latest_snapshot_date(platform)
    if date is None:
        return jsonify({"error_code": "SNAPSHOT_NOT_FOUND", "message": "랭킹 데이터가 아직 없습니다."}), 404
    meta = ranking_service.snapshot_meta(platform, date)
    return jsonify({"date": date, "count": meta.count if meta else None}), 200


@rankings_bp.route('/<string:platform>/snapshots/<string:date>', methods=['GET'])
def get_snapshot_items(platform: str, date: str):
    """
    스냅샷 항목을 조회합니다.
    - weekday 가 있으면 해당 요일 항목을 rank 순으로 반환합니다.
    """
    ranking_service = current_app.services['rankings']
    query = SnapshotQuerySchema().load(request.args)
    if query['weekday']:
        items = ranking_service.snapshot_items_by_weekday(platform, date, query['weekday'], query['take'])
    else:
        items = ranking_service.snapshot_items(platform, date, query['take'])
    return jsonify({"date": date, "platform": platform, "works": WorkSchema(many=True).dump(items)}), 200


@rankings_bp.route('/works/<string:platform>/<string:work_id>', methods=['GET'])
def get_work(platform: str, work_id: str):
    ranking_service = current_app.services['rankings']
    work = ranking_service.get_work(platform, work_id)
    if not work:
        return jsonify({"error_code": "WORK_NOT_FOUND", "message": "작품 정보를 찾을 수 없습니다."}), 404
    return jsonify(WorkSchema().dump(work)), 200
