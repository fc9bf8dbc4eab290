# toonrank/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from typing import Optional
from flask import Flask, jsonify
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정 및 예외
from toonrank.core.config import config_by_name
from toonrank.core.exceptions import ToonrankError

# - 저장소
from toonrank.services.document_store import DocumentStore
from toonrank.services.memory_store import MemoryDocumentStore
from toonrank.services.firestore_store import FirestoreDocumentStore

# - API 블루프린트
from toonrank.api.profiles.routes import profiles_bp
from toonrank.api.comments.routes import comments_bp
from toonrank.api.votes.routes import votes_bp
from toonrank.api.favorites.routes import favorites_bp
from toonrank.api.rankings.routes import rankings_bp

# - 서비스 클래스
from toonrank.api.profiles.services import ProfileService
from toonrank.api.comments.services import CommentService
from toonrank.api.votes.services import VoteService
from toonrank.api.favorites.services import FavoriteService
from toonrank.api.rankings.services import RankingService


def create_document_store(app: Flask) -> DocumentStore:
    """설정(DOCUMENT_STORE)에 따라 앱 전체에서 공유할 저장소를 하나 생성합니다."""
    max_attempts = app.config['TRANSACTION_MAX_ATTEMPTS']
    if app.config['DOCUMENT_STORE'] == 'memory':
        return MemoryDocumentStore(max_attempts=max_attempts)

    if not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if cred_path:
            if not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
        else:
            cred = credentials.ApplicationDefault()
        options = {'projectId': app.config['FIREBASE_PROJECT_ID']} if app.config['FIREBASE_PROJECT_ID'] else None
        firebase_admin.initialize_app(cred, options)
    return FirestoreDocumentStore(firestore.client(), max_attempts=max_attempts)


def create_app(config_name: Optional[str] = None, store: Optional[DocumentStore] = None):
    """
    Flask 애플리케이션 팩토리 함수.
    store 를 넘기면 설정과 무관하게 해당 저장소를 사용합니다. (테스트용)
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    if not app.config.get('JWT_SECRET_KEY'):
        raise ValueError("필수 환경 변수가 설정되지 않았습니다: JWT_SECRET_KEY")

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    try:
        app.store = store if store is not None else create_document_store(app)
        logging.info(f"Document store initialized successfully ({type(app.store).__name__})")
    except Exception as e:
        logging.error(f"Failed to initialize document store: {e}")
        raise

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 저장소만 필요한 기반 서비스
    app.services['profiles'] = ProfileService(
        app.store, nickname_max_length=app.config['NICKNAME_MAX_LENGTH']
    )
    app.services['rankings'] = RankingService(app.store)

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스
    app.services['comments'] = CommentService(
        app.store,
        profile_service=app.services['profiles'],
        max_length=app.config['COMMENT_MAX_LENGTH'],
        page_size=app.config['COMMENT_PAGE_SIZE']
    )
    app.services['votes'] = VoteService(app.store, comment_service=app.services['comments'])
    app.services['favorites'] = FavoriteService(app.store, ranking_service=app.services['rankings'])

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(profiles_bp, url_prefix='/api/profiles')
    app.register_blueprint(comments_bp, url_prefix='/api/works')
    app.register_blueprint(votes_bp, url_prefix='/api/works')
    app.register_blueprint(favorites_bp, url_prefix='/api/favorites')
    app.register_blueprint(rankings_bp, url_prefix='/api/rankings')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ToonrankError)
    def handle_domain_error(err):
        if err.status_code >= 500:
            logging.error(f"Store failure: {err.message} ({err.details})")
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 라우팅 404/405 등 HTTP 예외는 그대로 돌려보냅니다.
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
