# toonrank/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 외부 인증 제공자가 발급한 uid 가 토큰의 identity 로 들어옵니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    # 문서 저장소 종류: 'firestore' (운영) 또는 'memory' (테스트/로컬)
    DOCUMENT_STORE = os.getenv('DOCUMENT_STORE', 'firestore')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')

    # 충돌 시 트랜잭션 본문을 다시 실행하는 최대 횟수
    TRANSACTION_MAX_ATTEMPTS = int(os.getenv('TRANSACTION_MAX_ATTEMPTS', 5))

    NICKNAME_MAX_LENGTH = int(os.getenv('NICKNAME_MAX_LENGTH', 20))
    COMMENT_MAX_LENGTH = int(os.getenv('COMMENT_MAX_LENGTH', 1000))
    COMMENT_PAGE_SIZE = int(os.getenv('COMMENT_PAGE_SIZE', 50))


class DevelopmentConfig(Config):
    """개발 환경 설정. 디버그 모드를 켜고 개발용 Firebase 프로젝트를 사용합니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    """테스트 환경 설정. 외부 저장소 없이 메모리 저장소를 사용합니다."""
    TESTING = True
    DEBUG = False
    DOCUMENT_STORE = 'memory'
    JWT_SECRET_KEY = os.getenv('TEST_JWT_SECRET_KEY', 'toonrank-testing-secret-key-0123456789')


class ProductionConfig(Config):
    DEBUG = False


# FLASK_ENV 값에 따라 create_app 에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
