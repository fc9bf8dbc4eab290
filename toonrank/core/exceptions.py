# toonrank/core/exceptions.py
"""
서비스 계층에서 발생하는 도메인 예외 정의.

각 예외는 API 응답에 사용할 error_code 와 HTTP 상태 코드를 함께 가지고 있어,
create_app 에 등록된 하나의 에러 핸들러가 일관된 JSON 응답을 만들 수 있습니다.
"""
from typing import Optional


class ToonrankError(Exception):
    """모든 도메인 예외의 기반 클래스."""
    error_code = "TOONRANK_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error_code": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInput(ToonrankError, ValueError):
    """호출자가 넘긴 값이 로컬 검증을 통과하지 못한 경우. 저장소 접근 없이 실패합니다."""
    error_code = "INVALID_INPUT"
    status_code = 400


class NotFound(ToonrankError):
    """대상 문서(댓글, 작품 등)가 존재하지 않는 경우."""
    error_code = "NOT_FOUND"
    status_code = 404


class NicknameTaken(ToonrankError):
    """커밋 시점에 다른 사용자가 같은 (정규화된) 닉네임을 소유하고 있는 경우."""
    error_code = "NICKNAME_TAKEN"
    status_code = 409

    def __init__(self, nickname: str):
        super().__init__(
            message="이미 사용 중인 닉네임입니다.",
            details=f"nickname '{nickname}' is owned by another user"
        )
        self.nickname = nickname


class SelfVoteForbidden(ToonrankError):
    """자신이 작성한 댓글에 추천/비추천을 시도한 경우."""
    error_code = "SELF_VOTE_FORBIDDEN"
    status_code = 403

    def __init__(self, comment_id: str):
        super().__init__(message="내가 작성한 댓글에는 추천/비추천할 수 없습니다.")
        self.comment_id = comment_id


class PermissionDenied(ToonrankError, PermissionError):
    """소유하지 않은 댓글/클레임을 수정하려 한 경우."""
    error_code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str):
        # OSError 계열은 위치 인자 두 개를 (errno, strerror)로 해석하므로 message 하나만 넘깁니다.
        super().__init__(message)


class StoreUnavailable(ToonrankError):
    """타임아웃, 네트워크 장애 등 일시적인 저장소 오류. 호출자가 작업 전체를 재시도할 수 있습니다."""
    error_code = "STORE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str = "잠시 후 다시 시도해주세요.", details: Optional[str] = None):
        super().__init__(message=message, details=details)
