# toonrank/api/profiles/services.py

import logging
import re
from typing import Callable, Optional

from toonrank.core.exceptions import InvalidInput, NicknameTaken
from toonrank.models.identity import Identity
from toonrank.models.user import NicknameClaim, UserProfile
from toonrank.services.document_store import DocumentStore, Subscription, doc_path

USERS_COLLECTION = 'users'
NICKNAMES_COLLECTION = 'nicknames'

# Firestore 가 문서 ID 로 허용하지 않는 형태 ('.', '..', '__xxx__')
_RESERVED_ID_PATTERN = re.compile(r'^(\.{1,2}|__.*__)$')


def normalize_nickname(raw: str) -> str:
    """닉네임 중복 판단에 사용하는 키: 앞뒤 공백 제거 후 소문자."""
    return raw.strip().lower()


class ProfileService:
    """
    사용자 프로필과 닉네임 레지스트리를 담당하는 서비스 클래스.

    - 'users/{uid}' 프로필 문서는 처음 인증된 사용자를 볼 때 생성됩니다.
    - 'nicknames/{normalized}' 클레임 문서가 닉네임 유일성을 보장하는 유일한 수단입니다.
      클레임의 생성/삭제/갱신은 반드시 set_nickname 트랜잭션을 통해서만 일어납니다.
    """
    def __init__(self, store: DocumentStore, nickname_max_length: int = 20):
        """서비스 초기화 시 주입받은 저장소를 사용합니다."""
        self.store = store
        self.nickname_max_length = nickname_max_length

    def _user_path(self, uid: str) -> str:
        return doc_path(USERS_COLLECTION, uid)

    def _claim_path(self, normalized: str) -> str:
        return doc_path(NICKNAMES_COLLECTION, normalized)

    def _new_profile_fields(self, identity: Identity) -> dict:
        now = self.store.server_timestamp()
        return {
            'uid': identity.uid,
            'email': identity.email,
            'providerId': identity.provider_id,
            'nickname': None,
            'createdAt': now,
            'updatedAt': now,
        }

    def _validate_nickname(self, raw_nickname: Optional[str]) -> str:
        nickname = (raw_nickname or '').strip()
        if not nickname:
            raise InvalidInput("닉네임을 입력해주세요.")
        if len(nickname) > self.nickname_max_length:
            raise InvalidInput(f"닉네임은 {self.nickname_max_length}자 이하로 입력해주세요.")
        if '/' in nickname or _RESERVED_ID_PATTERN.match(nickname):
            raise InvalidInput("사용할 수 없는 닉네임입니다.")
        return nickname

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        """프로필 문서를 조회합니다. 아직 생성되지 않았다면 None."""
        data = self.store.get(self._user_path(uid))
        if data is None:
            return None
        return UserProfile.from_document(uid, data)

    def get_claim(self, nickname: str) -> Optional[NicknameClaim]:
        """닉네임(대소문자 무관)의 현재 소유 클레임을 조회합니다."""
        normalized = normalize_nickname(self._validate_nickname(nickname))
        data = self.store.get(self._claim_path(normalized))
        if data is None:
            return None
        return NicknameClaim.from_document(data)

    def ensure_profile(self, identity: Identity) -> UserProfile:
        """
        프로필이 없으면 nickname=None 으로 생성합니다.
        여러 번, 혹은 동시에 호출되어도 프로필은 하나만 만들어지고 기존 문서는 변경되지 않습니다.
        """
        user_path = self._user_path(identity.uid)
        existing = self.store.get(user_path)
        if existing is not None:
            return UserProfile.from_document(identity.uid, existing)

        def _create_if_missing(transaction) -> bool:
            if transaction.get(user_path) is not None:
                return False
            transaction.set(user_path, self._new_profile_fields(identity))
            return True

        if self.store.run_transaction(_create_if_missing):
            logging.info(f"사용자 프로필 생성 완료 (uid: {identity.uid})")
        return self.get_profile(identity.uid)

    def set_nickname(self, identity: Identity, raw_nickname: str) -> UserProfile:
        """
        닉네임을 하나의 트랜잭션으로 점유/변경합니다.

        1. 프로필, 목표 클레임, (다르다면) 이전 클레임을 먼저 모두 읽습니다.
        2. 목표 클레임을 다른 uid 가 소유하고 있으면 NicknameTaken 으로 중단합니다. (쓰기 없음)
        3. 이전 클레임이 여전히 내 소유라면 삭제하고, 목표 클레임과 프로필을 merge 로 기록합니다.
        프로필이 없었다면 같은 쓰기에서 생성합니다.
        읽은 문서가 커밋 전에 바뀌면 저장소가 본문 전체를 다시 실행합니다.
        """
        nickname = self._validate_nickname(raw_nickname)
        normalized = normalize_nickname(nickname)
        uid = identity.uid
        user_path = self._user_path(uid)
        claim_path = self._claim_path(normalized)

        def _claim_in_transaction(transaction) -> Optional[str]:
            # --- 읽기 ---
            profile_data = transaction.get(user_path)
            current_nickname = (profile_data or {}).get('nickname')
            current_normalized = normalize_nickname(str(current_nickname)) if current_nickname else None

            claim = transaction.get(claim_path)
            claimed_uid = (claim or {}).get('uid')
            if claimed_uid and claimed_uid != uid:
                raise NicknameTaken(nickname)

            previous_claim_path = None
            if current_normalized and current_normalized != normalized:
                candidate_path = self._claim_path(current_normalized)
                previous = transaction.get(candidate_path)
                # 이미 다른 사람이 가져간 이전 닉네임은 건드리지 않습니다.
                if previous is not None and previous.get('uid') == uid:
                    previous_claim_path = candidate_path

            # --- 쓰기 ---
            now = self.store.server_timestamp()
            if previous_claim_path:
                transaction.delete(previous_claim_path)

            transaction.set(claim_path, {
                'uid': uid,
                'nickname': nickname,
                'normalized': normalized,
                'updatedAt': now,
            }, merge=True)

            profile_update = {'nickname': nickname, 'updatedAt': now}
            # 신원 정보에 없는 값으로 기존 email/providerId 를 지우지 않습니다.
            if identity.email is not None:
                profile_update['email'] = identity.email
            if identity.provider_id is not None:
                profile_update['providerId'] = identity.provider_id
            if profile_data is None:
                profile_update = {**self._new_profile_fields(identity), **profile_update}
            transaction.set(user_path, profile_update, merge=True)
            return current_nickname

        try:
            previous_nickname = self.store.run_transaction(_claim_in_transaction)
        except NicknameTaken:
            logging.info(f"닉네임 점유 실패: 이미 사용 중 (uid: {uid}, nickname: {nickname})")
            raise

        logging.info(f"닉네임 변경 완료 (uid: {uid}, {previous_nickname!r} -> {nickname!r})")
        return self.get_profile(uid)

    def subscribe_profile(self, uid: str,
                          on_change: Callable[[Optional[UserProfile]], None]) -> Subscription:
        """
        프로필 문서의 현재 값을 즉시 한 번 전달하고, 이후 변경될 때마다 다시 전달합니다.
        문서가 아직 없으면 None 이 전달됩니다. 반환된 Subscription.unsubscribe() 로 해제합니다.
        """
        def _deliver(data):
            on_change(UserProfile.from_document(uid, data) if data is not None else None)

        return self.store.subscribe(self._user_path(uid), _deliver)
