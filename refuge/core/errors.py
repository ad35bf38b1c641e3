"""
Domain errors for refuge.

Classification and categorization are total and never raise; only
validation, source fetches and persistence use these types.
"""

from typing import Optional


class RefugeError(Exception):
    """refuge 도메인 오류의 기본 클래스"""


class ValidationError(RefugeError):
    """잘못된 위치/반경 입력"""


class NotFoundError(RefugeError):
    """사용자, 태그, 자원을 찾을 수 없음"""


class SourceUnavailable(RefugeError):
    """외부 데이터 소스 조회 실패"""

    def __init__(self, source: str, cause: Optional[BaseException] = None):
        self.source = source
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"source '{source}' unavailable{detail}")


class TagConflict(RefugeError):
    """저장소가 public_tag 유일성 위반을 알림"""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"public tag '{tag}' already taken")


class TagAssignmentExhausted(RefugeError):
    """태그 충돌 재시도 한도 초과"""

    def __init__(self, user_id: str, attempts: int):
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(f"could not assign a unique tag to user {user_id} after {attempts} attempts")


class SelfReferenceError(RefugeError):
    """자기 자신을 이웃으로 추가하려는 시도"""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"user {user_id} cannot be their own neighbor")


class InvalidStateTransition(RefugeError):
    """허용되지 않은 자원 상태 전이"""

    def __init__(self, resource_id: str, current: str, target: str):
        self.resource_id = resource_id
        self.current = current
        self.target = target
        super().__init__(f"resource {resource_id}: cannot transition {current} -> {target}")


class RouteUnavailable(RefugeError):
    """경로 제공자 오류"""
