"""
Community graph for refuge.

This module manages public tags, neighbor edges and shared community
resources on top of a CommunityStorePort. Edges are directed pairs;
mutual links are two explicit inserts.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Callable, List, Optional
from .errors import (
    InvalidStateTransition, NotFoundError, SelfReferenceError,
    TagAssignmentExhausted, TagConflict, ValidationError
)
from .models import CommunityResource, CommunityUser, Location, NeighborEdge
from .validation import validate_radius
from refuge.common.geo import distance_km
from refuge.observability import metrics
from refuge.observability.logging_setup import get_logger

if TYPE_CHECKING:
    from refuge.ports.community_store import CommunityStorePort

log = get_logger("refuge.community")

TAG_LENGTH = 6
MAX_TAG_ATTEMPTS = 5

RESOURCE_TYPES = ("offering", "requesting")

# 허용되는 상태 전이
TRANSITIONS = {
    "claimed": "active",
    "completed": "claimed",
}

def generate_tag() -> str:
    """3바이트 난수 기반 6자리 대문자 16진 태그"""
    return secrets.token_hex(TAG_LENGTH // 2).upper()

def normalize_tag(tag: str) -> str:
    return str(tag).strip().upper()

class CommunityGraph:
    """이웃 관계, 공개 태그, 공유 자원 관리"""

    def __init__(self,
                 store: CommunityStorePort,
                 *,
                 tag_factory: Callable[[], str] = generate_tag,
                 max_tag_attempts: int = MAX_TAG_ATTEMPTS,
                 max_radius_km: float = 500.0):
        """
        초기화합니다.

        Args:
            store: 커뮤니티 저장소
            tag_factory: 태그 생성기
            max_tag_attempts: 태그 충돌 시 최대 시도 횟수
            max_radius_km: 자원 조회 최대 반경
        """
        self.store = store
        self.tag_factory = tag_factory
        self.max_tag_attempts = max_tag_attempts
        self.max_radius_km = max_radius_km

    # ---- 공개 태그 ----

    async def assign_tag(self, user_id: str) -> str:
        """
        사용자에게 고유 공개 태그를 부여합니다.

        이미 태그가 있으면 그대로 반환합니다 (재부여 없음).

        Raises:
            NotFoundError: 사용자가 없음
            TagAssignmentExhausted: 연속 충돌이 한도를 넘음
        """
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")
        if user.public_tag:
            metrics.tag_assignments.labels(result="existing").inc()
            return user.public_tag

        for attempt in range(1, self.max_tag_attempts + 1):
            tag = normalize_tag(self.tag_factory())
            try:
                stored = await self.store.set_public_tag(user_id, tag)
            except TagConflict:
                metrics.tag_collisions.inc()
                log.warning(f"태그 충돌, 재시도 user:{user_id} attempt:{attempt}")
                continue

            if stored:
                metrics.tag_assignments.labels(result="assigned").inc()
                log.info(f"공개 태그 부여됨 user:{user_id} tag:{tag}")
                return tag

            # 동시에 다른 요청이 먼저 태그를 부여함
            current = await self.store.get_user(user_id)
            if current is not None and current.public_tag:
                metrics.tag_assignments.labels(result="existing").inc()
                return current.public_tag
            raise NotFoundError(f"user {user_id} not found")

        metrics.tag_assignments.labels(result="exhausted").inc()
        log.error(f"태그 부여 재시도 한도 초과 user:{user_id} attempts:{self.max_tag_attempts}")
        raise TagAssignmentExhausted(user_id, self.max_tag_attempts)

    async def backfill_tags(self) -> int:
        """태그가 없는 모든 사용자에게 태그를 부여합니다. 부여한 수를 반환합니다."""
        users = await self.store.list_untagged_users()
        count = 0
        for user in users:
            await self.assign_tag(user.id)
            count += 1
        log.info(f"태그 일괄 부여 완료 count:{count}")
        return count

    # ---- 이웃 ----

    async def add_edge(self, user_id: str, neighbor_id: str) -> bool:
        """
        단방향 이웃 간선을 추가합니다. 중복은 무시합니다.

        Returns:
            새로 추가되었으면 True

        Raises:
            SelfReferenceError: user_id == neighbor_id
        """
        if user_id == neighbor_id:
            raise SelfReferenceError(user_id)

        created = await self.store.insert_edge(user_id, neighbor_id)
        if created:
            metrics.neighbor_edges_created.inc()
            log.info(f"이웃 간선 추가됨 user:{user_id} neighbor:{neighbor_id}")
        return created

    async def link_mutual(self, user_id: str, neighbor_id: str) -> None:
        """양방향 간선을 모두 추가합니다."""
        await self.add_edge(user_id, neighbor_id)
        await self.add_edge(neighbor_id, user_id)

    async def add_neighbor_by_tag(self, user_id: str, tag: str) -> CommunityUser:
        """
        공개 태그로 사용자를 찾아 상호 이웃으로 연결합니다.

        Raises:
            ValidationError: 태그가 비어 있음
            NotFoundError: 태그에 해당하는 사용자가 없음
            SelfReferenceError: 자기 자신의 태그
        """
        if not tag or not str(tag).strip():
            raise ValidationError("tag required")

        neighbor = await self.store.find_user_by_tag(normalize_tag(tag))
        if neighbor is None:
            raise NotFoundError(f"no user with tag {normalize_tag(tag)}")

        await self.link_mutual(user_id, neighbor.id)
        return neighbor

    async def remove_neighbor(self, user_id: str, neighbor_id: str) -> None:
        """양방향 간선을 모두 제거합니다."""
        await self.store.delete_edge(user_id, neighbor_id)
        await self.store.delete_edge(neighbor_id, user_id)
        log.info(f"이웃 관계 제거됨 user:{user_id} neighbor:{neighbor_id}")

    async def list_neighbors(self, user_id: str) -> List[NeighborEdge]:
        return await self.store.list_edges(user_id)

    # ---- 공유 자원 ----

    async def post_resource(self, user_id: str, type: str, title: str,
                            description: str, location: Location) -> CommunityResource:
        """
        공유 자원을 등록합니다. 항상 active 상태로 생성됩니다.

        Raises:
            ValidationError: 유형이나 제목이 잘못됨
        """
        if type not in RESOURCE_TYPES:
            raise ValidationError(f"type must be one of {RESOURCE_TYPES} (got {type!r})")
        if not title or not title.strip():
            raise ValidationError("title required")

        resource = await self.store.insert_resource(user_id, type, title.strip(),
                                                    description or "", location)
        metrics.resource_transitions.labels(status="active").inc()
        log.info(f"공유 자원 등록됨 id:{resource.id} user:{user_id} type:{type}")
        return resource

    async def claim(self, resource_id: str) -> CommunityResource:
        """active -> claimed"""
        return await self._transition(resource_id, "claimed")

    async def complete(self, resource_id: str) -> CommunityResource:
        """claimed -> completed"""
        return await self._transition(resource_id, "completed")

    async def _transition(self, resource_id: str, target: str) -> CommunityResource:
        expected = TRANSITIONS[target]
        resource = await self.store.get_resource(resource_id)
        if resource is None:
            raise NotFoundError(f"resource {resource_id} not found")
        if resource.status != expected:
            raise InvalidStateTransition(resource_id, resource.status, target)

        # 조건부 갱신: 다른 요청이 먼저 바꿨으면 실패
        if not await self.store.transition_resource(resource_id, expected, target):
            current = await self.store.get_resource(resource_id)
            raise InvalidStateTransition(resource_id, current.status if current else "unknown", target)

        metrics.resource_transitions.labels(status=target).inc()
        log.info(f"공유 자원 상태 변경 id:{resource_id} {expected} -> {target}")
        return resource.model_copy(update={"status": target})

    async def list_resources(self, observer: Optional[Location] = None,
                             radius_km: float = 50.0) -> List[CommunityResource]:
        """
        active 자원을 최신순으로 반환합니다.

        observer가 주어지면 반경 내 자원만 distance_km과 함께 반환합니다.
        """
        resources = await self.store.list_active_resources()
        resources.sort(key=lambda r: r.created_at or "", reverse=True)

        if observer is None:
            return resources

        radius_km = validate_radius(radius_km, self.max_radius_km)
        nearby = []
        for r in resources:
            d = distance_km(observer, r.location)
            if d <= radius_km:
                nearby.append(r.model_copy(update={"distance_km": d}))
        return nearby
