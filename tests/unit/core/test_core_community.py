"""
CommunityGraph 테스트

SQLite 저장소와 결정적 태그 생성기로 태그 충돌, 이웃 간선, 자원 상태 전이를 확인합니다.
"""

import re
import pytest
from unittest.mock import AsyncMock, Mock
from refuge.adapters.storage.sqlite_community import SQLiteCommunityStore
from refuge.core.community import CommunityGraph, generate_tag
from refuge.core.errors import (
    InvalidStateTransition, NotFoundError, SelfReferenceError,
    TagAssignmentExhausted, ValidationError
)
from refuge.core.models import CommunityResource, CommunityUser, Location


def tag_sequence(*tags):
    """주어진 순서로 태그를 반환하는 생성기"""
    it = iter(tags)
    return lambda: next(it)


@pytest.fixture
async def store(temp_db_path):
    s = SQLiteCommunityStore(temp_db_path)
    await s.init()
    return s


@pytest.fixture
async def users(store):
    alice = await store.create_user("alice")
    bob = await store.create_user("bob")
    carol = await store.create_user("carol", public_tag="C0FFEE")
    return alice, bob, carol


class TestPublicTags:

    def test_generate_tag_format(self):
        for _ in range(50):
            assert re.fullmatch(r"[0-9A-F]{6}", generate_tag())

    @pytest.mark.asyncio
    async def test_assign(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store, tag_factory=tag_sequence("a1b2c3"))
        assert await graph.assign_tag(alice.id) == "A1B2C3"
        assert (await store.get_user(alice.id)).public_tag == "A1B2C3"

    @pytest.mark.asyncio
    async def test_existing_tag_not_replaced(self, store, users):
        _, _, carol = users
        factory = Mock()
        graph = CommunityGraph(store, tag_factory=factory)
        assert await graph.assign_tag(carol.id) == "C0FFEE"
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_collision_retries(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store, tag_factory=tag_sequence("C0FFEE", "C0FFEE", "ABCDEF"))
        assert await graph.assign_tag(alice.id) == "ABCDEF"

    @pytest.mark.asyncio
    async def test_collision_exhausted(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store, tag_factory=lambda: "C0FFEE", max_tag_attempts=5)
        with pytest.raises(TagAssignmentExhausted) as exc_info:
            await graph.assign_tag(alice.id)
        assert exc_info.value.attempts == 5
        assert (await store.get_user(alice.id)).public_tag is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, store):
        graph = CommunityGraph(store)
        with pytest.raises(NotFoundError):
            await graph.assign_tag("999")

    @pytest.mark.asyncio
    async def test_concurrent_assignment_keeps_winner(self):
        """다른 요청이 먼저 태그를 저장했으면 그 태그를 반환"""
        store = AsyncMock()
        store.get_user.side_effect = [
            CommunityUser(id="1", public_tag=None),
            CommunityUser(id="1", public_tag="AAAAAA"),
        ]
        store.set_public_tag.return_value = False
        graph = CommunityGraph(store, tag_factory=lambda: "BBBBBB")
        assert await graph.assign_tag("1") == "AAAAAA"

    @pytest.mark.asyncio
    async def test_backfill(self, store, users):
        graph = CommunityGraph(store, tag_factory=tag_sequence("111111", "222222"))
        assert await graph.backfill_tags() == 2
        assert await store.list_untagged_users() == []


class TestNeighbors:

    @pytest.mark.asyncio
    async def test_add_edge_idempotent(self, store, users):
        alice, bob, _ = users
        graph = CommunityGraph(store)
        assert await graph.add_edge(alice.id, bob.id) is True
        assert await graph.add_edge(alice.id, bob.id) is False
        assert await store.count_edges(alice.id, bob.id) == 1
        # 단방향
        assert await store.count_edges(bob.id, alice.id) == 0

    @pytest.mark.asyncio
    async def test_self_loop_rejected(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store)
        with pytest.raises(SelfReferenceError):
            await graph.add_edge(alice.id, alice.id)
        assert await store.list_edges(alice.id) == []

    @pytest.mark.asyncio
    async def test_link_mutual(self, store, users):
        alice, bob, _ = users
        graph = CommunityGraph(store)
        await graph.link_mutual(alice.id, bob.id)
        await graph.link_mutual(alice.id, bob.id)
        assert await store.count_edges(alice.id, bob.id) == 1
        assert await store.count_edges(bob.id, alice.id) == 1

    @pytest.mark.asyncio
    async def test_add_by_tag(self, store, users):
        alice, _, carol = users
        graph = CommunityGraph(store)
        neighbor = await graph.add_neighbor_by_tag(alice.id, " c0ffee ")
        assert neighbor.id == carol.id
        assert [e.neighbor_id for e in await graph.list_neighbors(alice.id)] == [carol.id]
        assert [e.neighbor_id for e in await graph.list_neighbors(carol.id)] == [alice.id]

    @pytest.mark.asyncio
    async def test_add_by_tag_errors(self, store, users):
        alice, _, carol = users
        graph = CommunityGraph(store)
        with pytest.raises(ValidationError):
            await graph.add_neighbor_by_tag(alice.id, "  ")
        with pytest.raises(NotFoundError):
            await graph.add_neighbor_by_tag(alice.id, "FFFFFF")
        with pytest.raises(SelfReferenceError):
            await graph.add_neighbor_by_tag(carol.id, "C0FFEE")

    @pytest.mark.asyncio
    async def test_unknown_neighbor(self, store, users):
        alice, _, _ = users
        with pytest.raises(NotFoundError):
            await CommunityGraph(store).add_edge(alice.id, "999")

    @pytest.mark.asyncio
    async def test_remove_both_directions(self, store, users):
        alice, bob, _ = users
        graph = CommunityGraph(store)
        await graph.link_mutual(alice.id, bob.id)
        await graph.remove_neighbor(bob.id, alice.id)
        assert await graph.list_neighbors(alice.id) == []
        assert await graph.list_neighbors(bob.id) == []


class TestCommunityResources:

    @pytest.mark.asyncio
    async def test_lifecycle(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store)
        resource = await graph.post_resource(alice.id, "offering", " Water ", "", Location(lat=37.77, lon=-122.41))
        assert resource.status == "active"
        assert resource.title == "Water"

        claimed = await graph.claim(resource.id)
        assert claimed.status == "claimed"
        completed = await graph.complete(resource.id)
        assert completed.status == "completed"
        assert (await store.get_resource(resource.id)).status == "completed"

    @pytest.mark.asyncio
    async def test_invalid_transitions(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store)
        resource = await graph.post_resource(alice.id, "requesting", "Blankets", "", Location(lat=0, lon=0))

        with pytest.raises(InvalidStateTransition):
            await graph.complete(resource.id)
        await graph.claim(resource.id)
        with pytest.raises(InvalidStateTransition) as exc_info:
            await graph.claim(resource.id)
        assert exc_info.value.current == "claimed"
        await graph.complete(resource.id)
        with pytest.raises(InvalidStateTransition):
            await graph.claim(resource.id)

    @pytest.mark.asyncio
    async def test_unknown_resource(self, store):
        with pytest.raises(NotFoundError):
            await CommunityGraph(store).claim("404")

    @pytest.mark.asyncio
    async def test_lost_race(self):
        """조건부 갱신에 실패하면 상태 전이 오류"""
        store = AsyncMock()
        active = CommunityResource(id="1", user_id="1", type="offering", title="x",
                                   status="active", location=Location(lat=0, lon=0))
        store.get_resource.side_effect = [active, active.model_copy(update={"status": "claimed"})]
        store.transition_resource.return_value = False
        with pytest.raises(InvalidStateTransition):
            await CommunityGraph(store).claim("1")

    @pytest.mark.asyncio
    async def test_post_validation(self, store, users):
        alice, _, _ = users
        graph = CommunityGraph(store)
        with pytest.raises(ValidationError):
            await graph.post_resource(alice.id, "selling", "x", "", Location(lat=0, lon=0))
        with pytest.raises(ValidationError):
            await graph.post_resource(alice.id, "offering", "  ", "", Location(lat=0, lon=0))

    @pytest.mark.asyncio
    async def test_list_active_nearby(self, store, users):
        alice, bob, _ = users
        graph = CommunityGraph(store)
        near = await graph.post_resource(alice.id, "offering", "Food", "", Location(lat=37.78, lon=-122.42))
        await graph.post_resource(bob.id, "offering", "Far", "", Location(lat=34.05, lon=-118.24))
        done = await graph.post_resource(bob.id, "requesting", "Done", "", Location(lat=37.78, lon=-122.42))
        await graph.claim(done.id)

        everywhere = await graph.list_resources()
        assert {r.title for r in everywhere} == {"Food", "Far"}

        nearby = await graph.list_resources(Location(lat=37.7749, lon=-122.4194), 50)
        assert [r.id for r in nearby] == [near.id]
        assert nearby[0].distance_km < 1.0
