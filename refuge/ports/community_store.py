"""
Community store port interface.

This module defines the protocol for persisting the community graph:
public tags, neighbor edges and shared resources.
"""

from typing import List, Optional, Protocol
from refuge.core.models import CommunityResource, CommunityUser, Location, NeighborEdge

class CommunityStorePort(Protocol):
    """커뮤니티 저장소 포트 인터페이스"""

    async def get_user(self, user_id: str) -> Optional[CommunityUser]:
        ...

    async def find_user_by_tag(self, tag: str) -> Optional[CommunityUser]:
        ...

    async def list_untagged_users(self) -> List[CommunityUser]:
        ...

    async def set_public_tag(self, user_id: str, tag: str) -> bool:
        """
        태그가 비어 있는 사용자에게만 태그를 저장합니다.

        Returns:
            저장했으면 True, 이미 태그가 있으면 False

        Raises:
            TagConflict: 다른 사용자가 같은 태그를 사용 중
        """
        ...

    async def insert_edge(self, user_id: str, neighbor_id: str) -> bool:
        """
        이웃 간선을 추가합니다.

        Returns:
            새로 추가했으면 True, 이미 있으면 False
        """
        ...

    async def delete_edge(self, user_id: str, neighbor_id: str) -> bool:
        ...

    async def list_edges(self, user_id: str) -> List[NeighborEdge]:
        ...

    async def insert_resource(self, user_id: str, type: str, title: str,
                              description: str, location: Location) -> CommunityResource:
        ...

    async def get_resource(self, resource_id: str) -> Optional[CommunityResource]:
        ...

    async def transition_resource(self, resource_id: str, expected: str, target: str) -> bool:
        """
        현재 상태가 expected일 때만 target으로 바꿉니다.

        Returns:
            상태가 바뀌었으면 True
        """
        ...

    async def list_active_resources(self) -> List[CommunityResource]:
        ...
