"""
discovery/registry.py - In-memory catalog of known nodes.

Nodes are keyed by id and kept in registration order. Every mutation
replaces the whole Node record (dataclasses.replace), so concurrent readers
always get a consistent snapshot without locking.

Selection is pure registration order; there is no reliability scoring yet.
"""

from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable

from core.constants import NodeRole, NodeStatus
from core.logging import get_logger
from core.models import Node
from core.time import now_utc

logger = get_logger(__name__)

# Fields callers may change through update_status()
UPDATABLE_FIELDS = frozenset({"url", "role", "status", "version", "location"})


class NodeRegistry:
    """
    Registry of remote nodes.

    One instance per process, created by the app factory and handed to
    every component that needs it.
    """

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        clock: Callable[[], datetime] = now_utc,
    ):
        self._clock = clock
        self._nodes: dict[str, Node] = {}

        for node in nodes:
            self.register(node)

    def register(self, node: Node) -> Node:
        """
        Register a node (last write wins on an existing id).

        Status is forced to active and last_seen is stamped.
        """
        registered = replace(node, status=NodeStatus.ACTIVE, last_seen=self._clock())
        self._nodes[node.id] = registered

        logger.info(
            f"Registered {node.role.value} node: {node.id} at {node.url}",
            extra={"context": {"node_id": node.id, "role": node.role.value}},
        )
        return registered

    def update_status(self, node_id: str, **updates) -> Node | None:
        """
        Apply partial updates to a node.

        Returns:
            The updated node, or None if the id is unknown.

        Raises:
            ValueError: on a field that cannot be updated
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update node fields: {sorted(unknown)}")

        node = self._nodes.get(node_id)
        if node is None:
            logger.warning(f"Attempted to update non-existent node: {node_id}")
            return None

        if "role" in updates:
            updates["role"] = NodeRole(updates["role"])
        if "status" in updates:
            updates["status"] = NodeStatus(updates["status"])

        updated = replace(node, **updates, last_seen=self._clock())
        self._nodes[node_id] = updated

        logger.debug(
            f"Updated node {node_id}",
            extra={"context": {"node_id": node_id, "updates": {k: str(v) for k, v in updates.items()}}},
        )
        return updated

    def mark_inactive(self, node_id: str) -> bool:
        """Mark a node inactive. Returns False if the id is unknown."""
        node = self._nodes.get(node_id)
        if node is None:
            return False

        self._nodes[node_id] = replace(node, status=NodeStatus.INACTIVE, last_seen=self._clock())
        logger.warning(f"Marked node {node_id} as inactive", extra={"context": {"node_id": node_id}})
        return True

    def remove(self, node_id: str) -> bool:
        """Remove a node. Returns False if it did not exist."""
        node = self._nodes.pop(node_id, None)
        if node is None:
            return False

        logger.info(f"Removed node: {node_id}", extra={"context": {"node_id": node_id}})
        return True

    def get(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def all_nodes(self) -> list[Node]:
        """Snapshot of every registered node, any status."""
        return list(self._nodes.values())

    def list_by_role(self, role: NodeRole) -> list[Node]:
        """Active nodes of a role, in registration order."""
        role = NodeRole(role)
        return [n for n in self._nodes.values() if n.role == role and n.is_active]

    def select_preferred(self, role: NodeRole, count: int) -> list[Node]:
        """
        Pick up to `count` nodes of a role for a critical operation.

        Currently a prefix of list_by_role(); ranking by observed
        reliability would slot in here.
        """
        return self.list_by_role(role)[: max(0, count)]

    def count_by_role(self) -> dict[str, int]:
        """Active node counts per role."""
        return {role.value: len(self.list_by_role(role)) for role in NodeRole}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
