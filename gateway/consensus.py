"""
gateway/consensus.py - Majority chain height over node self-reports.

This is a statistical estimate, not agreement: every active full node and
validator is asked for its height, the most frequent answer wins and its
share of the nodes attempted is the confidence.
"""

import asyncio
from collections import Counter

from chains.providers import NodeClient
from core.constants import HEIGHT_REPORTING_ROLES
from core.exceptions import NodeUnreachable
from core.logging import get_logger
from core.models import ConsensusResult, Node
from discovery.registry import NodeRegistry

logger = get_logger(__name__)


def _parse_height(data) -> int | None:
    if not isinstance(data, dict):
        return None
    height = data.get("height")
    # bool is an int subclass
    if isinstance(height, bool) or not isinstance(height, int):
        return None
    return height


def majority_height(samples: list[int], total: int) -> ConsensusResult:
    """
    Pick the most frequent height.

    Ties go to the height seen first in samples order.
    """
    if total == 0 or not samples:
        return ConsensusResult(height=0, confidence_percentage=0.0, responded=len(samples), total=total)

    # Counter keeps insertion order, most_common is stable on ties
    height, occurrences = Counter(samples).most_common(1)[0]
    return ConsensusResult(
        height=height,
        confidence_percentage=occurrences / total * 100,
        responded=len(samples),
        total=total,
    )


class ConsensusEstimator:
    """Computes consensus height from the registry's reporting nodes."""

    def __init__(self, registry: NodeRegistry, client: NodeClient):
        self._registry = registry
        self._client = client

    def _reporting_nodes(self) -> list[Node]:
        nodes: list[Node] = []
        seen: set[str] = set()
        for role in HEIGHT_REPORTING_ROLES:
            for node in self._registry.list_by_role(role):
                if node.id not in seen:
                    seen.add(node.id)
                    nodes.append(node)
        return nodes

    async def _query_height(self, node: Node) -> int | None:
        try:
            data = await self._client.get_json(node, "/blocks/height")
        except NodeUnreachable as e:
            logger.warning(
                f"Error fetching height from node {node.id}: {e.message}",
                extra={"context": {"node_id": node.id}},
            )
            return None

        height = _parse_height(data)
        if height is None:
            logger.warning(
                f"Node {node.id} returned no usable height",
                extra={"context": {"node_id": node.id}},
            )
        return height

    async def compute_height(self) -> ConsensusResult:
        nodes = self._reporting_nodes()
        heights = await asyncio.gather(*(self._query_height(node) for node in nodes))
        samples = [h for h in heights if h is not None]

        result = majority_height(samples, total=len(nodes))
        logger.info(
            f"Consensus height {result.height} ({result.confidence_percentage:.2f}%)",
            extra={"context": result.to_dict()},
        )
        return result
