"""
gateway/service.py - Per-endpoint gateway operations.

Composes the registry, aggregation engine, consensus estimator and
broadcaster into the operations the HTTP API exposes. Read operations
return None when no node could serve them; list reads return [] instead.
"""

import asyncio
from typing import Any
from urllib.parse import quote

from chains.providers import NodeClient
from config.settings import CacheTTLSettings
from core.constants import (
    DEFAULT_LATEST_BLOCKS_LIMIT,
    DEFAULT_NETWORK_VERSION,
    READ_TIER_ORDER,
    NodeRole,
)
from core.exceptions import NodeUnreachable
from core.logging import get_logger
from core.models import Node
from core.time import now_iso
from discovery.registry import NodeRegistry
from gateway.aggregation import AggregationGateway
from gateway.broadcaster import TransactionBroadcaster
from gateway.consensus import ConsensusEstimator
from monitoring.throughput import ThroughputMeter

logger = get_logger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _blocks_of(data: Any) -> Any:
    if isinstance(data, dict) and "blocks" in data:
        return data["blocks"]
    return data


class BlockchainGateway:
    """Unified read/write access to the registered nodes."""

    def __init__(
        self,
        registry: NodeRegistry,
        client: NodeClient,
        aggregation: AggregationGateway,
        consensus: ConsensusEstimator,
        broadcaster: TransactionBroadcaster,
        throughput: ThroughputMeter,
        cache_ttl: CacheTTLSettings | None = None,
        network_version: str = DEFAULT_NETWORK_VERSION,
    ):
        self.registry = registry
        self.client = client
        self.aggregation = aggregation
        self.consensus = consensus
        self.broadcaster = broadcaster
        self.throughput = throughput
        self.cache_ttl = cache_ttl or CacheTTLSettings()
        self.network_version = network_version

    # =========================================================================
    # Blocks
    # =========================================================================

    async def get_block(self, block_hash: str) -> Any | None:
        return await self.aggregation.fetch_resource(
            READ_TIER_ORDER,
            lambda node: f"/blocks/{_segment(block_hash)}",
            cache_key=f"block:{block_hash}",
            cache_ttl=self.cache_ttl.block,
        )

    async def get_block_height(self) -> dict[str, Any]:
        result = await self.consensus.compute_height()
        return result.to_dict()

    async def get_latest_blocks(self, limit: int = DEFAULT_LATEST_BLOCKS_LIMIT) -> list:
        blocks = await self.aggregation.fetch_resource(
            READ_TIER_ORDER,
            lambda node: f"/blocks/latest?limit={int(limit)}",
            cache_key=f"latest_blocks:{limit}",
            cache_ttl=self.cache_ttl.latest_blocks,
            extract=_blocks_of,
        )
        return blocks if blocks is not None else []

    async def get_blocks_by_type(self, block_type: str) -> list:
        blocks = await self.aggregation.fetch_resource(
            READ_TIER_ORDER,
            lambda node: f"/blocks/type/{_segment(block_type)}",
            cache_key=f"blocks_type:{block_type}",
            cache_ttl=self.cache_ttl.blocks_by_type,
            extract=_blocks_of,
        )
        return blocks if blocks is not None else []

    # =========================================================================
    # Transactions
    # =========================================================================

    async def create_transaction(self, transaction: dict[str, Any]) -> Any:
        return await self.broadcaster.submit(transaction)

    async def get_transaction(self, tx_hash: str) -> Any | None:
        return await self.aggregation.fetch_resource(
            READ_TIER_ORDER,
            lambda node: f"/transactions/{_segment(tx_hash)}",
            cache_key=f"transaction:{tx_hash}",
            cache_ttl=self.cache_ttl.transaction,
        )

    # =========================================================================
    # Network
    # =========================================================================

    async def _describe_validator(self, validator: Node) -> dict[str, Any]:
        info = validator.to_dict()
        try:
            status = await self.client.get_json(validator, "/status")
        except NodeUnreachable as e:
            logger.warning(
                f"Error fetching status from validator {validator.id}: {e.message}",
                extra={"context": {"node_id": validator.id}},
            )
            info.update(is_active=False, last_error=e.message)
            return info

        if isinstance(status, dict):
            info.update(status)
        info["is_active"] = True
        return info

    async def get_validators(self) -> list[dict[str, Any]]:
        """Active validators, each merged with its live /status payload."""
        validators = self.registry.list_by_role(NodeRole.VALIDATOR)
        return list(await asyncio.gather(*(self._describe_validator(v) for v in validators)))

    async def get_network_status(self) -> dict[str, Any]:
        height = await self.consensus.compute_height()
        counts = self.registry.count_by_role()

        return {
            "blockHeight": height.height,
            "consensusPercentage": round(height.confidence_percentage, 2),
            "nodes": {
                "validators": counts[NodeRole.VALIDATOR.value],
                "fullNodes": counts[NodeRole.FULL.value],
                "seedNodes": counts[NodeRole.SEED.value],
                "total": sum(counts.values()),
            },
            "tps": round(self.throughput.rate(), 3),
            "node_stats": self.client.get_stats_summary(),
            "timestamp": now_iso(),
            "networkVersion": self.network_version,
        }
