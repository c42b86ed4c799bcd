"""
gateway/aggregation.py - Failover read engine with cache-aside.

fetch_resource():
1. Cache lookup; a live hit returns without touching any node
2. Candidates captured once from the registry, tier by tier
3. One GET per candidate, first success wins and is written to the cache
4. Exhaustion returns None (absent and unreachable look the same)
"""

import json
from typing import Any, Callable, Iterable

from cache.base import CacheLayer
from chains.providers import NodeClient
from core.constants import ErrorCode, NodeRole
from core.exceptions import CacheUnavailable, NodeUnreachable
from core.logging import get_logger
from core.models import Node
from discovery.registry import NodeRegistry

logger = get_logger(__name__)

PathBuilder = Callable[[Node], str]
Extractor = Callable[[Any], Any]


class AggregationGateway:
    """Executes reads across role-tiered candidates with failover."""

    def __init__(self, registry: NodeRegistry, client: NodeClient, cache: CacheLayer):
        self._registry = registry
        self._client = client
        self._cache = cache

    def candidates(self, tiers: Iterable[NodeRole]) -> list[Node]:
        """Active nodes for each tier in order, each node id at most once."""
        seen: set[str] = set()
        ordered: list[Node] = []
        for tier in tiers:
            for node in self._registry.list_by_role(tier):
                if node.id in seen:
                    continue
                seen.add(node.id)
                ordered.append(node)
        return ordered

    async def _cache_lookup(self, cache_key: str) -> tuple[bool, Any]:
        try:
            raw = await self._cache.get(cache_key)
        except CacheUnavailable as e:
            logger.warning(
                f"Cache read failed for {cache_key}: {e.message}",
                extra={"context": {"cache_key": cache_key, "code": e.code.value}},
            )
            return False, None

        if raw is None:
            return False, None

        try:
            return True, json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(
                f"Discarding undecodable cache entry {cache_key}",
                extra={"context": {"cache_key": cache_key}},
            )
            return False, None

    async def _cache_store(self, cache_key: str, value: Any, ttl: int | None) -> None:
        try:
            await self._cache.set(cache_key, json.dumps(value), ttl)
        except CacheUnavailable as e:
            logger.warning(
                f"Cache write failed for {cache_key}: {e.message}",
                extra={"context": {"cache_key": cache_key, "code": e.code.value}},
            )

    async def fetch_resource(
        self,
        tiers: Iterable[NodeRole],
        path_builder: PathBuilder,
        cache_key: str,
        cache_ttl: int | None,
        extract: Extractor | None = None,
    ) -> Any | None:
        """
        Read one resource with cache-aside and failover.

        Args:
            tiers: Roles in preference order (e.g. full, then validator)
            path_builder: Node -> outbound path
            cache_key: Key for the cached result
            cache_ttl: TTL for the cache write (seconds)
            extract: Optional transform applied to the node response
                before it is cached and returned

        Returns:
            The first successful result, or None when every candidate failed
        """
        hit, cached = await self._cache_lookup(cache_key)
        if hit:
            logger.debug(f"Cache hit: {cache_key}")
            return cached

        candidates = self.candidates(tiers)
        failures: dict[str, str] = {}

        for node in candidates:
            try:
                data = await self._client.get_json(node, path_builder(node))
            except NodeUnreachable as e:
                failures[node.id] = e.message
                logger.warning(
                    f"Error fetching {cache_key} from node {node.id}: {e.message}",
                    extra={"context": {"node_id": node.id, "code": e.code.value}},
                )
                continue

            result = extract(data) if extract else data
            await self._cache_store(cache_key, result, cache_ttl)
            logger.debug(
                f"Fetched {cache_key} from {node.id}",
                extra={"context": {"node_id": node.id, "attempts": len(failures) + 1}},
            )
            return result

        logger.warning(
            f"No node could serve {cache_key}",
            extra={
                "context": {
                    "code": ErrorCode.ALL_CANDIDATES_EXHAUSTED.value,
                    "cache_key": cache_key,
                    "candidates": len(candidates),
                    "failures": failures,
                }
            },
        )
        return None
