"""
discovery/liveness.py - Periodic node liveness sweep.

Runs as its own asyncio task, decoupled from request handling. Each sweep
probes every registered node (any status, so recovered nodes come back)
and writes the outcome to the registry: success -> active, failure or
timeout -> inactive. A failing probe is logged and never aborts the sweep.
"""

import asyncio
import random
from typing import Protocol

from chains.providers import NodeClient
from core.constants import (
    DEFAULT_LIVENESS_INTERVAL_SECONDS,
    DEFAULT_LIVENESS_JITTER_FRACTION,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    NodeStatus,
)
from core.exceptions import NodeUnreachable
from core.logging import get_logger
from core.models import Node
from discovery.registry import NodeRegistry

logger = get_logger(__name__)


class LivenessProbe(Protocol):
    """Checks whether a single node answers."""

    async def probe(self, node: Node) -> bool:
        ...


class HttpStatusProbe:
    """Probe that GETs the node's /status endpoint."""

    def __init__(self, client: NodeClient, timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS):
        self._client = client
        self.timeout_seconds = timeout_seconds

    async def probe(self, node: Node) -> bool:
        try:
            await self._client.get_json(node, "/status", timeout=self.timeout_seconds)
        except NodeUnreachable as e:
            logger.debug(
                f"Liveness probe failed for {node.id}: {e.message}",
                extra={"context": {"node_id": node.id}},
            )
            return False
        return True


class LivenessChecker:
    """Background sweep keeping registry status in line with reality."""

    def __init__(
        self,
        registry: NodeRegistry,
        probe: LivenessProbe,
        interval_seconds: float = DEFAULT_LIVENESS_INTERVAL_SECONDS,
        probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        jitter_fraction: float = DEFAULT_LIVENESS_JITTER_FRACTION,
        rng: random.Random | None = None,
    ):
        self._registry = registry
        self._probe = probe
        self.interval_seconds = interval_seconds
        self.probe_timeout_seconds = probe_timeout_seconds
        self.jitter_fraction = jitter_fraction
        self._rng = rng or random.Random()
        self._task: asyncio.Task | None = None
        self.sweeps_completed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_delay(self) -> float:
        """Sweep interval with +/- jitter so gateways do not probe in lockstep."""
        spread = self.interval_seconds * self.jitter_fraction
        return max(0.0, self.interval_seconds + self._rng.uniform(-spread, spread))

    async def _check_node(self, node: Node) -> bool:
        try:
            healthy = await asyncio.wait_for(
                self._probe.probe(node),
                timeout=self.probe_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Liveness probe timed out for {node.id}",
                extra={"context": {"node_id": node.id, "timeout_s": self.probe_timeout_seconds}},
            )
            healthy = False
        except Exception as e:
            logger.error(
                f"Error checking connectivity with node {node.id}: {e}",
                extra={"context": {"node_id": node.id}},
            )
            healthy = False

        status = NodeStatus.ACTIVE if healthy else NodeStatus.INACTIVE
        # Node may have been removed while the probe was in flight
        if node.id in self._registry:
            self._registry.update_status(node.id, status=status)
        return healthy

    async def sweep(self) -> dict[str, bool]:
        """
        Probe every registered node once.

        Returns:
            node_id -> probe outcome
        """
        nodes = self._registry.all_nodes()
        outcomes = await asyncio.gather(*(self._check_node(node) for node in nodes))
        results = {node.id: ok for node, ok in zip(nodes, outcomes)}

        self.sweeps_completed += 1
        logger.info(
            "Liveness sweep finished",
            extra={
                "context": {
                    "probed": len(results),
                    "active": sum(1 for ok in results.values() if ok),
                    "inactive": sum(1 for ok in results.values() if not ok),
                }
            },
        )
        return results

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in liveness loop: {e}", exc_info=True)
            await asyncio.sleep(self.next_delay())

    def start(self) -> None:
        """Start the sweep task on the running loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="liveness-checker")
        logger.info(
            "Liveness checker started",
            extra={"context": {"interval_s": self.interval_seconds, "jitter": self.jitter_fraction}},
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
