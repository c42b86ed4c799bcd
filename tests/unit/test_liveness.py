"""
tests/unit/test_liveness.py - Liveness sweep tests.
"""

import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from chains.providers import NodeClient
from core.constants import NodeRole, NodeStatus
from core.models import Node
from discovery.liveness import HttpStatusProbe, LivenessChecker
from discovery.registry import NodeRegistry


class ScriptedProbe:
    """Probe answering from a dict: bool, exception, or 'hang'."""

    def __init__(self, outcomes: dict):
        self.outcomes = outcomes
        self.probed: list[str] = []

    async def probe(self, node: Node) -> bool:
        self.probed.append(node.id)
        outcome = self.outcomes[node.id]
        if outcome == "hang":
            await asyncio.sleep(10)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def registry():
    return NodeRegistry(
        [
            Node("val-1", "http://v1", NodeRole.VALIDATOR),
            Node("full-1", "http://f1", NodeRole.FULL),
            Node("seed-1", "http://s1", NodeRole.SEED),
        ]
    )


class TestSweep:
    """One pass over the registry."""

    @pytest.mark.asyncio
    async def test_outcomes_written_to_registry(self, registry):
        probe = ScriptedProbe({"val-1": True, "full-1": False, "seed-1": True})

        results = await LivenessChecker(registry, probe).sweep()

        assert results == {"val-1": True, "full-1": False, "seed-1": True}
        assert registry.get("val-1").status == NodeStatus.ACTIVE
        assert registry.get("full-1").status == NodeStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_failing_probe_does_not_abort_sweep(self, registry):
        probe = ScriptedProbe({"val-1": RuntimeError("boom"), "full-1": True, "seed-1": True})

        results = await LivenessChecker(registry, probe).sweep()

        assert results["val-1"] is False
        assert registry.get("val-1").status == NodeStatus.INACTIVE
        assert registry.get("full-1").is_active
        assert registry.get("seed-1").is_active

    @pytest.mark.asyncio
    async def test_hung_probe_times_out(self, registry):
        probe = ScriptedProbe({"val-1": "hang", "full-1": True, "seed-1": True})
        checker = LivenessChecker(registry, probe, probe_timeout_seconds=0.05)

        results = await checker.sweep()

        assert results["val-1"] is False
        assert registry.get("val-1").status == NodeStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_inactive_node_recovers(self, registry):
        registry.mark_inactive("full-1")
        probe = ScriptedProbe({"val-1": True, "full-1": True, "seed-1": True})

        await LivenessChecker(registry, probe).sweep()

        assert "full-1" in probe.probed
        assert registry.get("full-1").is_active

    @pytest.mark.asyncio
    async def test_node_removed_mid_sweep(self, registry):
        class RemovingProbe(ScriptedProbe):
            async def probe(self, node):
                registry.remove("seed-1")
                return True

        await LivenessChecker(registry, RemovingProbe({})).sweep()

        assert "seed-1" not in registry
        assert len(registry) == 2


class TestSchedule:
    """Background task management."""

    def test_next_delay_within_jitter(self, registry):
        checker = LivenessChecker(
            registry,
            ScriptedProbe({}),
            interval_seconds=30,
            jitter_fraction=0.1,
            rng=random.Random(7),
        )

        delays = [checker.next_delay() for _ in range(100)]

        assert all(27 <= d <= 33 for d in delays)
        assert len(set(delays)) > 1

    def test_no_jitter(self, registry):
        checker = LivenessChecker(registry, ScriptedProbe({}), interval_seconds=5, jitter_fraction=0)

        assert checker.next_delay() == 5

    @pytest.mark.asyncio
    async def test_start_stop(self, registry):
        probe = ScriptedProbe({"val-1": True, "full-1": False, "seed-1": True})
        checker = LivenessChecker(registry, probe, interval_seconds=0.01, jitter_fraction=0)

        checker.start()
        assert checker.running
        for _ in range(100):
            if checker.sweeps_completed >= 2:
                break
            await asyncio.sleep(0.01)
        await checker.stop()

        assert checker.sweeps_completed >= 2
        assert not checker.running
        assert registry.get("full-1").status == NodeStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_stop_without_start(self, registry):
        await LivenessChecker(registry, ScriptedProbe({})).stop()


class TestHttpStatusProbe:
    """Default probe over NodeClient."""

    @pytest.mark.asyncio
    async def test_status_ok(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/status"
            return httpx.Response(200, json={"version": "1.0"})

        client = NodeClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        assert await HttpStatusProbe(client).probe(Node("v", "http://v", NodeRole.VALIDATOR)) is True

    @pytest.mark.asyncio
    async def test_status_error(self):
        client = NodeClient(
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        )

        assert await HttpStatusProbe(client).probe(Node("v", "http://v", NodeRole.VALIDATOR)) is False

    @pytest.mark.asyncio
    async def test_uses_probe_timeout(self):
        client = MagicMock()
        client.get_json = AsyncMock(return_value={})
        node = Node("v", "http://v", NodeRole.VALIDATOR)

        await HttpStatusProbe(client, timeout_seconds=1.5).probe(node)

        client.get_json.assert_awaited_once_with(node, "/status", timeout=1.5)
