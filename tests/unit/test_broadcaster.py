"""
tests/unit/test_broadcaster.py - Transaction submission tests.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from chains.providers import NodeClient
from core.constants import ErrorCode, NodeRole
from core.exceptions import NodeUnreachable, SubmissionRejectedByAll, ValidatorUnavailable
from core.models import Node
from discovery.registry import NodeRegistry
from gateway.broadcaster import TransactionBroadcaster
from monitoring.throughput import ThroughputMeter

TX = {"from": "alice", "to": "bob", "amount": 10, "signature": "sig", "nonce": 1}


def post_client(script) -> MagicMock:
    """
    Client whose post_json follows a script.

    script: callable(node, call_index) -> response or exception to raise
    """
    client = MagicMock()
    calls = []

    async def post_json(node, path, payload, timeout=None):
        calls.append(node.id)
        outcome = script(node, len(calls))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client.post_json = AsyncMock(side_effect=post_json)
    client.calls = calls
    return client


@pytest.fixture
def registry():
    return NodeRegistry(
        [
            Node("val-1", "http://v1", NodeRole.VALIDATOR),
            Node("full-1", "http://f1", NodeRole.FULL),
            Node("val-2", "http://v2", NodeRole.VALIDATOR),
        ]
    )


class TestSubmit:
    """Sequential submission."""

    @pytest.mark.asyncio
    async def test_first_rejects_second_accepts(self, registry):
        def script(node, n):
            if n == 1:
                return NodeUnreachable("HTTP 400 calling http://v1/transactions")
            return {"hash": "H"}

        client = post_client(script)
        meter = ThroughputMeter(window_seconds=60)
        broadcaster = TransactionBroadcaster(registry, client, meter)

        result = await broadcaster.submit(TX)

        assert result == {"hash": "H"}
        assert client.calls == ["val-1", "val-2"]
        assert broadcaster.pending == 1
        assert meter.total == 1

        await broadcaster.drain()

        # Broadcast hits every validator, including the one that accepted
        assert sorted(client.calls[2:]) == ["val-1", "val-2"]
        assert broadcaster.pending == 0

    @pytest.mark.asyncio
    async def test_response_not_delayed_by_broadcast(self, registry):
        release = asyncio.Event()
        client = MagicMock()
        submitted = []

        async def post_json(node, path, payload, timeout=None):
            submitted.append(node.id)
            if len(submitted) > 1:
                await release.wait()
            return {"hash": "H"}

        client.post_json = AsyncMock(side_effect=post_json)
        broadcaster = TransactionBroadcaster(registry, client)

        result = await asyncio.wait_for(broadcaster.submit(TX), timeout=1)

        assert result == {"hash": "H"}
        assert broadcaster.pending == 1
        release.set()
        await broadcaster.drain()

    @pytest.mark.asyncio
    async def test_no_validators_fails_fast(self):
        registry = NodeRegistry([Node("full-1", "http://f1", NodeRole.FULL)])
        client = post_client(lambda node, n: {"hash": "H"})

        with pytest.raises(ValidatorUnavailable) as exc_info:
            await TransactionBroadcaster(registry, client).submit(TX)

        assert exc_info.value.code == ErrorCode.VALIDATOR_UNAVAILABLE
        client.post_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_validators_fail_fast(self, registry):
        registry.mark_inactive("val-1")
        registry.mark_inactive("val-2")
        client = post_client(lambda node, n: {"hash": "H"})

        with pytest.raises(ValidatorUnavailable):
            await TransactionBroadcaster(registry, client).submit(TX)

        client.post_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_reject(self, registry):
        client = post_client(lambda node, n: NodeUnreachable(f"rejected by {node.id}"))
        meter = ThroughputMeter(window_seconds=60)
        broadcaster = TransactionBroadcaster(registry, client, meter)

        with pytest.raises(SubmissionRejectedByAll) as exc_info:
            await broadcaster.submit(TX)

        assert exc_info.value.reasons == {
            "val-1": "rejected by val-1",
            "val-2": "rejected by val-2",
        }
        assert exc_info.value.details["reasons"]["val-2"] == "rejected by val-2"
        assert broadcaster.pending == 0
        assert meter.total == 0

    @pytest.mark.asyncio
    async def test_broadcast_failures_are_swallowed(self, registry):
        def script(node, n):
            if n == 1:
                return {"hash": "H"}
            return NodeUnreachable("down")

        client = post_client(script)
        broadcaster = TransactionBroadcaster(registry, client)

        assert await broadcaster.submit(TX) == {"hash": "H"}
        await broadcaster.drain()

        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_transaction_relayed_unchanged(self, registry):
        client = post_client(lambda node, n: {"hash": "H"})
        broadcaster = TransactionBroadcaster(registry, client)

        await broadcaster.submit(TX)
        await broadcaster.drain()

        for call in client.post_json.await_args_list:
            assert call.args[1] == "/transactions"
            assert call.args[2] == TX

    @pytest.mark.asyncio
    async def test_unparseable_validator_url_moves_to_next(self):
        accepted = []

        def handler(request: httpx.Request) -> httpx.Response:
            accepted.append(request.url.host)
            return httpx.Response(201, json={"hash": "H"})

        registry = NodeRegistry(
            [
                Node("val-bad", "http://[::1", NodeRole.VALIDATOR),
                Node("val-ok", "http://ok.test", NodeRole.VALIDATOR),
            ]
        )
        client = NodeClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        broadcaster = TransactionBroadcaster(registry, client)

        assert await broadcaster.submit(TX) == {"hash": "H"}
        await broadcaster.drain()

        assert accepted == ["ok.test", "ok.test"]
        assert client.stats["val-bad"].failures == 2
