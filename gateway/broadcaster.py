"""
gateway/broadcaster.py - Transaction submission and fan-out.

Submission is sequential over active validators: the first one to accept
is authoritative. After acceptance the same transaction is re-broadcast to
every active validator in a background task the caller never waits on.
"""

import asyncio
from typing import Any

from chains.providers import NodeClient
from core.constants import ErrorCode, NodeRole
from core.exceptions import NodeUnreachable, SubmissionRejectedByAll, ValidatorUnavailable
from core.logging import get_logger
from core.models import Node
from discovery.registry import NodeRegistry
from monitoring.throughput import ThroughputMeter

logger = get_logger(__name__)

TRANSACTIONS_PATH = "/transactions"


class TransactionBroadcaster:
    """Submits transactions to validators."""

    def __init__(
        self,
        registry: NodeRegistry,
        client: NodeClient,
        throughput: ThroughputMeter | None = None,
    ):
        self._registry = registry
        self._client = client
        self._throughput = throughput
        # Strong refs so the loop does not drop running broadcasts
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def submit(self, transaction: dict[str, Any]) -> Any:
        """
        Submit a transaction to the first accepting validator.

        Returns:
            The accepting validator's response (typically {"hash": ...})

        Raises:
            ValidatorUnavailable: no active validator, nothing was sent
            SubmissionRejectedByAll: every validator failed; reasons per node id
        """
        validators = self._registry.list_by_role(NodeRole.VALIDATOR)
        if not validators:
            logger.error(
                "No validator nodes available",
                extra={"context": {"code": ErrorCode.VALIDATOR_UNAVAILABLE.value}},
            )
            raise ValidatorUnavailable()

        reasons: dict[str, str] = {}
        for validator in validators:
            try:
                result = await self._client.post_json(validator, TRANSACTIONS_PATH, transaction)
            except NodeUnreachable as e:
                reasons[validator.id] = e.message
                logger.warning(
                    f"Validator {validator.id} did not accept transaction: {e.message}",
                    extra={"context": {"node_id": validator.id}},
                )
                continue

            logger.info(
                f"Transaction accepted by {validator.id}",
                extra={"context": {"node_id": validator.id, "rejections": len(reasons)}},
            )
            if self._throughput is not None:
                self._throughput.record()
            self._schedule_broadcast(transaction)
            return result

        raise SubmissionRejectedByAll(reasons)

    def _schedule_broadcast(self, transaction: dict[str, Any]) -> asyncio.Task:
        task = asyncio.create_task(self._broadcast(transaction))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, validator: Node, transaction: dict[str, Any]) -> bool:
        try:
            await self._client.post_json(validator, TRANSACTIONS_PATH, transaction)
        except NodeUnreachable as e:
            logger.warning(
                f"Error broadcasting transaction to {validator.id}: {e.message}",
                extra={"context": {"node_id": validator.id, "code": ErrorCode.BROADCAST_FAILURE.value}},
            )
            return False
        return True

    async def _broadcast(self, transaction: dict[str, Any]) -> None:
        validators = self._registry.list_by_role(NodeRole.VALIDATOR)
        try:
            outcomes = await asyncio.gather(*(self._send(v, transaction) for v in validators))
        except Exception as e:
            logger.error(
                f"Broadcast aborted: {e}",
                extra={"context": {"code": ErrorCode.BROADCAST_FAILURE.value}},
                exc_info=True,
            )
            return

        logger.debug(
            "Broadcast finished",
            extra={"context": {"validators": len(validators), "delivered": sum(outcomes)}},
        )

    async def drain(self) -> None:
        """Wait for every scheduled broadcast to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
