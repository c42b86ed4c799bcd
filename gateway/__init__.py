"""
gateway/ - Read/write engine in front of the node registry.

Modules:
- aggregation: failover reads with cache-aside
- consensus: majority chain height
- broadcaster: transaction submission and fan-out
- service: per-endpoint operations
"""

from gateway.aggregation import AggregationGateway
from gateway.broadcaster import TransactionBroadcaster
from gateway.consensus import ConsensusEstimator, majority_height
from gateway.service import BlockchainGateway

__all__ = [
    "AggregationGateway",
    "BlockchainGateway",
    "ConsensusEstimator",
    "TransactionBroadcaster",
    "majority_height",
]
