# PATH: core/constants.py
"""
Constants for RELAYGATE.

Contains enums, defaults, and configuration constants.
"""

from enum import Enum
from typing import Final


class NodeRole(str, Enum):
    """Role a remote node plays in the network."""
    VALIDATOR = "validator"
    FULL = "full"
    SEED = "seed"


class NodeStatus(str, Enum):
    """Liveness status of a registered node."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SYNCING = "syncing"


class CacheBackend(str, Enum):
    """Cache implementations selectable from configuration."""
    MEMORY = "memory"
    NULL = "null"
    REDIS = "redis"


class ErrorCode(str, Enum):
    """
    Canonical error codes.

    Every GatewayError carries one of these. Codes that never surface as
    exceptions (ALL_CANDIDATES_EXHAUSTED, BROADCAST_FAILURE) are still used
    in log context so failures can be grepped by code.
    """
    # Node I/O
    NODE_UNREACHABLE = "NODE_UNREACHABLE"
    ALL_CANDIDATES_EXHAUSTED = "ALL_CANDIDATES_EXHAUSTED"

    # Write path
    VALIDATOR_UNAVAILABLE = "VALIDATOR_UNAVAILABLE"
    SUBMISSION_REJECTED_BY_ALL = "SUBMISSION_REJECTED_BY_ALL"
    BROADCAST_FAILURE = "BROADCAST_FAILURE"

    # Cache
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"

    # Startup
    CONFIG_INVALID = "CONFIG_INVALID"

    UNKNOWN = "UNKNOWN"


# =============================================================================
# DEFAULTS
# =============================================================================

# Outbound node calls
DEFAULT_NODE_TIMEOUT_SECONDS: Final[float] = 5.0

# Cache TTLs (seconds). Point lookups live longer than "latest" listings.
DEFAULT_BLOCK_TTL_SECONDS: Final[int] = 60
DEFAULT_TRANSACTION_TTL_SECONDS: Final[int] = 60
DEFAULT_LATEST_BLOCKS_TTL_SECONDS: Final[int] = 10
DEFAULT_BLOCKS_BY_TYPE_TTL_SECONDS: Final[int] = 10

DEFAULT_LATEST_BLOCKS_LIMIT: Final[int] = 10

# Liveness sweep
DEFAULT_LIVENESS_INTERVAL_SECONDS: Final[float] = 30.0
DEFAULT_PROBE_TIMEOUT_SECONDS: Final[float] = 2.0
DEFAULT_LIVENESS_JITTER_FRACTION: Final[float] = 0.1

# Throughput window
DEFAULT_THROUGHPUT_WINDOW_SECONDS: Final[float] = 60.0

# Redis
DEFAULT_REDIS_URL: Final[str] = "redis://localhost:6379"
DEFAULT_REDIS_SOCKET_TIMEOUT_SECONDS: Final[float] = 1.0

DEFAULT_NETWORK_VERSION: Final[str] = "1.0.0"

# Read paths prefer full nodes, then validators
READ_TIER_ORDER: Final[tuple[NodeRole, ...]] = (NodeRole.FULL, NodeRole.VALIDATOR)

# Roles whose height reports feed the consensus estimate, in scan order
HEIGHT_REPORTING_ROLES: Final[tuple[NodeRole, ...]] = (NodeRole.FULL, NodeRole.VALIDATOR)
