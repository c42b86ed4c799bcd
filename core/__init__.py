"""
core - Core utilities and models for RELAYGATE.

This package contains:
- models.py: Node and ConsensusResult
- constants.py: Enums, error codes and defaults
- exceptions.py: Typed exceptions with error codes
- time.py: Clocks and timestamps
- logging.py: Structured JSON logging
"""

from core.constants import CacheBackend, ErrorCode, NodeRole, NodeStatus
from core.exceptions import (
    CacheUnavailable,
    ConfigError,
    GatewayError,
    InfraError,
    NodeUnreachable,
    SubmissionRejectedByAll,
    ValidatorUnavailable,
)
from core.logging import get_logger, setup_logging
from core.models import ConsensusResult, Node

__all__ = [
    # Constants
    "CacheBackend",
    "ErrorCode",
    "NodeRole",
    "NodeStatus",
    # Exceptions
    "CacheUnavailable",
    "ConfigError",
    "GatewayError",
    "InfraError",
    "NodeUnreachable",
    "SubmissionRejectedByAll",
    "ValidatorUnavailable",
    # Models
    "ConsensusResult",
    "Node",
    # Logging
    "get_logger",
    "setup_logging",
]
