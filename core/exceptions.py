# PATH: core/exceptions.py
"""
Typed exceptions for RELAYGATE.

Per-node failures are absorbed by the component that issued the call;
only exhaustion-level outcomes on the write path reach API callers.
"""

from typing import Optional

from core.constants import ErrorCode


class GatewayError(Exception):
    """Base exception for RELAYGATE."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InfraError(GatewayError):
    """Infrastructure-related errors (node transport, cache store)."""
    pass


class NodeUnreachable(InfraError):
    """A single node failed to answer: timeout, transport error or non-success status."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.NODE_UNREACHABLE, details)


class CacheUnavailable(InfraError):
    """The cache store could not serve a request."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.CACHE_UNAVAILABLE, details)


class ValidatorUnavailable(GatewayError):
    """No active validator is registered at submission time."""

    def __init__(self, message: str = "No validator nodes available to process transaction"):
        super().__init__(message, ErrorCode.VALIDATOR_UNAVAILABLE)


class SubmissionRejectedByAll(GatewayError):
    """Every validator rejected or failed to accept a transaction."""

    def __init__(self, reasons: dict[str, str]):
        summary = ", ".join(f"{node_id}: {reason}" for node_id, reason in reasons.items())
        super().__init__(
            f"Failed to create transaction on any validator: {summary}",
            ErrorCode.SUBMISSION_REJECTED_BY_ALL,
            {"reasons": dict(reasons)},
        )
        self.reasons = dict(reasons)


class ConfigError(GatewayError):
    """Invalid gateway configuration."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, details)
