# PATH: core/models.py
"""
Core data models for RELAYGATE.

Node records are immutable: every registry mutation swaps in a new
instance, so a reader never sees a half-updated node. Blocks and
transactions stay opaque JSON dicts; the gateway relays them untouched.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import httpx

from core.constants import NodeRole, NodeStatus


def normalize_node_url(url: str) -> str:
    """
    Strip the trailing slash and check the URL is callable.

    Raises:
        ValueError: unparseable URL, non-http(s) scheme or missing host
    """
    url = str(url).rstrip("/")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ValueError(f"Invalid node URL '{url}': {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"Node URL must be http(s) with a host: '{url}'")
    return url


@dataclass(frozen=True)
class Node:
    """A registered external endpoint serving chain data or accepting transactions."""

    id: str
    url: str
    role: NodeRole
    status: NodeStatus = NodeStatus.ACTIVE
    last_seen: Optional[datetime] = None
    version: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == NodeStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "role": self.role.value,
            "status": self.status.value,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
            "version": self.version,
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        """Build a node from config/API data. Raises KeyError/ValueError on bad input."""
        return cls(
            id=str(data["id"]),
            url=normalize_node_url(data["url"]),
            role=NodeRole(data["role"]),
            status=NodeStatus(data.get("status", NodeStatus.ACTIVE.value)),
            version=data.get("version"),
            location=data.get("location"),
        )


@dataclass(frozen=True)
class ConsensusResult:
    """Majority height estimate over node self-reports."""

    height: int
    confidence_percentage: float
    responded: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "height": self.height,
            "consensus": round(self.confidence_percentage, 2),
            "responded": self.responded,
            "total": self.total,
        }
