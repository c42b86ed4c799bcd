"""
chains/providers.py - Outbound HTTP access to chain nodes.

Provides bounded node access with:
- Request timeout on every call
- Connection pooling (one shared httpx.AsyncClient)
- Latency and failure tracking per node

Every failure mode (timeout, transport error, unparseable URL, non-2xx
status, non-JSON body) surfaces as NodeUnreachable so callers have one thing to absorb.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from core.constants import DEFAULT_NODE_TIMEOUT_SECONDS
from core.exceptions import NodeUnreachable
from core.logging import get_logger
from core.models import Node
from core.time import monotonic, now_ms

logger = get_logger(__name__)


@dataclass
class NodeStats:
    """Request counters for one node, as seen from this gateway."""
    node_id: str
    requests: int = 0
    successes: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    latency_ms_sum: float = 0.0
    last_error: str | None = None
    last_success_ms: int | None = None

    @property
    def avg_latency_ms(self) -> float:
        return self.latency_ms_sum / self.successes if self.successes else 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.requests if self.requests else 0.0

    def record_success(self, latency_ms: float) -> None:
        self.successes += 1
        self.consecutive_failures = 0
        self.latency_ms_sum += latency_ms
        self.last_success_ms = now_ms()

    def record_failure(self, error: str) -> None:
        self.failures += 1
        self.consecutive_failures += 1
        self.last_error = error

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": self.requests,
            "success_rate": round(self.success_rate, 3),
            "avg_latency_ms": round(self.avg_latency_ms, 1),
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
        }


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}{path if path.startswith('/') else '/' + path}"


class NodeClient:
    """
    HTTP client for the node protocol.

    Paths are mirrored at each node's base URL (/blocks/{hash},
    /transactions, /status, ...). Response bodies are opaque JSON.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_NODE_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self.stats: dict[str, NodeStats] = {}

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=50),
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def stats_for(self, node: Node) -> NodeStats:
        return self.stats.setdefault(node.id, NodeStats(node_id=node.id))

    async def request(
        self,
        node: Node,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Make one call to a node.

        Args:
            node: Target node
            method: HTTP method
            path: Path relative to the node base URL
            params: Query parameters
            payload: JSON body
            timeout: Per-call timeout override (seconds)

        Returns:
            Decoded JSON body ({} for an empty body)

        Raises:
            NodeUnreachable: on timeout, transport error, invalid URL,
                non-success status or bad JSON
        """
        url = join_url(node.url, path)
        stats = self.stats_for(node)
        stats.requests += 1
        details: dict[str, Any] = {"node_id": node.id, "url": url}

        started = monotonic()
        try:
            resp = await self._http().request(
                method,
                url,
                params=params,
                json=payload,
                timeout=httpx.Timeout(timeout if timeout is not None else self.timeout_seconds),
            )
            resp.raise_for_status()
            data = resp.json() if resp.content else {}
        except httpx.TimeoutException as e:
            elapsed_ms = int((monotonic() - started) * 1000)
            stats.record_failure(f"Timeout after {elapsed_ms}ms")
            raise NodeUnreachable(f"Timeout calling {url}", {**details, "latency_ms": elapsed_ms}) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            stats.record_failure(f"HTTP {status}")
            raise NodeUnreachable(f"HTTP {status} calling {url}", {**details, "status_code": status}) from e
        except httpx.HTTPError as e:
            stats.record_failure(str(e) or type(e).__name__)
            raise NodeUnreachable(f"Network error calling {url}: {e}", details) from e
        except httpx.InvalidURL as e:
            stats.record_failure(f"Invalid URL: {e}")
            raise NodeUnreachable(f"Invalid URL {url}: {e}", details) from e
        except ValueError as e:
            stats.record_failure("Invalid JSON response")
            raise NodeUnreachable(f"Invalid JSON from {url}", details) from e

        stats.record_success((monotonic() - started) * 1000)
        return data

    async def get_json(
        self,
        node: Node,
        path: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return await self.request(node, "GET", path, params=params, timeout=timeout)

    async def post_json(
        self,
        node: Node,
        path: str,
        payload: Any,
        timeout: float | None = None,
    ) -> Any:
        return await self.request(node, "POST", path, payload=payload, timeout=timeout)

    def get_stats_summary(self) -> dict[str, dict[str, Any]]:
        """Per-node stats for every node contacted so far."""
        return {node_id: s.to_dict() for node_id, s in self.stats.items()}
