# PATH: monitoring/__init__.py
"""
Monitoring package for RELAYGATE.

Per-node request statistics live with the HTTP client
(chains.providers.NodeStats); this package holds gateway-wide counters.
"""

from monitoring.throughput import ThroughputMeter

__all__ = [
    "ThroughputMeter",
]
