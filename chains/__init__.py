"""
chains/ - Outbound access to chain nodes.
"""

from chains.providers import NodeClient, NodeStats, join_url

__all__ = [
    "NodeClient",
    "NodeStats",
    "join_url",
]
