"""
discovery/ - Node registry and liveness.
"""

from discovery.liveness import HttpStatusProbe, LivenessChecker, LivenessProbe
from discovery.registry import NodeRegistry

__all__ = [
    "HttpStatusProbe",
    "LivenessChecker",
    "LivenessProbe",
    "NodeRegistry",
]
