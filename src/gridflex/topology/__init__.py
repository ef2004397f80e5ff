"""
Topology Layer
==============

Congestion tree modeling:
- CongestionPoint: capacity constraint with hysteresis thresholds
- GridTopology: id-indexed table owning every congestion point and participant
"""

from .congestion_point import CongestionPoint
from .network import GridTopology, build_topology, create_single_point_topology

__all__ = ["CongestionPoint", "GridTopology", "build_topology", "create_single_point_topology"]
