"""
Node Kinds
==========

Tags shared by every node in the congestion topology.
"""

from enum import Enum


class NodeKind(Enum):
    """The two kinds of topology node."""
    CONGESTION_POINT = "congestion_point"
    PARTICIPANT = "participant"


class CongestionState(Enum):
    """Hysteresis state of a congestion point."""
    FREE = "FREE"
    CONGESTED = "CONGESTED"
