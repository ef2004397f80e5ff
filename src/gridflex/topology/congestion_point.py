"""
Congestion Point
================

A congestion point is a capacity constraint in the grid (a transformer,
cable or substation section). It watches a measured load against two
thresholds:

- upper_limit: above this the point enters (or stays in) congestion
- release_limit: below this a congested point returns to free

The band between the two is a hysteresis dead band in which a congested
point holds its restrictions.
"""

from dataclasses import dataclass, field
from typing import List

from ..kinds import CongestionState, NodeKind


@dataclass
class CongestionPoint:
    """
    Capacity constraint node with hysteresis thresholds.

    Children are stored as ids into the owning GridTopology node table,
    either nested congestion points or participants.

    Attributes:
        id: Congestion point identifier (unique across the topology)
        level: Depth in the topology (informational)
        upper_limit: Threshold above which congestion is entered/maintained
        release_limit: Threshold below which congestion is exited
        measurement: Latest measured load through this point
        state: FREE or CONGESTED
        children: Ordered child node ids
    """
    id: str
    level: int
    upper_limit: float
    release_limit: float
    measurement: float = 0.0
    state: CongestionState = CongestionState.FREE
    children: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate thresholds."""
        if not self.release_limit < self.upper_limit:
            raise ValueError(
                f"release_limit ({self.release_limit}) must be below "
                f"upper_limit ({self.upper_limit}) for {self.id}"
            )

    @property
    def kind(self) -> NodeKind:
        return NodeKind.CONGESTION_POINT

    @property
    def is_congested(self) -> bool:
        return self.state == CongestionState.CONGESTED

    @property
    def overload(self) -> float:
        """Measured load above the upper limit (never negative)."""
        return max(0.0, self.measurement - self.upper_limit)

    def add_child(self, node_id: str) -> None:
        """Append a child node id."""
        self.children.append(node_id)

    def get_summary(self) -> dict:
        """Get congestion point state for display."""
        return {
            "id": self.id,
            "level": self.level,
            "upper_limit": self.upper_limit,
            "release_limit": self.release_limit,
            "measurement": self.measurement,
            "state": self.state.value,
            "overload": self.overload,
            "children": list(self.children),
        }
