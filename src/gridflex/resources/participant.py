"""
Participant Model
=================

A participant is a leaf consumer behind one or more congestion points.
It has a guaranteed base level plus a contracted amount of flexible
capacity that congestion points may take away (restrict) and give
back (release).
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set
import math

from ..kinds import NodeKind


@dataclass
class Participant:
    """
    Flexible consumer leaf in the congestion topology.

    The setpoint is derived: a participant restricted by at least one
    congestion point is clamped to ``base``, otherwise it may consume up
    to ``base + flex_contract``.

    Attributes:
        id: Participant identifier (unique across the topology)
        base: Guaranteed, non-flexible level
        flex_contract: Maximum contracted flexible addition above base
        release_delay_cycles: Cycles that must pass after a restriction by
            a congestion point before that point may release it (>= 1)
        measurement: Latest measured consumption
        setpoint: Level the participant is authorized to consume up to
        last_intervention_at: Cycle timestamp (epoch ms) of the last
            restriction or release, None if never touched
        active_restrictions: Ids of the congestion points clamping this participant
        release_countdown_by_cp: Cycles left per congestion point before release
    """
    id: str
    base: float
    flex_contract: float
    release_delay_cycles: int = 1
    measurement: float = 0.0
    setpoint: float = field(init=False)
    last_intervention_at: Optional[int] = None
    active_restrictions: Set[str] = field(default_factory=set)
    release_countdown_by_cp: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        """Validate parameters and derive the initial setpoint."""
        if self.base < 0:
            raise ValueError("base must be non-negative")
        if self.flex_contract < 0:
            raise ValueError("flex_contract must be non-negative")
        if not math.isfinite(self.release_delay_cycles):
            raise ValueError("release_delay_cycles must be finite")
        self.release_delay_cycles = max(1, int(math.trunc(self.release_delay_cycles)))
        self.recompute_setpoint()

    @property
    def kind(self) -> NodeKind:
        return NodeKind.PARTICIPANT

    @property
    def flex_use(self) -> float:
        """Measured consumption above base (never negative)."""
        return max(0.0, self.measurement - self.base)

    @property
    def unrestricted_setpoint(self) -> float:
        return self.base + self.flex_contract

    @property
    def is_clamped(self) -> bool:
        """True if some congestion point currently pins this participant to base."""
        return bool(self.active_restrictions) and self.setpoint == self.base

    def recompute_setpoint(self) -> None:
        """Derive the setpoint from the active restrictions."""
        if self.active_restrictions:
            self.setpoint = self.base
        else:
            self.setpoint = self.base + self.flex_contract

    def is_restricted_by(self, cp_id: str) -> bool:
        return cp_id in self.active_restrictions

    def add_restriction(self, cp_id: str) -> None:
        """
        Mark this participant as restricted by a congestion point.

        Arms the release countdown for that point to the configured
        delay and recomputes the setpoint.

        Args:
            cp_id: Congestion point id
        """
        self.active_restrictions.add(cp_id)
        self.release_countdown_by_cp[cp_id] = self.release_delay_cycles
        self.recompute_setpoint()

    def remove_restriction(self, cp_id: str) -> None:
        """
        Lift the restriction of one congestion point.

        The setpoint only rises if no other congestion point still
        restricts this participant.

        Args:
            cp_id: Congestion point id
        """
        self.active_restrictions.discard(cp_id)
        self.release_countdown_by_cp.pop(cp_id, None)
        self.recompute_setpoint()

    def tick_release_countdowns(self) -> None:
        """Count every active restriction's release delay down by one cycle."""
        for cp_id in self.active_restrictions:
            remaining = self.release_countdown_by_cp.get(cp_id)
            if remaining is None:
                continue
            if remaining > 0:
                self.release_countdown_by_cp[cp_id] = remaining - 1

    def can_release_from(self, cp_id: str) -> bool:
        """Check whether the release delay for a congestion point has elapsed."""
        remaining = self.release_countdown_by_cp.get(cp_id)
        return remaining is None or remaining <= 0

    def get_summary(self) -> dict:
        """Get participant state for display."""
        return {
            "id": self.id,
            "base": self.base,
            "flex_contract": self.flex_contract,
            "release_delay_cycles": self.release_delay_cycles,
            "measurement": self.measurement,
            "setpoint": self.setpoint,
            "flex_use": self.flex_use,
            "last_intervention_at": self.last_intervention_at,
            "active_restrictions": sorted(self.active_restrictions),
        }
