"""
Control Results
===============

Structured containers for what one restriction pass, one release pass
and one congestion point evaluation did.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CycleEvent(Enum):
    """Outcome of evaluating one congestion point in one cycle."""
    ENTER_CONGESTION = "ENTER_CONGESTION"
    ADJUST_CONGESTION = "ADJUST_CONGESTION"
    EXIT_CONGESTION = "EXIT_CONGESTION"
    RELEASE_PROGRESS = "RELEASE_PROGRESS"
    RELEASE_WAIT = "RELEASE_WAIT"
    NO_CHANGE = "NO_CHANGE"


@dataclass(frozen=True)
class SetpointChange:
    """A participant whose setpoint moved."""
    participant_id: str
    new_setpoint: float
    flex_reduced: Optional[float] = None  # restriction only

    def to_dict(self) -> dict:
        d = {"id": self.participant_id, "new_setpoint": self.new_setpoint}
        if self.flex_reduced is not None:
            d["flex_reduced"] = self.flex_reduced
        return d


@dataclass
class RestrictionResult:
    """Overload left after a restriction pass and the setpoints it moved."""
    remaining: float
    changed: List[SetpointChange] = field(default_factory=list)


@dataclass
class ReleaseResult:
    """Setpoints moved by a release pass and the release budget left."""
    changed: List[SetpointChange] = field(default_factory=list)
    remaining_budget: float = 0.0


@dataclass
class CongestionOutcome:
    """
    Result of one congestion point's state machine step.

    Attributes:
        cp_id: Congestion point evaluated
        event: What happened
        changed: Participants whose setpoint moved
        remaining_overload: Unresolved overload (restriction outcomes)
        remaining_budget: Unused release budget (release outcomes)
    """
    cp_id: str
    event: CycleEvent
    changed: List[SetpointChange] = field(default_factory=list)
    remaining_overload: Optional[float] = None
    remaining_budget: Optional[float] = None

    @property
    def changed_ids(self) -> List[str]:
        return [c.participant_id for c in self.changed]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        d = {
            "cp_id": self.cp_id,
            "event": self.event.value,
            "changed": [c.to_dict() for c in self.changed],
        }
        if self.remaining_overload is not None:
            d["remaining_overload"] = self.remaining_overload
        if self.remaining_budget is not None:
            d["remaining_budget"] = self.remaining_budget
        return d
