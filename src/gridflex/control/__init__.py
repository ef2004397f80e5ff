"""
Control Engine
==============

Congestion management for the topology:
- ordering: which participant to restrict or release first
- restriction / release: per congestion point capacity passes
- state_machine: hysteresis per congestion point
- cycle: one control cycle over an ordered list of points
"""

from .cycle import ControlCycle, run_control_cycle
from .ordering import OLDEST_INTERVENTION_FIRST, OrderingPolicy
from .release import get_release_budget, has_pending_restrictions, release
from .restriction import restrict
from .results import (
    CongestionOutcome,
    CycleEvent,
    ReleaseResult,
    RestrictionResult,
    SetpointChange,
)
from .state_machine import update_congestion_state

__all__ = [
    "ControlCycle",
    "run_control_cycle",
    "OLDEST_INTERVENTION_FIRST",
    "OrderingPolicy",
    "get_release_budget",
    "has_pending_restrictions",
    "release",
    "restrict",
    "CongestionOutcome",
    "CycleEvent",
    "ReleaseResult",
    "RestrictionResult",
    "SetpointChange",
    "update_congestion_state",
]
