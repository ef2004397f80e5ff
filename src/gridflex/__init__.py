"""
Gridflex Congestion Management
==============================

Hierarchical capacity congestion management for flexible grid consumers:
- A tree of congestion points, each with hysteresis thresholds
- Participants with a guaranteed base level and contracted flex
- Restriction and budgeted release of flex per congestion point
- Per-participant release delays
- Setpoint change events (in-process bus, best-effort UDP)

Architecture:
- topology/: congestion points and the id-indexed node table
- resources/: participant model
- control/: ordering policy, restriction/release engines, state machine, cycle
- events/: setpoint change notifications
"""

from .config import EventTransportSettings, MeasurementSet, TopologySpec
from .control import (
    OLDEST_INTERVENTION_FIRST,
    CongestionOutcome,
    ControlCycle,
    CycleEvent,
)
from .events import SetpointChanged, SetpointEventBus, SetpointNotifier
from .exceptions import DuplicateNodeError, TopologyError
from .kinds import CongestionState, NodeKind
from .resources import Participant
from .topology import CongestionPoint, GridTopology, build_topology

__version__ = "1.0.0"

__all__ = [
    "EventTransportSettings",
    "MeasurementSet",
    "TopologySpec",
    "OLDEST_INTERVENTION_FIRST",
    "CongestionOutcome",
    "ControlCycle",
    "CycleEvent",
    "SetpointChanged",
    "SetpointEventBus",
    "SetpointNotifier",
    "DuplicateNodeError",
    "TopologyError",
    "CongestionState",
    "NodeKind",
    "Participant",
    "CongestionPoint",
    "GridTopology",
    "build_topology",
]
