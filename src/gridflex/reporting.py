"""
Cycle Reporting
===============

Human-readable lines describing the topology and the outcome of a cycle.
"""

from typing import Dict, List, Optional

from .control.results import CongestionOutcome, CycleEvent
from .kinds import CongestionState, NodeKind
from .resources.participant import Participant
from .topology.network import GridTopology

EVENT_WIDTH = 17


def _fmt(value: float, width: int = 5) -> str:
    return f"{value:g}".rjust(width)


def setpoint_label(p: Participant) -> str:
    """Classify a setpoint as base, incl. flex, or deviating."""
    if p.setpoint == p.base:
        return "base"
    if p.setpoint == p.unrestricted_setpoint:
        return "incl. flex"
    return "deviating"


def format_topology(topology: GridTopology) -> List[str]:
    """Render the topology tree, one node per line."""
    lines = [f"Topology {topology.name}:"]

    def _walk(node_id: str, indent: str) -> None:
        node = topology.get(node_id)
        if node.kind == NodeKind.PARTICIPANT:
            lines.append(
                f"{indent}- {node.id} (base {node.base:g}, flex {node.flex_contract:g}, "
                f"release delay {node.release_delay_cycles})"
            )
            return
        lines.append(
            f"{indent}- {node.id} (level {node.level}, limit {node.upper_limit:g}, "
            f"release {node.release_limit:g})"
        )
        for child_id in node.children:
            _walk(child_id, indent + "  ")

    for root_id in topology.roots:
        _walk(root_id, "")
    return lines


def format_cycle(
    title: str,
    topology: GridTopology,
    outcomes: Dict[str, CongestionOutcome],
    participant_ids: Optional[List[str]] = None,
) -> List[str]:
    """
    Render one cycle's congestion point and participant overview.

    Args:
        title: Heading line
        topology: Topology after the cycle ran
        outcomes: Cycle outcomes by congestion point id
        participant_ids: Participants to list (default: all, sorted by id)

    Returns:
        Report lines
    """
    lines = [title, "Congestion points:"]
    for cp in topology.congestion_points():
        outcome = outcomes.get(cp.id)
        event = outcome.event if outcome is not None else CycleEvent.NO_CHANGE
        mode = "congested" if cp.state == CongestionState.CONGESTED else "free"
        line = (
            f"{cp.id} measured {_fmt(cp.measurement)} {event.value.rjust(EVENT_WIDTH)}; "
            f"overload {_fmt(cp.overload)}, limit {_fmt(cp.upper_limit)}, "
            f"release {_fmt(cp.release_limit)}; {mode}"
        )
        if outcome is not None and outcome.remaining_overload:
            line += f", unresolved {outcome.remaining_overload:g}"
        lines.append(line)

    lines.append("Participants:")
    if participant_ids is None:
        participants = topology.participants()
    else:
        participants = [topology.get_participant(pid) for pid in participant_ids]
    for p in participants:
        responsible = ", ".join(sorted(p.active_restrictions))
        lines.append(
            f"{p.id} base {_fmt(p.base)}, flex {_fmt(p.flex_contract)}, "
            f"measured {_fmt(p.measurement)}, setpoint {_fmt(p.setpoint)} "
            f"({setpoint_label(p)}); restricted by: {responsible or '-'}"
        )
    return lines
