"""
Control Cycle
=============

Runs one control cycle over an ordered list of congestion points:

1. Tick every distinct participant's release countdowns exactly once
2. Evaluate each congestion point's state machine in the given order

A participant shared by several points is restricted or released by
whichever point is evaluated first, so the evaluation order is part of
the caller's contract.
"""

from typing import Dict, Iterable, List, Optional, Sequence
import logging

from ..config import MeasurementSet
from ..events.setpoints import NotificationSink, SetpointEventBus, utc_ms
from ..topology.congestion_point import CongestionPoint
from ..topology.network import GridTopology
from .ordering import OLDEST_INTERVENTION_FIRST, OrderingPolicy
from .results import CongestionOutcome, CycleEvent
from .state_machine import update_congestion_state

logger = logging.getLogger(__name__)


class ControlCycle:
    """
    Cycle orchestrator owning the topology for the duration of each cycle.

    Attributes:
        topology: Node table with every congestion point and participant
        sink: Receives setpoint change events
        order: Participant ordering for restriction and release
        cycles_run: Number of completed cycles
    """

    def __init__(
        self,
        topology: GridTopology,
        sink: Optional[NotificationSink] = None,
        order: OrderingPolicy = OLDEST_INTERVENTION_FIRST,
    ):
        self.topology = topology
        self.sink = sink if sink is not None else SetpointEventBus()
        self.order = order
        self.cycles_run = 0

    def _resolve(self, congestion_point_ids: Optional[Sequence[str]]) -> List[CongestionPoint]:
        if congestion_point_ids is None:
            return self.topology.congestion_points()
        return [self.topology.get_congestion_point(cp_id) for cp_id in congestion_point_ids]

    def tick_release_countdowns(self, congestion_points: Iterable[CongestionPoint]) -> int:
        """
        Tick release countdowns once per distinct participant.

        Returns:
            Number of participants ticked
        """
        seen = set()
        for cp in congestion_points:
            for p in self.topology.iter_participants_under(cp.id):
                if p.id in seen:
                    continue
                seen.add(p.id)
                p.tick_release_countdowns()
        return len(seen)

    def run(
        self,
        congestion_point_ids: Optional[Sequence[str]] = None,
        now_ms: Optional[int] = None,
    ) -> Dict[str, CongestionOutcome]:
        """
        Run one control cycle.

        Args:
            congestion_point_ids: Points to evaluate, in evaluation order
                (default: every point, sorted by id)
            now_ms: Cycle timestamp in epoch ms (default: wall clock)

        Returns:
            Outcome per congestion point id, in evaluation order
        """
        now_ms = utc_ms() if now_ms is None else now_ms
        congestion_points = self._resolve(congestion_point_ids)

        self.tick_release_countdowns(congestion_points)

        outcomes: Dict[str, CongestionOutcome] = {}
        for cp in congestion_points:
            outcomes[cp.id] = update_congestion_state(
                self.topology, cp, now_ms, order=self.order, sink=self.sink
            )

        self.cycles_run += 1
        active = sum(1 for o in outcomes.values() if o.event != CycleEvent.NO_CHANGE)
        logger.debug("Cycle %d at %d: %d/%d points acted", self.cycles_run, now_ms, active, len(outcomes))
        return outcomes

    def step(
        self,
        measurements: MeasurementSet,
        congestion_point_ids: Optional[Sequence[str]] = None,
        now_ms: Optional[int] = None,
    ) -> Dict[str, CongestionOutcome]:
        """Apply one cycle's measurements, then run the cycle."""
        self.topology.apply_measurements(measurements)
        return self.run(congestion_point_ids, now_ms)


def run_control_cycle(
    topology: GridTopology,
    congestion_point_ids: Sequence[str],
    now_ms: int,
    *,
    order: OrderingPolicy,
    sink: NotificationSink,
) -> Dict[str, CongestionOutcome]:
    """Run a single cycle without keeping an orchestrator around."""
    return ControlCycle(topology, sink=sink, order=order).run(congestion_point_ids, now_ms)
