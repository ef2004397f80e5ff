"""
Congestion State Machine
========================

Per congestion point, per cycle:

- FREE      + measurement > upper_limit    -> CONGESTED, restrict   (ENTER_CONGESTION)
- FREE                                     -> budgeted release      (RELEASE_PROGRESS / RELEASE_WAIT)
- CONGESTED + measurement < release_limit  -> FREE, budgeted release (EXIT_CONGESTION)
- CONGESTED + measurement > upper_limit    -> restrict again        (ADJUST_CONGESTION / NO_CHANGE)
- otherwise (dead band)                    -> hold                  (NO_CHANGE)
"""

import logging

from ..events.setpoints import NotificationSink
from ..kinds import CongestionState
from ..topology.congestion_point import CongestionPoint
from ..topology.network import GridTopology
from .ordering import OrderingPolicy
from .release import get_release_budget, has_pending_restrictions, release
from .restriction import restrict
from .results import CongestionOutcome, CycleEvent

logger = logging.getLogger(__name__)


def update_congestion_state(
    topology: GridTopology,
    cp: CongestionPoint,
    now_ms: int,
    *,
    order: OrderingPolicy,
    sink: NotificationSink,
) -> CongestionOutcome:
    """
    Evaluate one congestion point's hysteresis state machine.

    Args:
        topology: Node table owning the congestion point
        cp: Congestion point to evaluate
        now_ms: Cycle timestamp (epoch ms)
        order: Participant ordering for restriction and release
        sink: Receives every setpoint change event

    Returns:
        CongestionOutcome describing the transition taken
    """
    if cp.state == CongestionState.FREE and cp.measurement > cp.upper_limit:
        cp.state = CongestionState.CONGESTED
        res = restrict(topology, cp, now_ms, order=order, sink=sink)
        logger.info(
            "%s entered congestion at %s (limit %s), %d restricted, %s unresolved",
            cp.id, cp.measurement, cp.upper_limit, len(res.changed), res.remaining,
        )
        return CongestionOutcome(
            cp.id, CycleEvent.ENTER_CONGESTION, res.changed, remaining_overload=res.remaining
        )

    if cp.state == CongestionState.FREE:
        budget = get_release_budget(cp)
        res = release(topology, cp, now_ms, order=order, sink=sink, budget=budget)
        if res.changed:
            return CongestionOutcome(
                cp.id, CycleEvent.RELEASE_PROGRESS, res.changed, remaining_budget=res.remaining_budget
            )
        if has_pending_restrictions(topology, cp):
            return CongestionOutcome(cp.id, CycleEvent.RELEASE_WAIT, remaining_budget=res.remaining_budget)

    if cp.state == CongestionState.CONGESTED and cp.measurement < cp.release_limit:
        cp.state = CongestionState.FREE
        budget = get_release_budget(cp)
        res = release(topology, cp, now_ms, order=order, sink=sink, budget=budget)
        logger.info(
            "%s left congestion at %s (release limit %s), %d released",
            cp.id, cp.measurement, cp.release_limit, len(res.changed),
        )
        return CongestionOutcome(
            cp.id, CycleEvent.EXIT_CONGESTION, res.changed, remaining_budget=res.remaining_budget
        )

    if cp.state == CongestionState.CONGESTED and cp.measurement > cp.upper_limit:
        res = restrict(topology, cp, now_ms, order=order, sink=sink)
        if res.changed:
            logger.info("%s adjusted congestion, %d more restricted", cp.id, len(res.changed))
            return CongestionOutcome(
                cp.id, CycleEvent.ADJUST_CONGESTION, res.changed, remaining_overload=res.remaining
            )
        return CongestionOutcome(cp.id, CycleEvent.NO_CHANGE, remaining_overload=res.remaining)

    return CongestionOutcome(cp.id, CycleEvent.NO_CHANGE)
