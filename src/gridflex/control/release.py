"""
Release Engine
==============

Gives flexible capacity back to participants once a congestion point
allows it, bounded by a release budget so that restoring flex does not
push the point straight back into congestion.
"""

import logging
import math

from ..events.setpoints import NotificationSink, SetpointChanged, SetpointChangeReason
from ..topology.congestion_point import CongestionPoint
from ..topology.network import GridTopology
from .ordering import OrderingPolicy
from .results import ReleaseResult, SetpointChange

logger = logging.getLogger(__name__)


def get_release_budget(cp: CongestionPoint) -> float:
    """Headroom left below the upper limit (never negative)."""
    return max(0.0, cp.upper_limit - cp.measurement)


def has_pending_restrictions(topology: GridTopology, cp: CongestionPoint) -> bool:
    """True if any participant below the point is still restricted by it."""
    return any(p.is_restricted_by(cp.id) for p in topology.iter_participants_under(cp.id))


def release(
    topology: GridTopology,
    cp: CongestionPoint,
    now_ms: int,
    *,
    order: OrderingPolicy,
    sink: NotificationSink,
    budget: float = math.inf,
) -> ReleaseResult:
    """
    Lift this congestion point's restrictions, in policy order, within a budget.

    The budget is checked before each participant and reduced by the
    flex contract of every participant whose setpoint actually rises. A
    participant still pinned by another congestion point loses this
    point's restriction without consuming budget or emitting an event.

    Args:
        topology: Node table owning the congestion point
        cp: Congestion point to release for
        now_ms: Cycle timestamp (epoch ms)
        order: Participant ordering policy
        sink: Receives a RELEASE event for every setpoint that moves
        budget: Maximum flex to restore in this pass

    Returns:
        ReleaseResult with the setpoints changed and the budget left
    """
    remaining = max(0.0, budget)
    changed = []

    for p in order.sort(topology.participants_under(cp)):
        if remaining <= 0:
            break
        if not p.is_restricted_by(cp.id):
            continue
        if not p.can_release_from(cp.id):
            continue

        old_setpoint = p.setpoint
        p.remove_restriction(cp.id)

        if p.setpoint == old_setpoint:
            logger.debug("%s released %s, still held by %s", cp.id, p.id, sorted(p.active_restrictions))
            continue

        p.last_intervention_at = now_ms
        changed.append(SetpointChange(p.id, p.setpoint))
        remaining = max(0.0, remaining - p.flex_contract)
        sink(SetpointChanged(
            participant_id=p.id,
            cp_id=cp.id,
            reason=SetpointChangeReason.RELEASE,
            old_setpoint=old_setpoint,
            new_setpoint=p.setpoint,
            cycle_ts=now_ms,
        ))
        logger.debug("%s released %s: %s -> %s", cp.id, p.id, old_setpoint, p.setpoint)

    return ReleaseResult(changed=changed, remaining_budget=remaining)
