"""
Restriction Engine
==================

Clamps participants under an overloaded congestion point to their base
level until the measured overload is covered by their measured flex use.
"""

import logging

from ..events.setpoints import NotificationSink, SetpointChanged, SetpointChangeReason
from ..topology.congestion_point import CongestionPoint
from ..topology.network import GridTopology
from .ordering import OrderingPolicy
from .results import RestrictionResult, SetpointChange

logger = logging.getLogger(__name__)


def restrict(
    topology: GridTopology,
    cp: CongestionPoint,
    now_ms: int,
    *,
    order: OrderingPolicy,
    sink: NotificationSink,
) -> RestrictionResult:
    """
    Restrict participants below a congestion point to resolve its overload.

    Participants are visited in policy order. Once the overload is covered,
    participants that still use flex are left alone, but participants with
    no current flex use are clamped anyway, and participants already pinned
    to base by another point are still recorded as restricted by this one
    so that its release gating applies to them.

    Args:
        topology: Node table owning the congestion point
        cp: Congestion point to act for
        now_ms: Cycle timestamp (epoch ms)
        order: Participant ordering policy
        sink: Receives a RESTRICT event for every setpoint that moves

    Returns:
        RestrictionResult with the overload left and the setpoints changed
    """
    remaining = cp.measurement - cp.upper_limit
    if remaining <= 0:
        return RestrictionResult(remaining=0.0)

    changed = []
    for p in order.sort(topology.participants_under(cp)):
        if p.is_restricted_by(cp.id):
            continue

        flex_use = p.flex_use
        if remaining <= 0 and flex_use > 0 and not p.is_clamped:
            continue

        old_setpoint = p.setpoint
        p.add_restriction(cp.id)
        p.last_intervention_at = now_ms

        if p.setpoint != old_setpoint:
            changed.append(SetpointChange(p.id, p.setpoint, flex_reduced=flex_use))
            sink(SetpointChanged(
                participant_id=p.id,
                cp_id=cp.id,
                reason=SetpointChangeReason.RESTRICT,
                old_setpoint=old_setpoint,
                new_setpoint=p.setpoint,
                flex_reduced=flex_use,
                cycle_ts=now_ms,
            ))
            logger.debug("%s restricted %s: %s -> %s", cp.id, p.id, old_setpoint, p.setpoint)
        else:
            logger.debug("%s took responsibility for already clamped %s", cp.id, p.id)

        remaining = max(0.0, remaining - flex_use)

    return RestrictionResult(remaining=remaining, changed=changed)
