import math

from gridflex.control.ordering import OLDEST_INTERVENTION_FIRST
from gridflex.control.release import get_release_budget, has_pending_restrictions, release
from gridflex.events.setpoints import SetpointChangeReason
from gridflex.resources.participant import Participant
from gridflex.topology.congestion_point import CongestionPoint
from gridflex.topology.network import GridTopology

from helpers import pre_restrict, single_point


def _release(topology, cp, now_ms, sink, budget=math.inf):
    return release(topology, cp, now_ms, order=OLDEST_INTERVENTION_FIRST, sink=sink, budget=budget)


def test_release_budget_is_headroom_below_upper_limit():
    cp = CongestionPoint("CP", 0, 150, 100)
    cp.measurement = 20
    assert get_release_budget(cp) == 130
    cp.measurement = 170
    assert get_release_budget(cp) == 0


def test_release_emits_event_and_restores_flex(bus, recorded):
    p = Participant("P", 10, 5)
    topology, cp = single_point(50, 40, p)
    pre_restrict(p, cp.id)

    res = _release(topology, cp, 2000, bus)

    assert [c.participant_id for c in res.changed] == ["P"]
    assert p.setpoint == 15
    assert p.last_intervention_at == 2000
    assert p.release_countdown_by_cp == {}
    event = recorded[0]
    assert event.reason == SetpointChangeReason.RELEASE
    assert (event.old_setpoint, event.new_setpoint) == (10, 15)
    assert event.flex_reduced is None


def test_budget_consumed_in_order_until_exhausted(bus):
    p1 = Participant("P1", 10, 50)
    p2 = Participant("P2", 10, 40)
    p3 = Participant("P3", 10, 40)
    p4 = Participant("P4", 10, 30)
    topology, cp = single_point(150, 100, p1, p2, p3, p4)
    cp.measurement = 20
    for ts, p in enumerate((p1, p2, p3, p4), start=1):
        pre_restrict(p, cp.id, last_intervention_at=ts)

    res = _release(topology, cp, 12000, bus, budget=get_release_budget(cp))

    assert [c.participant_id for c in res.changed] == ["P1", "P2", "P3"]
    assert res.remaining_budget == 0
    assert p4.setpoint == p4.base
    assert p4.is_restricted_by(cp.id)
    assert not p3.is_restricted_by(cp.id)


def test_last_release_may_overrun_remaining_budget(bus):
    p1 = Participant("P1", 10, 50)
    p2 = Participant("P2", 10, 40)
    p3 = Participant("P3", 10, 60)
    topology, cp = single_point(150, 100, p1, p2, p3)
    for ts, p in enumerate((p1, p2, p3), start=1):
        pre_restrict(p, cp.id, last_intervention_at=ts)

    res = _release(topology, cp, 5000, bus, budget=80)

    assert [c.participant_id for c in res.changed] == ["P1", "P2"]
    assert res.remaining_budget == 0
    assert p3.setpoint == 10


def test_zero_budget_releases_nothing(bus, recorded):
    p = Participant("P", 10, 5)
    topology, cp = single_point(50, 40, p)
    pre_restrict(p, cp.id)

    res = _release(topology, cp, 1000, bus, budget=-5)

    assert res.changed == []
    assert res.remaining_budget == 0
    assert p.is_restricted_by(cp.id)
    assert recorded == []


def test_countdown_gates_release(bus):
    p = Participant("P", 10, 5, release_delay_cycles=2)
    topology, cp = single_point(50, 40, p)
    p.add_restriction(cp.id)

    assert _release(topology, cp, 1000, bus).changed == []
    assert has_pending_restrictions(topology, cp)

    p.tick_release_countdowns()
    p.tick_release_countdowns()
    assert [c.participant_id for c in _release(topology, cp, 2000, bus).changed] == ["P"]
    assert not has_pending_restrictions(topology, cp)


def test_release_by_one_point_keeps_clamp_of_another(bus, recorded):
    topology = GridTopology()
    topology.add_root(CongestionPoint("CP_A", 0, 100, 90))
    topology.add_root(CongestionPoint("CP_B", 0, 100, 90))
    p = topology.add_child("CP_A", Participant("P", 10, 5))
    # shared participant: also subject to CP_B
    topology.get_congestion_point("CP_B").add_child("P")
    cp_a = topology.get_congestion_point("CP_A")
    cp_b = topology.get_congestion_point("CP_B")
    pre_restrict(p, "CP_A")
    pre_restrict(p, "CP_B")

    res = _release(topology, cp_a, 3000, bus, budget=1)

    assert res.changed == []
    assert res.remaining_budget == 1
    assert p.setpoint == 10
    assert p.active_restrictions == {"CP_B"}
    assert p.last_intervention_at is None
    assert recorded == []

    res = _release(topology, cp_b, 4000, bus)
    assert [c.participant_id for c in res.changed] == ["P"]
    assert p.setpoint == 15
    assert len(recorded) == 1
