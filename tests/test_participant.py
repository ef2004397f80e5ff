import pytest

from gridflex.kinds import NodeKind
from gridflex.resources.participant import Participant


def test_new_participant_may_use_full_flex():
    p = Participant("P", base=10, flex_contract=5)
    assert p.kind == NodeKind.PARTICIPANT
    assert p.setpoint == 15
    assert p.last_intervention_at is None
    assert not p.active_restrictions


def test_flex_use_is_never_negative():
    p = Participant("P", base=10, flex_contract=5)
    p.measurement = 7
    assert p.flex_use == 0
    p.measurement = 30
    assert p.flex_use == 20


@pytest.mark.parametrize("raw, expected", [(0, 1), (-3, 1), (1, 1), (2.9, 2), (4, 4)])
def test_release_delay_is_truncated_and_at_least_one(raw, expected):
    assert Participant("P", 10, 5, release_delay_cycles=raw).release_delay_cycles == expected


def test_negative_base_rejected():
    with pytest.raises(ValueError):
        Participant("P", base=-1, flex_contract=5)


def test_setpoint_follows_restrictions():
    p = Participant("P", base=10, flex_contract=5, release_delay_cycles=2)
    p.add_restriction("CP_A")
    p.add_restriction("CP_B")
    assert p.setpoint == 10
    assert p.release_countdown_by_cp == {"CP_A": 2, "CP_B": 2}

    p.remove_restriction("CP_A")
    assert p.setpoint == 10
    assert "CP_A" not in p.release_countdown_by_cp

    p.remove_restriction("CP_B")
    assert p.setpoint == 15
    assert p.release_countdown_by_cp == {}


def test_countdown_ticks_to_zero_and_gates_release():
    p = Participant("P", base=10, flex_contract=5, release_delay_cycles=2)
    p.add_restriction("CP")
    assert not p.can_release_from("CP")

    p.tick_release_countdowns()
    assert p.release_countdown_by_cp["CP"] == 1
    assert not p.can_release_from("CP")

    p.tick_release_countdowns()
    p.tick_release_countdowns()
    assert p.release_countdown_by_cp["CP"] == 0
    assert p.can_release_from("CP")


def test_is_clamped_only_when_restricted():
    p = Participant("P", base=10, flex_contract=5)
    assert not p.is_clamped
    p.add_restriction("CP")
    assert p.is_clamped


def test_infinite_release_delay_rejected():
    with pytest.raises(ValueError, match="finite"):
        Participant("P", 10, 5, release_delay_cycles=float("inf"))
