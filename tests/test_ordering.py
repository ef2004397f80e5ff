from gridflex.control.ordering import OLDEST_INTERVENTION_FIRST
from gridflex.resources.participant import Participant


def test_never_touched_first_then_oldest():
    a = Participant("A", 10, 5)
    b = Participant("B", 10, 50)
    c = Participant("C", 10, 50)
    a.last_intervention_at = None
    b.last_intervention_at = 2000
    c.last_intervention_at = 1000
    assert [p.id for p in OLDEST_INTERVENTION_FIRST.sort([b, c, a])] == ["A", "C", "B"]


def test_equal_timestamps_larger_flex_first():
    small = Participant("SMALL", 10, 5)
    large = Participant("LARGE", 10, 20)
    mid = Participant("MID", 10, 10)
    for p in (small, large, mid):
        p.last_intervention_at = 500
    assert [p.id for p in OLDEST_INTERVENTION_FIRST.sort([small, large, mid])] == ["LARGE", "MID", "SMALL"]


def test_full_ties_keep_input_order():
    first = Participant("FIRST", 10, 5)
    second = Participant("SECOND", 10, 5)
    assert [p.id for p in OLDEST_INTERVENTION_FIRST.sort([first, second])] == ["FIRST", "SECOND"]
    assert OLDEST_INTERVENTION_FIRST.name
