from gridflex.control.cycle import ControlCycle
from gridflex.reporting import format_cycle, format_topology, setpoint_label
from gridflex.resources.participant import Participant
from gridflex.topology.congestion_point import CongestionPoint
from gridflex.topology.network import GridTopology


def small_topology():
    topology = GridTopology(name="demo")
    topology.add_root(CongestionPoint("CP_1", 0, 50, 40))
    topology.add_child("CP_1", CongestionPoint("CP_11", 1, 30, 20))
    topology.add_child("CP_11", Participant("P_A", 10, 5))
    topology.add_child("CP_1", Participant("P_B", 10, 20, release_delay_cycles=2))
    return topology


def test_topology_tree_is_indented():
    lines = format_topology(small_topology())
    assert lines[0] == "Topology demo:"
    assert lines[1].startswith("- CP_1 (level 0, limit 50, release 40)")
    assert lines[2].startswith("  - CP_11")
    assert lines[3].startswith("    - P_A (base 10, flex 5")
    assert lines[4].startswith("  - P_B")
    assert "release delay 2" in lines[4]


def test_setpoint_labels():
    p = Participant("P", 10, 5)
    assert setpoint_label(p) == "incl. flex"
    p.add_restriction("CP")
    assert setpoint_label(p) == "base"
    p.setpoint = 12
    assert setpoint_label(p) == "deviating"


def test_cycle_report_lists_points_and_participants(bus):
    topology = small_topology()
    topology.get("CP_1").measurement = 60
    topology.get("P_B").measurement = 25
    outcomes = ControlCycle(topology, sink=bus).run(now_ms=1000)

    lines = format_cycle("Cycle 1:", topology, outcomes)

    assert lines[0] == "Cycle 1:"
    cp_line = next(line for line in lines if line.startswith("CP_1 "))
    assert "ENTER_CONGESTION" in cp_line
    assert cp_line.endswith("congested")
    p_line = next(line for line in lines if line.startswith("P_B "))
    assert "(base)" in p_line
    assert "restricted by: CP_1" in p_line
    free_line = next(line for line in lines if line.startswith("CP_11 "))
    assert "NO_CHANGE" in free_line
