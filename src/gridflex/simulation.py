from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .config import MeasurementSet
from .control.cycle import ControlCycle
from .control.results import CongestionOutcome, CycleEvent
from .kinds import CongestionState
from .topology.network import GridTopology


@dataclass(frozen=True)
class CycleRecord:
    index: int
    now_ms: int
    outcomes: Dict[str, CongestionOutcome]
    cp_measurements: Dict[str, float]
    cp_states: Dict[str, CongestionState]
    setpoints: Dict[str, float]


@dataclass
class SimulationTrace:
    """Per-cycle record of a multi-cycle run."""
    cp_ids: List[str]
    participant_ids: List[str]
    cycles: List[CycleRecord] = field(default_factory=list)

    @property
    def n_cycles(self) -> int:
        return len(self.cycles)

    def events_for(self, cp_id: str) -> List[CycleEvent]:
        return [c.outcomes[cp_id].event for c in self.cycles if cp_id in c.outcomes]

    def get_setpoint_timeseries(self) -> Dict[str, List[float]]:
        return {pid: [c.setpoints[pid] for c in self.cycles] for pid in self.participant_ids}

    def get_summary(self) -> dict:
        """
        Summarize the run per congestion point and per participant.

        Returns:
            Dict with measurement peaks/means, congested cycle counts and
            setpoint ranges
        """
        if not self.cycles:
            return {"n_cycles": 0, "congestion_points": {}, "participants": {}}

        congestion_points = {}
        for cp_id in self.cp_ids:
            meas = np.array([c.cp_measurements[cp_id] for c in self.cycles], dtype=float)
            congested = np.array(
                [c.cp_states[cp_id] == CongestionState.CONGESTED for c in self.cycles], dtype=bool
            )
            events = self.events_for(cp_id)
            congestion_points[cp_id] = {
                "peak_measurement": float(meas.max()),
                "mean_measurement": float(meas.mean()),
                "congested_cycles": int(congested.sum()),
                "events": {e.value: events.count(e) for e in CycleEvent if e in events},
            }

        participants = {}
        for pid, series in self.get_setpoint_timeseries().items():
            arr = np.array(series, dtype=float)
            participants[pid] = {
                "min_setpoint": float(arr.min()),
                "max_setpoint": float(arr.max()),
                "setpoint_changes": int(np.count_nonzero(np.diff(arr))),
            }

        return {
            "n_cycles": self.n_cycles,
            "congestion_points": congestion_points,
            "participants": participants,
        }


def run_simulation(
    topology: GridTopology,
    measurement_sets: Sequence[MeasurementSet],
    *,
    cycle: Optional[ControlCycle] = None,
    congestion_point_ids: Optional[Sequence[str]] = None,
    start_ms: int = 0,
    interval_ms: int = 1000,
    on_cycle: Optional[Callable[[CycleRecord], None]] = None,
) -> SimulationTrace:
    """
    Drive one control cycle per measurement set.

    Cycle timestamps are synthetic: start_ms, start_ms + interval_ms, ...

    Rules:
    - Measurements are applied to the topology before each cycle.
    - Congestion points are evaluated in congestion_point_ids order
      (default: sorted by id).
    - Setpoints are snapshotted after every cycle.
    - on_cycle, if given, sees each record while the topology still holds
      that cycle's state.
    """
    cycle = cycle or ControlCycle(topology)
    cps = (
        [topology.get_congestion_point(i) for i in congestion_point_ids]
        if congestion_point_ids is not None
        else topology.congestion_points()
    )
    cp_ids = [cp.id for cp in cps]
    participants = topology.participants()
    trace = SimulationTrace(cp_ids=cp_ids, participant_ids=[p.id for p in participants])

    for i, measurements in enumerate(measurement_sets):
        now_ms = start_ms + i * interval_ms
        outcomes = cycle.step(measurements, cp_ids, now_ms)
        trace.cycles.append(CycleRecord(
            index=i,
            now_ms=now_ms,
            outcomes=outcomes,
            cp_measurements={cp.id: cp.measurement for cp in cps},
            cp_states={cp.id: cp.state for cp in cps},
            setpoints={p.id: p.setpoint for p in participants},
        ))
        if on_cycle is not None:
            on_cycle(trace.cycles[-1])

    return trace
