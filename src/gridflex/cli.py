from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import EventTransportSettings, load_measurements_file, load_topology_file
from .control.cycle import ControlCycle
from .events.setpoints import SetpointChanged
from .events.udp import SetpointNotifier, listen
from .reporting import format_cycle, format_topology
from .simulation import CycleRecord, run_simulation
from .topology.network import build_topology


def _cmd_run(args: argparse.Namespace) -> int:
    try:
        topology = build_topology(load_topology_file(args.topology))
        measurement_sets = [load_measurements_file(p) for p in args.measurements]
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print("Input validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Topology error: {e}", file=sys.stderr)
        return 2

    settings = EventTransportSettings.from_env()
    if args.no_udp:
        settings = settings.model_copy(update={"enabled": False})
    notifier = SetpointNotifier.from_settings(settings)
    cycle = ControlCycle(topology, sink=notifier)

    for line in format_topology(topology):
        print(line)

    def _report(record: CycleRecord) -> None:
        print("---")
        print(f"Cycle {record.index + 1} ({Path(args.measurements[record.index]).name}):")
        for cp_id, outcome in record.outcomes.items():
            changed = ", ".join(outcome.changed_ids) or "-"
            print(f"  {cp_id}: {outcome.event.value} (changed: {changed})")
        for line in format_cycle(f"State after cycle {record.index + 1}:", topology, record.outcomes):
            print(line)

    try:
        trace = run_simulation(
            topology,
            measurement_sets,
            cycle=cycle,
            start_ms=args.start_ms,
            interval_ms=args.interval_ms,
            on_cycle=_report,
        )
    finally:
        notifier.close()

    if args.json:
        Path(args.json).write_text(json.dumps(
            {
                "topology": topology.get_topology_summary(),
                "cycles": [
                    {
                        "index": r.index,
                        "now_ms": r.now_ms,
                        "outcomes": [o.to_dict() for o in r.outcomes.values()],
                        "setpoints": r.setpoints,
                    }
                    for r in trace.cycles
                ],
                "summary": trace.get_summary(),
            },
            indent=2,
        ))
    return 0


def _cmd_listen(args: argparse.Namespace) -> int:
    def _print(event: SetpointChanged) -> None:
        print(event.to_json(), flush=True)

    try:
        listen(args.host, args.port, _print)
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None) -> int:
    defaults = EventTransportSettings()
    parser = argparse.ArgumentParser(
        description="Hierarchical congestion management: restrict and release participant flex."
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one control cycle per measurement file.")
    run.add_argument("topology", help="Path to topology JSON.")
    run.add_argument("measurements", nargs="+", help="Measurement JSON files, one per cycle.")
    run.add_argument("--json", help="Write cycle outcomes and summary to this JSON file.")
    run.add_argument("--no-udp", action="store_true", help="Do not broadcast setpoint events over UDP.")
    run.add_argument("--start-ms", type=int, default=0, help="Timestamp of the first cycle (epoch ms).")
    run.add_argument("--interval-ms", type=int, default=1000, help="Time between cycles (ms).")
    run.set_defaults(func=_cmd_run)

    lst = sub.add_parser("listen", help="Print setpoint events received over UDP.")
    lst.add_argument("--host", default=defaults.host, help="Address to bind.")
    lst.add_argument("--port", type=int, default=defaults.port, help="Port to bind.")
    lst.set_defaults(func=_cmd_listen)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
