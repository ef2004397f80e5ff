import json
from pathlib import Path

from gridflex.cli import main

EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def test_run_prints_report_and_writes_json(tmp_path, capsys):
    out = tmp_path / "out.json"
    code = main([
        "run",
        str(EXAMPLES / "topology.json"),
        str(EXAMPLES / "measurements_cycle1.json"),
        str(EXAMPLES / "measurements_cycle2.json"),
        "--no-udp",
        "--json", str(out),
    ])

    assert code == 0
    stdout = capsys.readouterr().out
    assert "Topology district_north:" in stdout
    assert "CP_01: ENTER_CONGESTION" in stdout
    assert "CP_01: EXIT_CONGESTION" in stdout

    data = json.loads(out.read_text())
    assert len(data["cycles"]) == 2
    assert data["summary"]["n_cycles"] == 2
    assert data["topology"]["participants"] == 6


def test_missing_input_exits_2(tmp_path, capsys):
    code = main(["run", str(tmp_path / "nope.json"), str(EXAMPLES / "measurements_cycle1.json")])
    assert code == 2
    assert "Input error" in capsys.readouterr().err


def test_duplicate_ids_exit_2(tmp_path, capsys):
    topo = {
        "congestion_points": [
            {"id": "CP", "upper_limit": 10, "release_limit": 5,
             "children": [{"id": "P", "base": 1, "flex": 1}, {"id": "P", "base": 1, "flex": 1}]},
        ]
    }
    path = tmp_path / "topo.json"
    path.write_text(json.dumps(topo))

    code = main(["run", str(path), str(EXAMPLES / "measurements_cycle1.json"), "--no-udp"])

    assert code == 2
    assert "Duplicate topology node id: P" in capsys.readouterr().err


def test_invalid_measurements_exit_2(tmp_path, capsys):
    path = tmp_path / "m.json"
    path.write_text(json.dumps({"participants": {"P_111": "lots"}}))
    code = main(["run", str(EXAMPLES / "topology.json"), str(path)])
    assert code == 2
    assert "validation error" in capsys.readouterr().err


def test_infinite_release_delay_exits_2(tmp_path, capsys):
    path = tmp_path / "topo.json"
    path.write_text(
        '{"congestion_points": [{"id": "CP", "upper_limit": 10, "release_limit": 5,'
        ' "children": [{"id": "P", "base": 1, "flex": 1, "release_delay_cycles": Infinity}]}]}'
    )

    code = main(["run", str(path), str(EXAMPLES / "measurements_cycle1.json"), "--no-udp"])

    assert code == 2
    assert "release_delay_cycles must be finite" in capsys.readouterr().err


def test_run_prints_overview_after_every_cycle(capsys):
    code = main([
        "run",
        str(EXAMPLES / "topology.json"),
        str(EXAMPLES / "measurements_cycle1.json"),
        str(EXAMPLES / "measurements_cycle2.json"),
        "--no-udp",
    ])

    assert code == 0
    stdout = capsys.readouterr().out
    first, second = stdout.split("State after cycle 1:")[1].split("State after cycle 2:")
    assert "CP_01 measured   131" in first
    assert "restricted by: CP_01" in first
    assert "CP_01 measured    95" in second
    assert second.count("Participants:") == 1
