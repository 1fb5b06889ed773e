import json
from pathlib import Path

from run_store import RunStore
from scripts import ingest_logs

from tests.fixtures.test_data import MAGIC_LINES_LOG, SAMPLE_STRATEGY_REPORT, UNRECOGNIZED_LOG


def write_logs(input_dir: Path):
    input_dir.mkdir()
    (input_dir / "magic.log").write_text(MAGIC_LINES_LOG)
    (input_dir / "sample.log").write_text(SAMPLE_STRATEGY_REPORT)
    (input_dir / "other.log").write_text(UNRECOGNIZED_LOG)
    (input_dir / "notes.txt").write_text("not a log")


def last_json_line(text: str) -> dict:
    return json.loads(text.strip().splitlines()[-1])


def test_ingest_cli_stores_runs_and_skips_duplicates(tmp_path: Path, capsys):
    input_dir = tmp_path / "input"
    database = tmp_path / "runs.db"
    write_logs(input_dir)

    exit_code = ingest_logs.main(["--input", str(input_dir), "--database", str(database)])
    assert exit_code == 0

    metrics = last_json_line(capsys.readouterr().out)
    assert metrics["processed_files"] == 3
    assert metrics["stored_runs"] == 2
    assert metrics["unparseable"] == 1
    assert metrics["total_trades"] == 45

    runs = RunStore(str(database)).list_runs()
    assert sorted(run["run_description"] for run in runs) == ["magic.log", "sample.log"]

    # Second pass sees the same text and stores nothing new
    exit_code = ingest_logs.main(["--input", str(input_dir), "--database", str(database)])
    assert exit_code == 0
    metrics = last_json_line(capsys.readouterr().out)
    assert metrics["duplicates"] == 2
    assert metrics["stored_runs"] == 0
    assert len(RunStore(str(database)).list_runs()) == 2


def test_force_reparse_and_description(tmp_path: Path, capsys):
    input_dir = tmp_path / "input"
    database = tmp_path / "runs.db"
    write_logs(input_dir)
    magic_log = input_dir / "magic.log"

    ingest_logs.main(["--input", str(magic_log), "--database", str(database)])
    ingest_logs.main(["--input", str(magic_log), "--database", str(database), "--force-reparse",
                      "--description", "rerun"])
    capsys.readouterr()

    runs = RunStore(str(database)).list_runs()
    assert [run["run_description"] for run in runs] == ["magic.log", "rerun"]


def test_dry_run_creates_no_database(tmp_path: Path, capsys):
    input_dir = tmp_path / "input"
    database = tmp_path / "runs.db"
    write_logs(input_dir)

    exit_code = ingest_logs.main(["--input", str(input_dir), "--database", str(database), "--dry-run"])
    assert exit_code == 0

    metrics = last_json_line(capsys.readouterr().out)
    assert metrics["dry_run"] is True
    assert metrics["stored_runs"] == 0
    assert metrics["total_trades"] == 45
    assert not database.exists()


def test_stdout_prints_validated_runs(tmp_path: Path, capsys):
    input_dir = tmp_path / "input"
    write_logs(input_dir)

    exit_code = ingest_logs.main(["--inputs", str(input_dir / "magic.log"), str(input_dir / "sample.log"),
                                  "--stdout"])
    assert exit_code == 0

    captured = capsys.readouterr()
    payloads = [json.loads(line) for line in captured.out.splitlines() if line.strip()]
    assert [payload["strategy_name"] for payload in payloads] == ["MagicLinesScalper", "Sample Strategy"]
    assert payloads[0]["run_description"] == "magic.log"
    assert last_json_line(captured.err)["stdout"] is True


def test_latest_only(tmp_path: Path, capsys):
    input_dir = tmp_path / "input"
    write_logs(input_dir)

    exit_code = ingest_logs.main(["--input", str(input_dir), "--latest", "--dry-run"])
    assert exit_code == 0
    assert last_json_line(capsys.readouterr().out)["processed_files"] == 1


def test_no_log_files(tmp_path: Path, capsys):
    exit_code = ingest_logs.main(["--input", str(tmp_path / "missing"), "--database", str(tmp_path / "runs.db")])

    assert exit_code == 0
    assert "no log files found" in capsys.readouterr().out
