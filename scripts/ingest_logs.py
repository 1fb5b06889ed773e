"""
CLI to ingest strategy log dumps into the run store, skipping logs already ingested.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable, List, Optional

import file_utils
from config import Config
from dialect_registry import build_default_registry
from run_export import parsed_run_to_dict, validate_payload
from run_ingestor import RunIngestor
from run_store import RunStore


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parse strategy log dumps and store the runs."
    )
    parser.add_argument(
        "-i",
        "--input",
        dest="inputs_single",
        action="append",
        type=Path,
        help="Path to a strategy log or directory (repeatable). Defaults to directory_path from config.ini.",
    )
    parser.add_argument(
        "--inputs",
        nargs="+",
        type=Path,
        help="Paths to strategy logs or directories (alternative to --input).",
    )
    parser.add_argument(
        "--database",
        type=Path,
        help="SQLite database path (default: database_path from config.ini).",
    )
    parser.add_argument(
        "--file-glob",
        type=str,
        default="*.log",
        help="Glob pattern for log files inside directories (default: *.log).",
    )
    parser.add_argument(
        "--latest",
        action="store_true",
        help="Ingest only the latest log file (by mtime) from the discovered inputs.",
    )
    parser.add_argument(
        "--force-reparse",
        action="store_true",
        help="Store logs again even when the same text was ingested before.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and report counts without writing to the database.",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print each parsed run as a JSON line instead of writing to the database.",
    )
    parser.add_argument(
        "--description",
        type=str,
        help="Run description stored with every ingested run (default: the file name).",
    )
    return parser.parse_args(argv)


def gather_input_paths(args: argparse.Namespace, config: Config) -> List[Path]:
    paths: List[Path] = []
    if args.inputs:
        paths.extend(args.inputs)
    if args.inputs_single:
        paths.extend(args.inputs_single)
    if not paths:
        paths.append(Path(config.directory_path))
    return [path.expanduser() for path in paths]


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    config = Config()
    config.configure_logging()

    log_files = file_utils.resolve_log_files(
        gather_input_paths(args, config), args.file_glob, latest_only=args.latest
    )
    if not log_files:
        print("[info] no log files found")
        return 0

    store = None
    if not (args.dry_run or args.stdout):
        store = RunStore(str(args.database.expanduser() if args.database else Path(config.database_path)))
    ingestor = RunIngestor(config, store, build_default_registry())

    metrics = {
        "processed_files": 0,
        "stored_runs": 0,
        "duplicates": 0,
        "unparseable": 0,
        "total_trades": 0,
    }

    for log_file in log_files:
        metrics["processed_files"] += 1

        if args.stdout:
            parsed = ingestor.parse_text(file_utils.read_log_text(log_file))
            if parsed is None:
                metrics["unparseable"] += 1
                print(f"[warn] unrecognized log format: {log_file}", file=sys.stderr)
                continue
            parsed.run_description = args.description or file_utils.describe_file(log_file)
            payload = parsed_run_to_dict(parsed)
            validate_payload(payload)
            print(json.dumps(payload))
            metrics["total_trades"] += parsed.total_trades or 0
            continue

        result = ingestor.ingest_files(
            [log_file], run_description=args.description, force=args.force_reparse, dry_run=args.dry_run
        )[0]
        if result is None:
            metrics["unparseable"] += 1
            print(f"[warn] unrecognized log format: {log_file}", file=sys.stderr)
            continue
        if result.duplicate:
            metrics["duplicates"] += 1
            continue
        if result.run_id is not None:
            metrics["stored_runs"] += 1
        metrics["total_trades"] += result.total_trades or 0

    summary = dict(metrics)
    summary.update({"dry_run": args.dry_run, "stdout": args.stdout})
    print(json.dumps(summary), file=sys.stderr if args.stdout else sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
