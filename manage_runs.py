#!/usr/bin/env python3
"""
Utility for managing stored strategy runs.

Commands:
  list [--strategy NAME]          - Show stored runs.
  show RUN_ID                     - Print a run's summary, daily P&L and line statistics.
  merge RUN_ID RUN_ID... [--name] - Merge runs of one strategy into a new run.
  baseline RUN_ID [--unset]       - Mark (or unmark) a run as its strategy's baseline.
  export RUN_ID PATH              - Write a run as validated JSON.
  import PATH                     - Store a run from an exported JSON file.
  delete RUN_ID                   - Delete a run and its child records.
  day RUN_ID DATE                 - Print one trading day of a run (raw lines and trades).
  notes STRATEGY [TEXT]           - Show or set notes for a strategy.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from config import Config
from day_slice import extract_day_slice
from run_aggregator import RunAggregator
from run_export import dump_parsed_run, load_parsed_run_file
from run_merger import MergeError, merge_runs
from run_store import RunStore


def _open_store(args: argparse.Namespace) -> RunStore:
    if args.database:
        return RunStore(str(Path(args.database).expanduser()))
    return RunStore(Config().database_path)


def _format_optional(value, fmt="{:.2f}") -> str:
    return fmt.format(value) if value is not None else "n/a"


def cmd_list(args: argparse.Namespace) -> int:
    store = _open_store(args)
    runs = store.list_runs(args.strategy)
    if not runs:
        print("No runs found.")
        return 1

    for run in runs:
        baseline = "*" if run["is_baseline"] else " "
        print(
            f"{run['id']}{baseline}\t{run['strategy_name']}\t{run['run_name'] or ''}\t"
            f"{run['start_date'] or '-'}..{run['end_date'] or '-'}\t"
            f"net={_format_optional(run['net_pnl'])}\ttrades={run['total_trades'] if run['total_trades'] is not None else 'n/a'}"
        )
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        run = store.load_parsed_run(args.run_id)
    except KeyError as exc:
        print(exc)
        return 1

    print(f"Strategy:      {run.strategy_name}")
    print(f"Run:           {run.run_name or ''}")
    print(f"Description:   {run.run_description or ''}")
    print(f"Net PnL:       {_format_optional(run.net_pnl)}")
    print(f"Total Trades:  {run.total_trades if run.total_trades is not None else 'n/a'}")
    print(f"Win Rate:      {_format_optional(run.win_rate, '{:.1%}')}")
    print(f"Profit Factor: {_format_optional(run.profit_factor)}")
    print(f"Max Drawdown:  {_format_optional(run.max_drawdown)}")
    print(f"Sharpe Ratio:  {_format_optional(run.sharpe_ratio, '{:.4f}')}")

    print("\n--- Daily P&L ---")
    for bucket in run.daily_pnl:
        print(f"{bucket.date}\t{bucket.net_pnl:.2f}\t{bucket.trade_count} trades")

    if run.line_statistics:
        RunAggregator(run.detailed_trades).print_table(run.line_statistics)
    return 0


def cmd_merge(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        runs = [store.load_parsed_run(run_id) for run_id in args.run_ids]
        merged = merge_runs(runs, run_name=args.name, run_ids=args.run_ids)
    except KeyError as exc:
        print(exc)
        return 1
    except MergeError as exc:
        print(f"Cannot merge: {exc}")
        for overlap in exc.validation.overlaps:
            print(f"  runs {overlap.run1} and {overlap.run2} overlap {overlap.overlap}")
        for name, values in exc.validation.parameter_differences.items():
            details = ", ".join(f"run {run_id}={value}" for run_id, value in values)
            print(f"  {name}: {details}")
        return 2

    run_id = store.save_parsed_run(merged)
    print(f"Merged runs {', '.join(str(r) for r in args.run_ids)} into run {run_id}")
    return 0


def cmd_baseline(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        store.set_baseline(args.run_id, not args.unset)
    except KeyError as exc:
        print(exc)
        return 1
    state = "cleared" if args.unset else "set"
    print(f"Baseline {state} for run {args.run_id}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        run = store.load_parsed_run(args.run_id)
    except KeyError as exc:
        print(exc)
        return 1
    output_path = dump_parsed_run(run, args.output)
    print(f"Exported run {args.run_id} to {output_path}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        run = load_parsed_run_file(args.path)
    except FileNotFoundError as exc:
        print(exc)
        return 1
    except ValueError as exc:
        print(exc)
        return 2
    run_id = store.save_parsed_run(run)
    print(f"Imported {args.path} as run {run_id}")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        store.delete_run(args.run_id)
    except KeyError as exc:
        print(exc)
        return 1
    print(f"Deleted run {args.run_id}")
    return 0


def cmd_day(args: argparse.Namespace) -> int:
    store = _open_store(args)
    try:
        raw_text = store.get_raw_data(args.run_id)
        run = store.load_parsed_run(args.run_id)
    except KeyError as exc:
        print(exc)
        return 1

    try:
        day = extract_day_slice(raw_text or "", args.date, run)
    except ValueError as exc:
        print(exc)
        return 2

    print(f"--- {day.date}: {day.summary.total_trades} trades, PnL {day.summary.total_pnl:.2f} "
          f"({day.summary.winning_trades}W/{day.summary.losing_trades}L) ---")
    for trade in day.trades:
        print(f"{trade.time}\t{trade.direction}\t{trade.line_label}\t{trade.entry_price:.2f} -> "
              f"{trade.exit_price:.2f}\t{trade.realized_pnl:.2f}")
    if day.raw_lines:
        print("\n--- Log ---")
        for line in day.raw_lines:
            print(line)
    return 0


def cmd_notes(args: argparse.Namespace) -> int:
    store = _open_store(args)
    strategy_id = store.get_or_create_strategy(args.strategy)
    if args.text is not None:
        store.set_strategy_notes(strategy_id, args.text)
        print(f"Notes saved for {args.strategy}")
    else:
        print(store.get_strategy_notes(strategy_id) or "")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Manage stored strategy runs."
    )
    parser.add_argument(
        "--database",
        help="SQLite database path (default: database_path from config.ini).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List stored runs.")
    list_parser.add_argument("--strategy", help="Only runs of this strategy.")

    show_parser = subparsers.add_parser("show", help="Show one run.")
    show_parser.add_argument("run_id", type=int)

    merge_parser = subparsers.add_parser("merge", help="Merge runs into a new run.")
    merge_parser.add_argument("run_ids", type=int, nargs="+")
    merge_parser.add_argument("--name", help="Name of the merged run.")

    baseline_parser = subparsers.add_parser("baseline", help="Mark a run as the strategy baseline.")
    baseline_parser.add_argument("run_id", type=int)
    baseline_parser.add_argument("--unset", action="store_true", help="Clear the baseline flag instead.")

    export_parser = subparsers.add_parser("export", help="Export a run as JSON.")
    export_parser.add_argument("run_id", type=int)
    export_parser.add_argument("output", help="Path to write the exported JSON.")

    import_parser = subparsers.add_parser("import", help="Import a run from JSON.")
    import_parser.add_argument("path")

    delete_parser = subparsers.add_parser("delete", help="Delete a run.")
    delete_parser.add_argument("run_id", type=int)

    day_parser = subparsers.add_parser("day", help="Show one trading day of a run.")
    day_parser.add_argument("run_id", type=int)
    day_parser.add_argument("date", help="Trading date, YYYY-MM-DD.")

    notes_parser = subparsers.add_parser("notes", help="Show or set strategy notes.")
    notes_parser.add_argument("strategy")
    notes_parser.add_argument("text", nargs="?", help="New notes; omit to print the current notes.")

    args = parser.parse_args(argv)
    if args.command == "list":
        return cmd_list(args)
    if args.command == "show":
        return cmd_show(args)
    if args.command == "merge":
        return cmd_merge(args)
    if args.command == "baseline":
        return cmd_baseline(args)
    if args.command == "export":
        return cmd_export(args)
    if args.command == "import":
        return cmd_import(args)
    if args.command == "delete":
        return cmd_delete(args)
    if args.command == "day":
        return cmd_day(args)
    if args.command == "notes":
        return cmd_notes(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
