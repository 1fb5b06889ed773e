"""SQLite storage for parsed strategy runs."""

import logging
import os
import sqlite3
from typing import Any, Dict, List, Optional

from daily_bucket import DailyBucket
from parsed_run import CustomMetric, DetailedEvents, ParsedRun, RunParameter
from reconstructed_trade import ReconstructedTrade
from run_aggregator import RunAggregator
from trade_events import FillNearMissEvent, SlAdjustmentEvent, TpNearMissEvent, TradeKey

LOGGER = logging.getLogger(__name__)

TP_NEAR_MISS = "tp_near_miss"
FILL_NEAR_MISS = "fill_near_miss"
SL_ADJUSTMENT = "sl_adjustment"

TRADE_COLUMNS = [
    "trade_id", "date", "time", "direction", "line_label", "entry_price", "exit_price",
    "high_price", "low_price", "realized_pnl", "max_profit_pts", "max_loss_pts",
    "max_profit_dollars", "max_loss_dollars", "bars_held", "bars_since_last_trade",
    "exit_reason", "sl_adjustment_count", "near_miss_count", "profit_efficiency",
]

SCHEMA = """
    CREATE TABLE IF NOT EXISTS strategies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        notes TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS strategy_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        strategy_id INTEGER NOT NULL REFERENCES strategies(id),
        run_name TEXT,
        run_description TEXT,
        net_pnl REAL NOT NULL DEFAULT 0,
        total_trades INTEGER,
        win_rate REAL,
        profit_factor REAL,
        max_drawdown REAL,
        sharpe_ratio REAL,
        raw_data TEXT,
        source_sha256 TEXT,
        is_baseline INTEGER NOT NULL DEFAULT 0,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS daily_pnl (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL REFERENCES strategy_runs(id) ON DELETE CASCADE,
        date TEXT NOT NULL,
        pnl REAL NOT NULL,
        trades INTEGER NOT NULL DEFAULT 0,
        highest_intraday_pnl REAL,
        lowest_intraday_pnl REAL
    );

    CREATE TABLE IF NOT EXISTS strategy_parameters (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL REFERENCES strategy_runs(id) ON DELETE CASCADE,
        parameter_name TEXT NOT NULL,
        parameter_value TEXT,
        parameter_type TEXT NOT NULL DEFAULT 'string'
    );

    CREATE TABLE IF NOT EXISTS strategy_metrics (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL REFERENCES strategy_runs(id) ON DELETE CASCADE,
        metric_name TEXT NOT NULL,
        metric_value REAL,
        metric_description TEXT
    );

    CREATE TABLE IF NOT EXISTS strategy_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL REFERENCES strategy_runs(id) ON DELETE CASCADE,
        event_type TEXT NOT NULL,
        date TEXT NOT NULL,
        time TEXT,
        trade_id TEXT,
        direction TEXT,
        line_label TEXT,
        target TEXT,
        closest_distance TEXT,
        reason TEXT,
        sl_trigger TEXT,
        adjustment TEXT
    );

    CREATE TABLE IF NOT EXISTS strategy_trade_summaries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL REFERENCES strategy_runs(id) ON DELETE CASCADE,
        trade_id TEXT,
        date TEXT NOT NULL,
        time TEXT,
        direction TEXT,
        line_label TEXT,
        entry_price REAL,
        exit_price REAL,
        high_price REAL,
        low_price REAL,
        realized_pnl REAL,
        max_profit_pts REAL,
        max_loss_pts REAL,
        max_profit_dollars REAL,
        max_loss_dollars REAL,
        bars_held INTEGER,
        bars_since_last_trade INTEGER,
        exit_reason TEXT,
        sl_adjustment_count INTEGER DEFAULT 0,
        near_miss_count INTEGER DEFAULT 0,
        profit_efficiency REAL
    );

    CREATE INDEX IF NOT EXISTS idx_runs_strategy ON strategy_runs(strategy_id);
    CREATE INDEX IF NOT EXISTS idx_runs_sha256 ON strategy_runs(source_sha256);
    CREATE INDEX IF NOT EXISTS idx_daily_pnl_run ON daily_pnl(run_id, date);
    CREATE INDEX IF NOT EXISTS idx_events_run ON strategy_events(run_id, date);
    CREATE INDEX IF NOT EXISTS idx_trades_run ON strategy_trade_summaries(run_id, date, time);
"""


class RunStore:
    """SQLite record store for strategies and their parsed runs."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._ensure_dir()
        self._init_schema()

    def _ensure_dir(self):
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self):
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    # --- Strategies ---

    def _get_or_create_strategy(self, conn, name: str) -> int:
        row = conn.execute("SELECT id FROM strategies WHERE name = ?", (name,)).fetchone()
        if row:
            return row["id"]
        return conn.execute("INSERT INTO strategies (name) VALUES (?)", (name,)).lastrowid

    def get_or_create_strategy(self, name: str) -> int:
        conn = self._get_conn()
        try:
            strategy_id = self._get_or_create_strategy(conn, name)
            conn.commit()
            return strategy_id
        finally:
            conn.close()

    def list_strategies(self) -> List[Dict[str, Any]]:
        conn = self._get_conn()
        try:
            rows = conn.execute("""
                SELECT s.id, s.name, s.notes, COUNT(sr.id) AS run_count
                FROM strategies s
                LEFT JOIN strategy_runs sr ON sr.strategy_id = s.id
                GROUP BY s.id
                ORDER BY s.name
            """).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()

    def set_strategy_notes(self, strategy_id: int, notes: str):
        conn = self._get_conn()
        try:
            cursor = conn.execute("UPDATE strategies SET notes = ? WHERE id = ?", (notes, strategy_id))
            if cursor.rowcount == 0:
                raise KeyError(f"Strategy {strategy_id} not found")
            conn.commit()
        finally:
            conn.close()

    def get_strategy_notes(self, strategy_id: int) -> Optional[str]:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT notes FROM strategies WHERE id = ?", (strategy_id,)).fetchone()
            if row is None:
                raise KeyError(f"Strategy {strategy_id} not found")
            return row["notes"]
        finally:
            conn.close()

    # --- Writes ---

    def _insert_run(self, conn, strategy_id: int, run: ParsedRun, raw_data=None, source_sha256=None) -> int:
        return conn.execute(
            """
            INSERT INTO strategy_runs (
                strategy_id, run_name, run_description, net_pnl, total_trades, win_rate,
                profit_factor, max_drawdown, sharpe_ratio, raw_data, source_sha256
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                strategy_id, run.run_name, run.run_description, run.net_pnl, run.total_trades, run.win_rate,
                run.profit_factor, run.max_drawdown, run.sharpe_ratio, raw_data, source_sha256,
            ),
        ).lastrowid

    def _insert_daily_buckets(self, conn, run_id: int, buckets: List[DailyBucket]):
        conn.executemany(
            """
            INSERT INTO daily_pnl (run_id, date, pnl, trades, highest_intraday_pnl, lowest_intraday_pnl)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (run_id, b.date, b.net_pnl, b.trade_count, b.highest_intraday_running_pnl, b.lowest_intraday_running_pnl)
                for b in buckets
            ],
        )

    def _insert_parameters(self, conn, run_id: int, parameters: List[RunParameter]):
        conn.executemany(
            "INSERT INTO strategy_parameters (run_id, parameter_name, parameter_value, parameter_type) VALUES (?, ?, ?, ?)",
            [(run_id, p.name, p.value, p.type) for p in parameters],
        )

    def _insert_metrics(self, conn, run_id: int, metrics: List[CustomMetric]):
        conn.executemany(
            "INSERT INTO strategy_metrics (run_id, metric_name, metric_value, metric_description) VALUES (?, ?, ?, ?)",
            [(run_id, m.name, m.value, m.description) for m in metrics],
        )

    def _insert_events(self, conn, run_id: int, events: DetailedEvents):
        rows = []
        for e in events.tp_near_misses:
            rows.append((run_id, TP_NEAR_MISS, e.date, e.time, _trade_id(e), e.direction, None,
                         e.target, e.closest_distance, e.reason, None, None))
        for e in events.fill_near_misses:
            rows.append((run_id, FILL_NEAR_MISS, e.date, e.time, _trade_id(e), e.direction, e.line_label,
                         None, e.closest_distance, None, None, None))
        for e in events.sl_adjustments:
            rows.append((run_id, SL_ADJUSTMENT, e.date, e.time, _trade_id(e), e.direction, None,
                         None, None, None, e.trigger, e.adjustment))
        conn.executemany(
            """
            INSERT INTO strategy_events (
                run_id, event_type, date, time, trade_id, direction, line_label,
                target, closest_distance, reason, sl_trigger, adjustment
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )

    def _insert_trade_summaries(self, conn, run_id: int, trades: List[ReconstructedTrade]):
        columns = ", ".join(["run_id"] + TRADE_COLUMNS)
        placeholders = ", ".join("?" * (len(TRADE_COLUMNS) + 1))
        conn.executemany(
            f"INSERT INTO strategy_trade_summaries ({columns}) VALUES ({placeholders})",
            [[run_id] + [getattr(trade, column) for column in TRADE_COLUMNS] for trade in trades],
        )

    def _write(self, method, *args):
        conn = self._get_conn()
        try:
            result = method(conn, *args)
            conn.commit()
            return result
        finally:
            conn.close()

    def insert_run(self, strategy_id: int, run: ParsedRun, raw_data=None, source_sha256=None) -> int:
        return self._write(self._insert_run, strategy_id, run, raw_data, source_sha256)

    def insert_daily_buckets(self, run_id: int, buckets: List[DailyBucket]):
        self._write(self._insert_daily_buckets, run_id, buckets)

    def insert_parameters(self, run_id: int, parameters: List[RunParameter]):
        self._write(self._insert_parameters, run_id, parameters)

    def insert_metrics(self, run_id: int, metrics: List[CustomMetric]):
        self._write(self._insert_metrics, run_id, metrics)

    def insert_events(self, run_id: int, events: DetailedEvents):
        self._write(self._insert_events, run_id, events)

    def insert_trade_summaries(self, run_id: int, trades: List[ReconstructedTrade]):
        self._write(self._insert_trade_summaries, run_id, trades)

    def save_parsed_run(self, run: ParsedRun, raw_data: Optional[str] = None, source_sha256: Optional[str] = None) -> int:
        """Writes a run and all its child records in one transaction. Returns the new run id."""
        conn = self._get_conn()
        try:
            strategy_id = self._get_or_create_strategy(conn, run.strategy_name)
            run_id = self._insert_run(conn, strategy_id, run, raw_data, source_sha256)
            self._insert_daily_buckets(conn, run_id, run.daily_pnl)
            self._insert_parameters(conn, run_id, run.parameters)
            self._insert_metrics(conn, run_id, [m for m in run.custom_metrics if m.value is not None])
            self._insert_events(conn, run_id, run.detailed_events)
            self._insert_trade_summaries(conn, run_id, run.detailed_trades)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        LOGGER.info("Saved run %s (%s, %d trades)", run_id, run.strategy_name, len(run.detailed_trades))
        return run_id

    # --- Reads ---

    def _fetch_all(self, sql: str, args=()) -> List[sqlite3.Row]:
        conn = self._get_conn()
        try:
            return conn.execute(sql, args).fetchall()
        finally:
            conn.close()

    def list_runs(self, strategy_name: Optional[str] = None) -> List[Dict[str, Any]]:
        query = """
            SELECT sr.id, sr.strategy_id, s.name AS strategy_name, sr.run_name, sr.run_description,
                   sr.net_pnl, sr.total_trades, sr.win_rate, sr.profit_factor, sr.max_drawdown,
                   sr.sharpe_ratio, sr.is_baseline, sr.created_at,
                   MIN(d.date) AS start_date, MAX(d.date) AS end_date
            FROM strategy_runs sr
            JOIN strategies s ON s.id = sr.strategy_id
            LEFT JOIN daily_pnl d ON d.run_id = sr.id
        """
        args: List[Any] = []
        if strategy_name:
            query += " WHERE s.name = ?"
            args.append(strategy_name)
        query += " GROUP BY sr.id ORDER BY sr.id"
        return [dict(row) for row in self._fetch_all(query, args)]

    def get_run(self, run_id: int) -> Dict[str, Any]:
        rows = self._fetch_all("""
            SELECT sr.*, s.name AS strategy_name
            FROM strategy_runs sr
            JOIN strategies s ON s.id = sr.strategy_id
            WHERE sr.id = ?
        """, (run_id,))
        if not rows:
            raise KeyError(f"Run {run_id} not found")
        return dict(rows[0])

    def get_daily_buckets(self, run_id: int) -> List[DailyBucket]:
        rows = self._fetch_all("SELECT * FROM daily_pnl WHERE run_id = ? ORDER BY date", (run_id,))
        return [
            DailyBucket(row["date"], row["pnl"], row["trades"], row["highest_intraday_pnl"], row["lowest_intraday_pnl"])
            for row in rows
        ]

    def get_parameters(self, run_id: int) -> List[RunParameter]:
        rows = self._fetch_all("SELECT * FROM strategy_parameters WHERE run_id = ? ORDER BY id", (run_id,))
        return [RunParameter(row["parameter_name"], row["parameter_value"], row["parameter_type"]) for row in rows]

    def get_metrics(self, run_id: int) -> List[CustomMetric]:
        rows = self._fetch_all("SELECT * FROM strategy_metrics WHERE run_id = ? ORDER BY id", (run_id,))
        return [CustomMetric(row["metric_name"], row["metric_value"], row["metric_description"]) for row in rows]

    def get_events(self, run_id: int) -> DetailedEvents:
        rows = self._fetch_all("SELECT * FROM strategy_events WHERE run_id = ? ORDER BY id", (run_id,))
        events = DetailedEvents()
        for row in rows:
            key = TradeKey(row["date"], row["trade_id"]) if row["trade_id"] is not None else None
            if row["event_type"] == TP_NEAR_MISS:
                events.tp_near_misses.append(TpNearMissEvent(
                    row["date"], row["time"], key, row["direction"], row["target"], row["closest_distance"],
                    row["reason"] or ""))
            elif row["event_type"] == FILL_NEAR_MISS:
                events.fill_near_misses.append(FillNearMissEvent(
                    row["date"], row["time"], key, row["direction"], row["line_label"] or "", row["closest_distance"]))
            elif row["event_type"] == SL_ADJUSTMENT:
                events.sl_adjustments.append(SlAdjustmentEvent(
                    row["date"], row["time"], key, row["direction"], row["sl_trigger"], row["adjustment"]))
            else:
                LOGGER.warning("Skipping unknown event type '%s' in run %s", row["event_type"], run_id)
        return events

    def get_trade_summaries(self, run_id: int) -> List[ReconstructedTrade]:
        rows = self._fetch_all(
            "SELECT * FROM strategy_trade_summaries WHERE run_id = ? ORDER BY date, time, id", (run_id,))
        return [ReconstructedTrade(**{column: row[column] for column in TRADE_COLUMNS}) for row in rows]

    def get_raw_data(self, run_id: int) -> Optional[str]:
        return self.get_run(run_id)["raw_data"]

    def load_parsed_run(self, run_id: int) -> ParsedRun:
        run = self.get_run(run_id)
        trades = self.get_trade_summaries(run_id)
        return ParsedRun(
            strategy_name=run["strategy_name"],
            net_pnl=run["net_pnl"],
            run_name=run["run_name"],
            run_description=run["run_description"],
            total_trades=run["total_trades"],
            win_rate=run["win_rate"],
            profit_factor=run["profit_factor"],
            max_drawdown=run["max_drawdown"],
            sharpe_ratio=run["sharpe_ratio"],
            daily_pnl=self.get_daily_buckets(run_id),
            parameters=self.get_parameters(run_id),
            custom_metrics=self.get_metrics(run_id),
            detailed_events=self.get_events(run_id),
            detailed_trades=trades,
            line_statistics=RunAggregator(trades).aggregate().line_stats if trades else [],
        )

    def find_run_by_sha256(self, source_sha256: str) -> Optional[int]:
        rows = self._fetch_all(
            "SELECT id FROM strategy_runs WHERE source_sha256 = ? ORDER BY id LIMIT 1", (source_sha256,))
        return rows[0]["id"] if rows else None

    # --- Baseline / delete ---

    def set_baseline(self, run_id: int, is_baseline: bool = True):
        """Marks a run as its strategy's baseline, clearing any previous baseline."""
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT strategy_id FROM strategy_runs WHERE id = ?", (run_id,)).fetchone()
            if row is None:
                raise KeyError(f"Run {run_id} not found")
            if is_baseline:
                conn.execute("UPDATE strategy_runs SET is_baseline = 0 WHERE strategy_id = ?", (row["strategy_id"],))
            conn.execute("UPDATE strategy_runs SET is_baseline = ? WHERE id = ?", (1 if is_baseline else 0, run_id))
            conn.commit()
        finally:
            conn.close()

    def get_baseline(self, strategy_name: str) -> Optional[Dict[str, Any]]:
        rows = self._fetch_all("""
            SELECT sr.* FROM strategy_runs sr
            JOIN strategies s ON s.id = sr.strategy_id
            WHERE s.name = ? AND sr.is_baseline = 1
        """, (strategy_name,))
        return dict(rows[0]) if rows else None

    def delete_run(self, run_id: int):
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM strategy_runs WHERE id = ?", (run_id,))
            if cursor.rowcount == 0:
                raise KeyError(f"Run {run_id} not found")
            conn.commit()
        finally:
            conn.close()
        LOGGER.info("Deleted run %s", run_id)


def _trade_id(event) -> Optional[str]:
    return event.trade_key.trade_id if event.trade_key is not None else None
