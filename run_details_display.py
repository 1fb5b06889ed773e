from PyQt6.QtWidgets import (
    QDialog,
    QHeaderView,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QVBoxLayout,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QBrush, QColor, QFont

from parsed_run import ParsedRun

TABLE_FONT = ("Courier New", 16)
WIN_BACKGROUND = QColor(200, 255, 200)
LOSS_BACKGROUND = QColor(255, 200, 200)


class RunDetailsDisplay(QDialog):
    def __init__(self, run: ParsedRun, parent=None):
        super().__init__(parent)
        self.run = run
        self.initUI()

    def initUI(self):
        self.setWindowTitle(f"{self.run.strategy_name} - {self.run.run_name or 'Run Details'}")
        layout = QVBoxLayout(self)

        summary = QLabel(format_summary(self.run))
        summary.setFont(QFont("Courier New", 18))
        layout.addWidget(summary)

        tabs = QTabWidget()
        tabs.addTab(self.build_trades_table(), "Trades")
        tabs.addTab(self.build_daily_table(), "Daily P&L")
        tabs.addTab(self.build_lines_table(), "Lines")
        tabs.addTab(build_table(["Name", "Value", "Type"],
                                [[p.name, p.value, p.type] for p in self.run.parameters]), "Parameters")
        tabs.addTab(build_table(["Metric", "Value", "Description"],
                                [[m.name, NumericTableWidgetItem(format_number(m.value), m.value), m.description or ""]
                                 for m in self.run.custom_metrics]), "Metrics")
        tabs.addTab(self.build_events_table(), "Events")
        layout.addWidget(tabs)
        self.resize(1200, 800)

    def build_trades_table(self):
        headers = ["Date", "Time", "Dir", "Line", "Entry", "Exit", "PnL", "Max Profit", "Max Loss",
                   "Bars", "Exit Reason", "Cumulative"]
        rows = []
        cumulative = 0.0
        for trade in self.run.detailed_trades:
            cumulative += trade.realized_pnl
            pnl_item = NumericTableWidgetItem(format_float_amount(trade.realized_pnl), trade.realized_pnl)
            if trade.is_win:
                pnl_item.setBackground(QBrush(WIN_BACKGROUND))
            elif trade.is_loss:
                pnl_item.setBackground(QBrush(LOSS_BACKGROUND))
            rows.append([
                trade.date,
                trade.time,
                trade.direction,
                trade.line_label,
                NumericTableWidgetItem(format_float_points(trade.entry_price), trade.entry_price),
                NumericTableWidgetItem(format_float_points(trade.exit_price), trade.exit_price),
                pnl_item,
                NumericTableWidgetItem(format_float_amount(trade.max_profit_dollars), trade.max_profit_dollars),
                NumericTableWidgetItem(format_float_amount(trade.max_loss_dollars), trade.max_loss_dollars),
                NumericTableWidgetItem(str(trade.bars_held), trade.bars_held),
                trade.exit_reason,
                NumericTableWidgetItem(format_float_amount(cumulative), cumulative),
            ])
        return build_table(headers, rows)

    def build_daily_table(self):
        headers = ["Date", "PnL", "Trades", "Intraday High", "Intraday Low"]
        rows = [
            [
                bucket.date,
                NumericTableWidgetItem(format_float_amount(bucket.net_pnl), bucket.net_pnl),
                NumericTableWidgetItem(str(bucket.trade_count), bucket.trade_count),
                format_optional_amount(bucket.highest_intraday_running_pnl),
                format_optional_amount(bucket.lowest_intraday_running_pnl),
            ]
            for bucket in self.run.daily_pnl
        ]
        return build_table(headers, rows)

    def build_lines_table(self):
        headers = ["Line", "Trades", "Wins", "Losses", "Win Rate", "Net PnL", "Avg PnL", "Profit Factor"]
        rows = [
            [
                stats.line_label,
                NumericTableWidgetItem(str(stats.total_trades), stats.total_trades),
                str(stats.winning_trades),
                str(stats.losing_trades),
                NumericTableWidgetItem(f"{stats.win_rate:.1%}", stats.win_rate),
                NumericTableWidgetItem(format_float_amount(stats.net_pnl), stats.net_pnl),
                NumericTableWidgetItem(format_float_amount(stats.avg_pnl), stats.avg_pnl),
                format_profit_factor(stats.profit_factor),
            ]
            for stats in self.run.line_statistics
        ]
        return build_table(headers, rows)

    def build_events_table(self):
        headers = ["Date", "Time", "Type", "Trade", "Dir", "Details"]
        events = self.run.detailed_events
        rows = []
        for event in events.tp_near_misses:
            rows.append([event.date, event.time, "TP Near Miss", _trade_id(event), event.direction,
                         f"Target {event.target}, closest {event.closest_distance} {event.reason}".strip()])
        for event in events.fill_near_misses:
            rows.append([event.date, event.time, "Fill Near Miss", _trade_id(event), event.direction,
                         f"Line {event.line_label}, closest {event.closest_distance}"])
        for event in events.sl_adjustments:
            rows.append([event.date, event.time, "SL Adjustment", _trade_id(event), event.direction,
                         f"{event.trigger}: {event.adjustment}"])
        rows.sort(key=lambda row: (row[0], row[1]))
        return build_table(headers, rows)


def build_table(headers, rows):
    table = QTableWidget()
    table.setRowCount(len(rows))
    table.setColumnCount(len(headers))
    table.setHorizontalHeaderLabels(headers)
    for row_idx, row in enumerate(rows):
        for col_idx, value in enumerate(row):
            item = value if isinstance(value, QTableWidgetItem) else QTableWidgetItem(str(value))
            if isinstance(item, NumericTableWidgetItem):
                item.setTextAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
            item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
            table.setItem(row_idx, col_idx, item)
    table.setSortingEnabled(True)
    table.setFont(QFont(*TABLE_FONT))
    table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
    table.resizeRowsToContents()
    return table


def _trade_id(event):
    return event.trade_key.trade_id if event.trade_key is not None else ""


def format_summary(run: ParsedRun):
    return (
        f"Net PnL {format_float_amount(run.net_pnl)} | "
        f"Trades {run.total_trades if run.total_trades is not None else 'n/a'} | "
        f"Win Rate {format_rate(run.win_rate)} | "
        f"PF {format_profit_factor(run.profit_factor)} | "
        f"Max DD {format_optional_amount(run.max_drawdown)} | "
        f"Sharpe {format_number(run.sharpe_ratio)}"
    )


def format_float_points(val): return f"{val:.2f}"
def format_float_amount(val): return f"{val:+,.2f}"
def format_optional_amount(val): return format_float_amount(val) if val is not None else "n/a"
def format_rate(val): return f"{val:.1%}" if val is not None else "n/a"
def format_profit_factor(val): return f"{val:.2f}" if val is not None else "n/a"
def format_number(val): return f"{val:g}" if val is not None else "n/a"


class NumericTableWidgetItem(QTableWidgetItem):
    def __init__(self, text, num_value): super().__init__(text); self.num_value = num_value
    def __lt__(self, other):
        if isinstance(other, NumericTableWidgetItem):
            if self.num_value is None: return other.num_value is not None
            if other.num_value is None: return False
            return self.num_value < other.num_value
        return super().__lt__(other)
