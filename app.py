import sys
from datetime import datetime

from PyQt6.QtWidgets import (
    QAbstractItemView, QApplication, QComboBox, QDialog, QGridLayout, QHeaderView,
    QLabel, QMessageBox, QPushButton, QTableWidget, QTableWidgetItem, QWidget,
)
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QFont

from config import Config
from constants import CONST
from dialect_registry import build_default_registry
from log_file_selector import LogFileSelector
from run_details_display import NumericTableWidgetItem, RunDetailsDisplay, format_profit_factor, format_rate
from run_ingestor import RunIngestor
from run_merger import MergeError, merge_runs
from run_store import RunStore

RUN_HEADERS = ["ID", "Baseline", "Strategy", "Run", "From", "To", "Net PnL", "Trades", "Win Rate", "PF", "Max DD"]


class StrategyRunsApp(QApplication):
    def __init__(self, config: Config):
        super().__init__(sys.argv)

        self.config = config
        self.store = RunStore(config.database_path)
        self.ingestor = RunIngestor(config, self.store, build_default_registry())
        self.window = QWidget()
        self.dropdown = QComboBox()
        self.runs_table = QTableWidget()
        self.status_label = QLabel("")
        self.dialog = LogFileSelector(config.directory_path, CONST.LOG_FILENAME_PATTERN, self.window)

        self.create_runs_window()
        print('Strategy Runs App Initialized.')

    def strategy_names(self):
        return [CONST.ALL_STRATEGIES] + [strategy["name"] for strategy in self.store.list_strategies()]

    def selected_run_ids(self):
        rows = sorted({index.row() for index in self.runs_table.selectedIndexes()})
        return [int(self.runs_table.item(row, 0).text()) for row in rows]

    def load_runs(self):
        selected = self.dropdown.currentText()
        strategy = None if selected in (CONST.ALL_STRATEGIES, CONST.SELECT_STRATEGY, "") else selected
        runs = self.store.list_runs(strategy)

        self.runs_table.setSortingEnabled(False)
        self.runs_table.setRowCount(len(runs))
        for row_idx, run in enumerate(runs):
            values = [
                NumericTableWidgetItem(str(run["id"]), run["id"]),
                "*" if run["is_baseline"] else "",
                run["strategy_name"],
                run["run_name"] or "",
                run["start_date"] or "",
                run["end_date"] or "",
                NumericTableWidgetItem(f"{run['net_pnl']:+,.2f}", run["net_pnl"]),
                NumericTableWidgetItem(str(run["total_trades"] or ""), run["total_trades"]),
                format_rate(run["win_rate"]),
                format_profit_factor(run["profit_factor"]),
                NumericTableWidgetItem(f"{run['max_drawdown'] or 0:,.2f}", run["max_drawdown"]),
            ]
            for col_idx, value in enumerate(values):
                item = value if isinstance(value, QTableWidgetItem) else QTableWidgetItem(value)
                item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
                self.runs_table.setItem(row_idx, col_idx, item)
        self.runs_table.setSortingEnabled(True)
        self.status_label.setText(f"{len(runs)} runs [{datetime.now().strftime(CONST.DATE_TIME_FORMAT)}]")

    def create_runs_window(self):
        self.window.setWindowTitle("Strategy Runs")
        layout = QGridLayout(self.window)
        font_name = "Courier New"

        self.dropdown.addItems(self.strategy_names())
        dropdown_font = QFont(font_name)
        dropdown_font.setPointSize(20)
        self.dropdown.setFont(dropdown_font)
        self.dropdown.setStyleSheet("background-color: gray; color: black;")
        layout.addWidget(self.dropdown, 0, 0, 1, 3)

        self.runs_table.setColumnCount(len(RUN_HEADERS))
        self.runs_table.setHorizontalHeaderLabels(RUN_HEADERS)
        self.runs_table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.runs_table.setSelectionMode(QAbstractItemView.SelectionMode.MultiSelection)
        self.runs_table.setFont(QFont(font_name, 14))
        self.runs_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
        layout.addWidget(self.runs_table, 1, 0, 1, 3)
        layout.addWidget(self.status_label, 2, 0, 1, 3)

        import_button = QPushButton("Import Log(s)")
        details_button = QPushButton("Show Details")
        merge_button = QPushButton("Merge Selected")
        baseline_button = QPushButton("Toggle Baseline")
        refresh_button = QPushButton("Refresh")
        close_button = QPushButton("Close")

        def refresh_all():
            existing_selection = self.dropdown.currentText()
            names = self.strategy_names()
            self.dropdown.currentTextChanged.disconnect(dropdown_changed)
            self.dropdown.clear()
            self.dropdown.addItems(names)
            self.dropdown.setCurrentText(existing_selection if existing_selection in names else CONST.ALL_STRATEGIES)
            self.dropdown.currentTextChanged.connect(dropdown_changed)
            self.load_runs()

        def dropdown_changed(_selected):
            self.load_runs()

        def import_logs():
            self.dialog.populate_list()
            if self.dialog.exec() != QDialog.DialogCode.Accepted:
                return
            paths = self.dialog.get_selected_files()
            results = self.ingestor.ingest_files(paths)
            failed = [path for path, result in zip(paths, results) if result is None]
            if failed:
                QMessageBox.warning(self.window, "Import", "Could not parse:\n" + "\n".join(failed))
            refresh_all()

        def show_details():
            for run_id in self.selected_run_ids():
                details = RunDetailsDisplay(self.store.load_parsed_run(run_id), self.window)
                details.show()

        def merge_selected():
            run_ids = self.selected_run_ids()
            try:
                merged = merge_runs([self.store.load_parsed_run(run_id) for run_id in run_ids], run_ids=run_ids)
            except MergeError as exc:
                QMessageBox.warning(self.window, "Merge", str(exc))
                return
            self.store.save_parsed_run(merged)
            refresh_all()

        def toggle_baseline():
            for run_id in self.selected_run_ids():
                run = self.store.get_run(run_id)
                self.store.set_baseline(run_id, not run["is_baseline"])
            self.load_runs()

        self.dropdown.currentTextChanged.connect(dropdown_changed)
        import_button.clicked.connect(import_logs)
        details_button.clicked.connect(show_details)
        merge_button.clicked.connect(merge_selected)
        baseline_button.clicked.connect(toggle_baseline)
        refresh_button.clicked.connect(refresh_all)
        close_button.clicked.connect(self.quit)

        button_style = """
            QPushButton {
                background-color: gray;
                color: black;
                border-radius: 5px;
                font-size: 16pt;
                padding: 5px 10px;
                min-width: 150px;
            }
            QPushButton:hover {
                background-color: lightgray;
            }
        """
        buttons = [import_button, details_button, merge_button, baseline_button, refresh_button, close_button]
        for index, button in enumerate(buttons):
            button.setStyleSheet(button_style)
            layout.addWidget(button, 3 + index // 3, index % 3, alignment=Qt.AlignmentFlag.AlignCenter)

        self.dropdown.setCurrentText(CONST.ALL_STRATEGIES)
        self.load_runs()
        self.window.resize(1400, 700)
        self.window.show()

        self.timer = QTimer()
        self.timer.timeout.connect(self.load_runs)
        self.timer.start(self.config.auto_refresh_ms)


if __name__ == "__main__":
    config = Config()
    config.configure_logging()
    app = StrategyRunsApp(config)
    sys.exit(app.exec())
