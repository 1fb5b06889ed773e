import os
from datetime import datetime

from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QHBoxLayout, QLabel,
    QListWidget, QListWidgetItem, QPushButton, QVBoxLayout
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont

from constants import CONST
from file_utils import describe_file, get_all_matching_files

LIST_FONT = ("Arial", 18)
BUTTON_STYLE = """
    QPushButton {
        background-color: gray;
        color: black;
        border-radius: 5px;
        font-size: 16pt;
        padding: 5px 10px;
    }
    QPushButton:hover {
        background-color: lightgray;
    }
"""


class LogFileSelector(QDialog):
    """Lets the user pick strategy log dumps to import; the newest file is preselected."""

    def __init__(self, directory, pattern, parent=None):
        super().__init__(parent)
        self.directory = directory
        self.pattern = pattern
        self.selected_files = []
        self.initUI()

    def initUI(self):
        layout = QVBoxLayout(self)

        self.header_label = QLabel()
        self.header_label.setFont(QFont(*LIST_FONT))
        layout.addWidget(self.header_label)

        self.list_widget = QListWidget()
        self.list_widget.setFont(QFont(*LIST_FONT))
        self.list_widget.setSelectionMode(QListWidget.SelectionMode.MultiSelection)
        self.list_widget.itemSelectionChanged.connect(self.update_header)
        layout.addWidget(self.list_widget)

        selection_row = QHBoxLayout()
        for text, handler in (("Select All", self.list_widget.selectAll),
                              ("Clear", self.list_widget.clearSelection),
                              ("Rescan", self.populate_list)):
            button = QPushButton(text)
            button.setStyleSheet(BUTTON_STYLE)
            button.clicked.connect(handler)
            selection_row.addWidget(button)
        layout.addLayout(selection_row)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.button(QDialogButtonBox.StandardButton.Ok).setText("Import Selected Logs")
        buttons.accepted.connect(self.select_files)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self.setWindowTitle(f"Strategy Logs in {self.directory}")
        self.resize(900, 600)
        self.populate_list()

    def populate_list(self):
        self.list_widget.clear()
        files = get_all_matching_files(self.directory, self.pattern)
        for index, path in enumerate(files):
            modified = datetime.fromtimestamp(os.path.getmtime(path)).strftime(CONST.DATE_TIME_FORMAT)
            item = QListWidgetItem(f"{describe_file(path)}    ({modified})")
            item.setData(Qt.ItemDataRole.UserRole, path)
            self.list_widget.addItem(item)
            # newest first, so the first row is the most recent log
            item.setSelected(index == 0)
        self.update_header()

    def update_header(self):
        total = self.list_widget.count()
        if total == 0:
            self.header_label.setText(f"No logs found in {self.directory}")
        else:
            selected = len(self.list_widget.selectedItems())
            self.header_label.setText(f"{selected} of {total} logs selected")

    def select_files(self):
        self.selected_files = [item.data(Qt.ItemDataRole.UserRole) for item in self.list_widget.selectedItems()]
        self.accept()

    def get_selected_files(self):
        return self.selected_files
