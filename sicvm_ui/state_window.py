from __future__ import annotations

from typing import Dict

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont, QFontDatabase
from PyQt6.QtWidgets import (
    QApplication,
    QHeaderView,
    QLabel,
    QMainWindow,
    QSplitter,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)


class StateWindow(QMainWindow):
    """Read-only view of the register bank and memory map after a run."""

    def __init__(self, state: Dict[str, Dict[str, object]], title: str = "") -> None:
        super().__init__()
        self.setWindowTitle(f"SIC state - {title}" if title else "SIC state")
        self.resize(640, 480)
        self._build_ui()
        self.update_state(state)

    def _build_ui(self) -> None:
        register_section = QWidget()
        register_layout = QVBoxLayout(register_section)
        register_layout.setContentsMargins(8, 8, 8, 8)
        register_layout.addWidget(QLabel("Registers"))
        self.register_table = self._make_table(["Register", "Hex", "Dec"])
        register_layout.addWidget(self.register_table)

        memory_section = QWidget()
        memory_layout = QVBoxLayout(memory_section)
        memory_layout.setContentsMargins(8, 8, 8, 8)
        memory_layout.addWidget(QLabel("Memory"))
        self.memory_table = self._make_table(["Name", "Width", "Values"])
        memory_layout.addWidget(self.memory_table)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.setChildrenCollapsible(False)
        splitter.addWidget(register_section)
        splitter.addWidget(memory_section)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 2)
        self.setCentralWidget(splitter)

    def _make_table(self, headers: list[str]) -> QTableWidget:
        table = QTableWidget(0, len(headers))
        table.setHorizontalHeaderLabels(headers)
        table.verticalHeader().setVisible(False)
        table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        table.setFont(self._default_font())
        header = table.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.ResizeMode.Interactive)
        header.setStretchLastSection(True)
        return table

    def update_state(self, state: Dict[str, Dict[str, object]]) -> None:
        registers = state["registers"]
        self.register_table.setRowCount(len(registers))
        for row, (name, value) in enumerate(registers.items()):
            self.register_table.setItem(row, 0, QTableWidgetItem(name))
            self.register_table.setItem(row, 1, QTableWidgetItem(f"0x{int(value) & 0xFFFF:04X}"))
            self.register_table.setItem(row, 2, QTableWidgetItem(str(value)))

        memory = state["memory"]
        self.memory_table.setRowCount(len(memory))
        for row, (name, value) in enumerate(memory.items()):
            if isinstance(value, dict):
                width = str(value["width"])
                text = ", ".join(str(item) for item in value["values"])
            else:
                width = "INTEGER"
                text = str(value)
            self.memory_table.setItem(row, 0, QTableWidgetItem(name))
            self.memory_table.setItem(row, 1, QTableWidgetItem(width))
            values_item = QTableWidgetItem(text)
            values_item.setTextAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
            self.memory_table.setItem(row, 2, values_item)

    def _default_font(self) -> QFont:
        preferred = [
            "JetBrains Mono",
            "Cascadia Code",
            "Fira Code",
            "DejaVu Sans Mono",
            "Consolas",
            "Menlo",
        ]
        available = set(QFontDatabase.families())
        for name in preferred:
            if name in available:
                return QFont(name, 11)
        return QFont("Monospace", 11)


def show_state(state: Dict[str, Dict[str, object]], title: str = "") -> int:
    app = QApplication.instance() or QApplication([])
    window = StateWindow(state, title)
    window.show()
    return app.exec()
