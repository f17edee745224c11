# ui/session_summary.py
from __future__ import annotations
from PySide6.QtWidgets import QDialog, QGridLayout, QHBoxLayout, QLabel, QPushButton, QVBoxLayout
import pyqtgraph as pg

from app.calculation import SessionStats, smooth


class SessionSummary(QDialog):
    """
    Final stats for a finished session plus a net-WPM-per-second chart.
    Accepting the dialog (Restart) asks the caller for a new session.
    """

    def __init__(self, stats: SessionStats, time_limit: int, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Session Summary")
        self.resize(720, 440)

        root = QVBoxLayout(self)
        title = QLabel(f"Test complete ({time_limit}s)", self)
        title.setStyleSheet("font-size: 22px; font-weight: 600;")
        root.addWidget(title)

        grid = QGridLayout()
        rows = [
            ("WPM (Net)", f"{stats.net_wpm:.0f} wpm"),
            ("Raw WPM", f"{stats.raw_wpm:.0f} wpm"),
            ("Accuracy", f"{stats.accuracy:.1f} %"),
            ("Correct Chars", str(stats.correct_chars)),
            ("Incorrect Chars", str(stats.incorrect_chars)),
            ("Time", f"{stats.elapsed_seconds} s"),
        ]
        for i, (label, value) in enumerate(rows):
            grid.addWidget(QLabel(label, self), i // 2, (i % 2) * 2)
            grid.addWidget(QLabel(f"<b>{value}</b>", self), i // 2, (i % 2) * 2 + 1)
        root.addLayout(grid)

        if stats.mistake_chars:
            shown = " ".join(repr(ch) for ch in stats.mistake_chars)
            root.addWidget(QLabel(f"Mistyped: {shown}", self))

        plot = pg.PlotWidget()
        plot.setBackground(None)
        plot.setMenuEnabled(False)
        plot.setMouseEnabled(x=False, y=False)
        plot.hideButtons()
        plot.showGrid(x=False, y=True, alpha=0.08)
        plot.setLabel("left", "WPM")
        plot.setLabel("bottom", "Time (s)")

        series = list(stats.wpm_series)
        if series:
            xs = list(range(1, len(series) + 1))
            plot.plot(xs, smooth(series), pen=pg.mkPen(color=(200, 200, 255), width=2), symbol=None)
        root.addWidget(plot, stretch=1)

        row = QHBoxLayout()
        row.addStretch(1)
        btn_close = QPushButton("Close", self)
        btn_close.clicked.connect(self.reject)
        btn_restart = QPushButton("Restart", self)
        btn_restart.setDefault(True)
        btn_restart.clicked.connect(self.accept)
        row.addWidget(btn_close)
        row.addWidget(btn_restart)
        root.addLayout(row)
