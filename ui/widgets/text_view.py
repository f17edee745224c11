# ui/widgets/text_view.py
from __future__ import annotations
import html

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QSizePolicy

from app.state import SessionSnapshot


class TextView(QLabel):
    """Reference text with per-character feedback."""

    def __init__(self, parent=None, font_size: int = 24):
        super().__init__(parent)
        self.setObjectName("lblLine")
        self.setTextFormat(Qt.RichText)
        self.setWordWrap(True)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumWidth(700)
        self.setMinimumHeight(180)
        self.setFocusPolicy(Qt.NoFocus)
        self.setStyleSheet(f"font-family: monospace; font-size: {font_size}px;")

        self._colors = {
            "ok": "#9aa1a9",
            "err": "#ef4444",
            "err_bg": "rgba(239,68,68,0.20)",
            "todo": "#6b7280",
            "caret": "#eab308",
            "current": "#e5e7eb",
        }

    def show_message(self, msg: str):
        self.setText(f'<span style="color:{self._colors["todo"]}">{html.escape(msg)}</span>')

    def render_snapshot(self, snap: SessionSnapshot):
        if snap.loading:
            self.show_message("Loading text...")
            return
        if not snap.reference_text:
            self.show_message("Press Restart to begin.")
            return

        c = self._colors
        parts: list[str] = []
        for ch, state in zip(snap.reference_text, snap.char_states()):
            txt = html.escape(ch)
            if state == "ok":
                parts.append(f'<span style="color:{c["ok"]}">{txt}</span>')
            elif state == "err":
                parts.append(f'<span style="color:{c["err"]}; background:{c["err_bg"]}">{txt}</span>')
            elif state == "current":
                parts.append(
                    f'<span style="color:{c["current"]}; text-decoration: underline; '
                    f'text-decoration-color:{c["caret"]}">{txt}</span>'
                )
            else:
                parts.append(f'<span style="color:{c["todo"]}">{txt}</span>')
        self.setText('<p style="white-space:pre-wrap">' + "".join(parts) + "</p>")
