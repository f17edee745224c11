# ui/main_window.py
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QComboBox, QPushButton, QRadioButton, QButtonGroup,
)
from PySide6.QtCore import Qt, QTimer
import logging

from app.config import (
    AVAILABLE_LANGUAGES, DEFAULT_LANGUAGE, SKILL_MAX, SKILL_MIN, TIME_OPTIONS,
    CodeMode, SessionConfig, mode_from_name,
)
from app.state import Phase
from core.chrono import SecondTicker
from core.threads import QtFetchLauncher
from services.session_controller import SessionController
from services.text_provider import GenerationWarning, TextProvider
from services.typing_engine import BACKSPACE, SessionEngine
from ui.session_summary import SessionSummary
from ui.widgets import TextView

log = logging.getLogger(__name__)

APP_TITLE = "Typemaster"

WARNING_MESSAGES = {
    GenerationWarning.EMPTY: "Text generation returned nothing. Using default text.",
    GenerationWarning.FAILED: "Failed to fetch text. Please try again.",
}


class MainWindow(QMainWindow):
    def __init__(self, provider: TextProvider, config: SessionConfig = None):
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.resize(1100, 680)

        self.ticker = SecondTicker(parent=self)
        self.ticker.ticked.connect(self._refresh)
        self.engine = SessionEngine(
            self.ticker,
            on_finished=self._on_finished,
            on_phase_changed=self._on_phase_changed,
        )
        self.controller = SessionController(
            self.engine,
            provider,
            QtFetchLauncher(self),
            config=config,
            on_warning=self._on_warning,
            on_text_loaded=self._on_text_loaded,
        )

        root = QWidget(self)
        root_v = QVBoxLayout(root)
        root_v.setContentsMargins(24, 24, 24, 24)
        root_v.setSpacing(24)
        self._build_top_bar(root_v)

        self.lblTimer = QLabel("", self)
        self.lblTimer.setObjectName("lblTimer")
        self.lblTimer.setAlignment(Qt.AlignCenter)
        self.lblTimer.setStyleSheet("font-size: 30px; font-weight: 700;")
        root_v.addWidget(self.lblTimer)

        self.textView = TextView(self)
        root_v.addWidget(self.textView, 1)

        self.btnRestart = QPushButton("Restart", self)
        self.btnRestart.setFocusPolicy(Qt.NoFocus)
        self.btnRestart.clicked.connect(self._restart)
        root_v.addWidget(self.btnRestart, alignment=Qt.AlignHCenter)

        self.setCentralWidget(root)
        self.setFocusPolicy(Qt.StrongFocus)

        self._sync_controls(self.controller.config)
        self.controller.start()
        self._refresh()

    # ---------------- Top Bar ----------------
    def _build_top_bar(self, parent_layout):
        bar = QWidget(self)
        bar.setObjectName("TopBar")
        h = QHBoxLayout(bar)
        h.setContentsMargins(14, 12, 14, 12)
        h.setSpacing(10)

        self.rbGeneral = QRadioButton("General", bar)
        self.rbCode = QRadioButton("Code", bar)
        self.modeGroup = QButtonGroup(self)
        for rb in (self.rbGeneral, self.rbCode):
            rb.setFocusPolicy(Qt.NoFocus)
            self.modeGroup.addButton(rb)
            h.addWidget(rb)

        self.cmbLanguage = QComboBox(bar)
        self.cmbLanguage.addItems(AVAILABLE_LANGUAGES)

        h.addSpacing(12)
        h.addWidget(QLabel("Time:", bar))
        self.cmbTime = QComboBox(bar)
        for secs in TIME_OPTIONS:
            self.cmbTime.addItem(f"{secs}s", secs)

        self.cmbSkill = QComboBox(bar)
        for lvl in range(SKILL_MIN, SKILL_MAX + 1):
            self.cmbSkill.addItem(f"Level {lvl}", lvl)

        h.insertWidget(2, self.cmbLanguage)
        h.addWidget(self.cmbTime)
        h.addWidget(QLabel("Skill:", bar))
        h.addWidget(self.cmbSkill)
        h.addStretch(1)

        for cmb in (self.cmbLanguage, self.cmbTime, self.cmbSkill):
            cmb.setFocusPolicy(Qt.NoFocus)

        self.modeGroup.buttonClicked.connect(lambda _: self._on_controls_changed())
        self.cmbLanguage.currentIndexChanged.connect(lambda _: self._on_controls_changed())
        self.cmbTime.currentIndexChanged.connect(lambda _: self._on_controls_changed())
        self.cmbSkill.currentIndexChanged.connect(lambda _: self._on_controls_changed())

        parent_layout.addWidget(bar)

    def _sync_controls(self, cfg: SessionConfig):
        widgets = (self.rbGeneral, self.rbCode, self.cmbLanguage, self.cmbTime, self.cmbSkill)
        for w in widgets:
            w.blockSignals(True)
        (self.rbCode if isinstance(cfg.mode, CodeMode) else self.rbGeneral).setChecked(True)
        self.cmbLanguage.setCurrentText(cfg.language or DEFAULT_LANGUAGE)
        self.cmbLanguage.setVisible(isinstance(cfg.mode, CodeMode))
        self.cmbTime.setCurrentIndex(self.cmbTime.findData(cfg.time_limit_seconds))
        self.cmbSkill.setCurrentIndex(self.cmbSkill.findData(cfg.skill_level))
        for w in widgets:
            w.blockSignals(False)

    def _on_controls_changed(self):
        mode = mode_from_name("code" if self.rbCode.isChecked() else "general", self.cmbLanguage.currentText())
        cfg = SessionConfig(
            mode=mode,
            skill_level=int(self.cmbSkill.currentData()),
            time_limit_seconds=int(self.cmbTime.currentData()),
        )
        self.cmbLanguage.setVisible(isinstance(mode, CodeMode))
        self.controller.set_config(cfg)
        self._refresh()

    def _set_controls_enabled(self, enabled: bool):
        for w in (self.rbGeneral, self.rbCode, self.cmbLanguage, self.cmbTime, self.cmbSkill):
            w.setEnabled(enabled)

    # ---------------- Session ----------------
    def _restart(self):
        self.setWindowTitle(APP_TITLE)
        self.controller.restart()
        self._refresh()

    def _on_text_loaded(self):
        # drop the previous score from the title
        self.setWindowTitle(APP_TITLE)
        self._refresh()

    def _refresh(self):
        snap = self.controller.snapshot()
        self.lblTimer.setText(f"{snap.remaining_seconds}s")
        self.textView.render_snapshot(snap)
        self._set_controls_enabled(snap.phase != Phase.ACTIVE and not snap.loading)

    def _on_phase_changed(self, phase: Phase):
        log.debug("Phase -> %s", phase.value)

    def _on_finished(self, stats):
        self._refresh()
        self.setWindowTitle(f"{APP_TITLE} — {stats.net_wpm:.0f} WPM")
        # open the dialog after the key or tick handler that finished the session returns
        QTimer.singleShot(0, lambda: self._show_summary(stats))

    def _show_summary(self, stats):
        dlg = SessionSummary(stats, self.controller.config.time_limit_seconds, parent=self)
        if dlg.exec():
            self._restart()

    def _on_warning(self, warning: GenerationWarning):
        self.statusBar().showMessage(WARNING_MESSAGES[warning], 5000)

    # ---------------- Keyboard ----------------
    def keyPressEvent(self, ev):
        nk = self._normalize_key(ev)
        if nk is None:
            return super().keyPressEvent(ev)
        if self.controller.submit_key(nk):
            self._refresh()
        ev.accept()

    def _normalize_key(self, ev):
        if ev.modifiers() & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier):
            return None
        key = ev.key()
        t = ev.text()
        if key == Qt.Key_Backspace:
            return BACKSPACE
        if key in (Qt.Key_Return, Qt.Key_Enter):
            return "\n"
        if t and len(t) == 1 and (t >= " " or t == "\t"):
            return t
        return None

    def closeEvent(self, ev):
        self.controller.close()
        super().closeEvent(ev)
