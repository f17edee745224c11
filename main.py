# main.py
from __future__ import annotations
import sys
import logging

from PySide6.QtWidgets import QApplication, QMessageBox

from app.config import load_provider_settings
from app.errors import ConfigError
from services.text_provider import LiteLLMBackend, TextProvider
from ui.main_window import MainWindow


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("typemaster.log", encoding="utf-8"),
        ],
    )
    # litellm is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)

    # Log any uncaught exceptions rather than silently dying
    def excepthook(exctype, value, tb):
        logging.critical("Unhandled exception", exc_info=(exctype, value, tb))
        if QApplication.instance() is not None:
            QMessageBox.critical(None, "Application Error", f"{exctype.__name__}: {value}")
        sys.exit(1)

    sys.excepthook = excepthook


def main() -> int:
    setup_logging()

    try:
        settings = load_provider_settings()
    except ConfigError as e:
        logging.error("Invalid configuration: %s", e)
        return 2
    logging.info("Using model %s", settings.model)

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Typemaster")
    app.setOrganizationName("Typemaster")

    provider = TextProvider(LiteLLMBackend(settings))
    win = MainWindow(provider)
    win.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
