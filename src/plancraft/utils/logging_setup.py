# Rev 0.1.2

# planCraft – logging setup
from __future__ import annotations
import logging, os, sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QtMsgType, qInstallMessageHandler

from .paths import LOGS_DIR

ROOT_LOGGER = "plancraft"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured_file: Optional[Path] = None


def _qt_handler(msg_type, context, message):
    # Qt messages land in the same log as everything else
    lvl = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }.get(msg_type, logging.INFO)
    get_logger("qt").log(lvl, message)


def get_logger(name: str) -> logging.Logger:
    """Module loggers hang off the 'plancraft' logger so one level switch covers them."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(log_dir: Path | None = None, level_name: str | None = None) -> Path:
    """Configure root logging once; later calls return the same log file."""
    global _configured_file
    if _configured_file is not None:
        return _configured_file

    # Level via env (DEBUG/INFO/WARNING/ERROR), default INFO
    level_name = (level_name or os.environ.get("PLANCRAFT_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    log_dir = Path(log_dir) if log_dir is not None else LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / "planCraft.log"

    root = logging.getLogger()
    root.setLevel(level)

    # File: rotate at 5MB, keep 7 backups
    fh = RotatingFileHandler(logfile, maxBytes=5_000_000, backupCount=7, encoding="utf-8")
    fh.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    fh.setLevel(level)
    root.addHandler(fh)

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    ch.setLevel(level)
    root.addHandler(ch)

    # Uncaught exceptions → log as ERROR
    def _excepthook(exctype, value, tb):
        logging.getLogger("unhandled").error("Uncaught exception", exc_info=(exctype, value, tb))
        sys.__excepthook__(exctype, value, tb)
    sys.excepthook = _excepthook

    qInstallMessageHandler(_qt_handler)

    _configured_file = logfile
    get_logger("logging").info("Logging initialized at %s; file: %s", level_name, logfile)
    return logfile
