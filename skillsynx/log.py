"""Logging for the skillsynx package.

Handlers hang off the ``skillsynx`` logger, not the root logger, so embedding
apps (Streamlit, pytest) keep control of their own output. Console output goes
to stderr, which keeps ``run_analysis.py --json`` stdout machine-readable.

Environment:
    LOG_LEVEL           console level (default INFO)
    SKILLSYNX_LOG_DIR   directory for daily log files (default ./logs)
    SKILLSYNX_LOG_FILE  set to 0 to disable the log file
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

PACKAGE_LOGGER = "skillsynx"

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers capped at WARNING.
_NOISY = ("httpx", "httpcore", "openai", "pypdf")

_configured = False


def _log_dir() -> Path:
    default = Path(__file__).resolve().parent.parent / "logs"
    return Path(os.environ.get("SKILLSYNX_LOG_DIR") or default)


def _file_handler(formatter: logging.Formatter) -> logging.Handler | None:
    if os.environ.get("SKILLSYNX_LOG_FILE", "1").strip() in ("0", "false", "no"):
        return None
    directory = _log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(
            directory / f"skillsynx_{date.today():%Y-%m-%d}.log", encoding="utf-8"
        )
    except OSError as exc:
        print(f"skillsynx: file logging disabled ({exc})", file=sys.stderr)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure(level: str | None = None) -> logging.Logger:
    """Attach console and file handlers to the package logger once."""
    global _configured
    pkg = logging.getLogger(PACKAGE_LOGGER)
    console_level = getattr(
        logging, (level or os.environ.get("LOG_LEVEL", "INFO")).upper(), logging.INFO
    )
    if _configured:
        return pkg

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    pkg.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    pkg.addHandler(console)

    fh = _file_handler(formatter)
    if fh is not None:
        pkg.addHandler(fh)

    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    return pkg


def get_logger(name: str) -> logging.Logger:
    """Logger under the package namespace; entry scripts get ``skillsynx.<name>``."""
    configure()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
