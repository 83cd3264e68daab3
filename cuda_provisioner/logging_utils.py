from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = "/var/log/cuda-provisioner.log"

GLYPHS = {
    "start": "🚀",
    "check": "🔍",
    "ok": "✅",
    "install": "📦",
    "update": "🔄",
    "download": "📥",
    "configure": "🔧",
    "delete": "🗑️",
    "platform": "🖥️",
    "done": "🎉",
    "warning": "⚠️",
    "error": "❌",
}

_LEVEL_GLYPHS = {
    logging.ERROR: GLYPHS["error"],
    logging.WARNING: GLYPHS["warning"],
}


class GlyphFilter(logging.Filter):
    """Attach ``record.glyph`` from ``extra={"status": ...}`` or the level."""

    def filter(self, record: logging.LogRecord) -> bool:
        status = getattr(record, "status", None)
        glyph = GLYPHS.get(status) if status else None
        if glyph is None:
            glyph = _LEVEL_GLYPHS.get(record.levelno, "•")
        record.glyph = glyph
        return True


def console_formatter() -> logging.Formatter:
    return logging.Formatter(fmt="[%(asctime)s] %(glyph)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging.

    Operator-facing progress goes to stdout as ``[timestamp] glyph message``.
    The full record, including command output at DEBUG, goes to log_path.

    Notes:
    - Writing to /var/log needs root. If it fails we fall back to a file in the
      current working directory and keep going.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_cuda_provisioner_configured", False):
        return getattr(logger, "_cuda_provisioner_log_path", log_path)

    chosen_path = log_path
    handlers: list[logging.Handler] = []

    file_fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
    except OSError:
        # Fall back to a writable location.
        chosen_path = str(Path.cwd() / "cuda-provisioner.log")
        file_handler = logging.FileHandler(chosen_path)
    file_handler.setFormatter(file_fmt)
    file_handler.setLevel(logging.DEBUG)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(console_formatter())
        console.addFilter(GlyphFilter())
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_cuda_provisioner_configured", True)
    setattr(logger, "_cuda_provisioner_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
