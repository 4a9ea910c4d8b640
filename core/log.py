# ───────────────────────────────────────────────
# Core Log module
# ───────────────────────────────────────────────

# core/log.py: process-wide line-rotating logger (line-based rollover)

from __future__ import annotations
import os, time, logging, threading
from collections import deque
from core.environment_config import config

__all__ = ["get_logger", "install_excepthook", "log_session_banner"]

ROOT_LOGGER_NAME = "ircstats"

_lock = threading.RLock()
_root_logger: logging.Logger | None = None


def _ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


class LineCountRotatingFileHandler(logging.FileHandler):
    """Rotates when the line count exceeds a threshold.
    On rollover:
      - copies the last max_lines lines to a timestamped .bak next to the log
      - truncates the active file and keeps logging
      - prunes backups beyond backup_count
    """

    def __init__(self, filename: str, mode: str = "a", encoding: str | None = "utf-8",
                 delay: bool = False, max_lines: int = 100_000, backup_count: int = 10):
        self.max_lines = int(max_lines)
        self.backup_count = int(backup_count)
        self._line_count = 0
        self._hlock = threading.RLock()
        _ensure_dir(os.path.dirname(filename) or ".")
        super().__init__(filename, mode=mode, encoding=encoding, delay=delay)
        try:
            with open(self.baseFilename, "r", encoding=encoding or "utf-8", errors="ignore") as f:
                self._line_count = sum(1 for _ in f)
        except FileNotFoundError:
            self._line_count = 0

    def emit(self, record: logging.LogRecord) -> None:
        msg = self.format(record)
        lines = msg.count("\n") + 1
        with self._hlock:
            if self._line_count + lines > self.max_lines:
                self._do_rollover()
                self._line_count = 0
            super().emit(record)
            self._line_count += lines

    def _do_rollover(self) -> None:
        if self.stream:
            self.stream.flush()
            self.stream.close()
            self.stream = None

        timestamp = time.strftime("%Y%m%d-%H%M%S")
        base = os.path.basename(self.baseFilename)
        dirn = os.path.dirname(self.baseFilename)
        backup_name = os.path.join(dirn, f"{base}.{timestamp}.bak")

        try:
            tail: deque[str] = deque(maxlen=self.max_lines)
            with open(self.baseFilename, "r", encoding=self.encoding or "utf-8", errors="ignore") as src:
                tail.extend(src)
            with open(backup_name, "w", encoding="utf-8") as dst:
                dst.writelines(tail)
        except OSError:
            # logging must never take the process down
            pass

        try:
            with open(self.baseFilename, "w", encoding="utf-8"):
                pass
        except OSError:
            pass

        self.stream = self._open()

        if self.backup_count > 0:
            self._prune_backups(dirn, base)

    def _prune_backups(self, dirn: str, base: str) -> None:
        prefix = base + "."
        try:
            files = [f for f in os.listdir(dirn or ".") if f.startswith(prefix) and f.endswith(".bak")]
        except OSError:
            return
        files.sort(reverse=True)  # newest first, timestamp is in the name
        for old in files[self.backup_count:]:
            try:
                os.remove(os.path.join(dirn, old))
            except OSError:
                pass


def _configure_root() -> logging.Logger:
    logs_dir = getattr(config, "logs_dir", "logs")
    log_file = getattr(config, "log_file", "ircstats.log")
    max_lines = int(getattr(config, "log_max_lines", 100_000))
    backup_count = int(getattr(config, "log_backup_count", 10))
    level = getattr(config, "log_level", "INFO")

    _ensure_dir(logs_dir)
    path = os.path.join(logs_dir, log_file)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    fh = LineCountRotatingFileHandler(path, max_lines=max_lines, backup_count=backup_count)
    fh.setFormatter(fmt)
    logger.addHandler(fh)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the shared, preconfigured ircstats logger."""
    global _root_logger
    with _lock:
        if _root_logger is None:
            _root_logger = _configure_root()
    if not name or name == ROOT_LOGGER_NAME:
        return _root_logger
    return _root_logger.getChild(name)


def install_excepthook(logger: logging.Logger | None = None) -> None:
    """Capture uncaught exceptions and write them to the logger."""
    if logger is None:
        logger = get_logger()

    import sys, traceback

    def _hook(exc_type, exc, tb):
        try:
            msg = "".join(traceback.format_exception(exc_type, exc, tb))
            logger.error("Uncaught exception:\n%s", msg)
        finally:
            sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _hook


def log_session_banner(logger: logging.Logger, title: str = "NEW SESSION", details: dict | None = None):
    """Write a clear separator at the beginning of a new run."""
    sep = "=" * 100
    logger.info(sep)
    logger.info(" %s  | pid=%s | started=%s", title, os.getpid(),
                time.strftime("%Y-%m-%d %H:%M:%S", time.localtime()))
    if details:
        for k, v in details.items():
            logger.info("   %s: %s", k, v)
    logger.info(sep)
