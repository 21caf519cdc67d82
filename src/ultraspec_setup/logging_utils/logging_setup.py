"""
Logging for ultraspec_setup.

Library modules only ever call get_logger(__name__). An entry script calls
start_logging() once; records then travel through a QueueHandler to a separate
writer process that owns the rotating log file and fsyncs after every record,
so whatever was logged before a crash is on disk.
"""
from __future__ import annotations

import atexit
import logging
import os
import sys
import threading
import traceback
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import QueueHandler, RotatingFileHandler
from multiprocessing import Process, Queue, current_process
from pathlib import Path

LOGGER_NAME = "ultraspec"
PACKAGE_PREFIX = "ultraspec_setup."
DEFAULT_LOG_DIR = Path.home() / "UltraspecLogs"

MAX_LOG_BYTES = 5_000_000
LOG_BACKUPS = 5

FILE_FORMAT = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(message)s")
CONSOLE_FORMAT = logging.Formatter("[%(levelname)s] %(message)s")

_SENTINEL = "__ULTRASPEC_LOG_STOP__"


class _SyncedRotatingFileHandler(RotatingFileHandler):
    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        try:
            self.flush()
            if self.stream is not None:
                os.fsync(self.stream.fileno())
        except (OSError, AttributeError, ValueError):
            # logging must never raise into the caller
            pass


def _run_writer(queue: Queue, log_file: str, crash_file: str) -> None:
    """Writer process body: drain the queue into the log file until the sentinel arrives."""
    sink = logging.getLogger(f"{LOGGER_NAME}.file")
    sink.propagate = False
    sink.setLevel(logging.DEBUG)
    handler = _SyncedRotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    handler.setFormatter(FILE_FORMAT)
    sink.addHandler(handler)
    try:
        for record in iter(queue.get, _SENTINEL):
            sink.handle(record)
    except (EOFError, OSError):
        with open(crash_file, "a", encoding="utf-8") as f:
            f.write(f"{datetime.now():%Y-%m-%d %H:%M:%S} log writer lost its queue\n")
    finally:
        handler.close()


@dataclass
class _LogSession:
    queue: Queue
    writer: Process
    log_file: Path
    crash_file: Path


_session: _LogSession | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """
    'ultraspec' or one of its children. Module paths lose their package prefix,
    so get_logger('ultraspec_setup.timing.speed') is 'ultraspec.timing.speed'.
    """
    if name is None or name in ("", LOGGER_NAME):
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name.removeprefix(PACKAGE_PREFIX)}")


def start_logging(log_dir: Path | None = None, level: int = logging.INFO, console: bool = True) -> Path | None:
    """
    Spawn the writer process and route the 'ultraspec' logger to it.

    Does nothing outside the main process or when already started. Returns the
    path of the log file.
    """
    global _session
    if _session is not None:
        return _session.log_file
    if current_process().name != "MainProcess":
        return None

    folder = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
    folder.mkdir(parents=True, exist_ok=True)
    stamp = f"{datetime.now():%Y%m%d_%H%M%S}"
    log_file = folder / f"ultraspec_{stamp}.log"
    crash_file = folder / f"crash_{stamp}.log"

    queue = Queue()
    writer = Process(target=_run_writer, args=(queue, str(log_file), str(crash_file)), name="LogWriter")
    writer.start()
    _session = _LogSession(queue=queue, writer=writer, log_file=log_file, crash_file=crash_file)

    root = get_logger()
    root.setLevel(level)
    root.addHandler(QueueHandler(queue))
    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(CONSOLE_FORMAT)
        root.addHandler(stream)

    atexit.register(shutdown_logging)
    return log_file


def shutdown_logging(timeout: float = 2.0) -> None:
    """Detach the queue, let the writer flush and exit. Calling it twice is harmless."""
    global _session
    session, _session = _session, None
    if session is None:
        return

    root = get_logger()
    for handler in [h for h in root.handlers if isinstance(h, (QueueHandler, logging.StreamHandler))]:
        root.removeHandler(handler)
        handler.close()

    session.queue.put(_SENTINEL)
    session.writer.join(timeout)
    if session.writer.is_alive():
        session.writer.terminate()


def install_crash_hooks() -> None:
    """Log uncaught exceptions from the main thread and worker threads, and copy them to the crash file."""

    def _report(exc_type, exc, tb):
        get_logger().critical("Uncaught exception", exc_info=(exc_type, exc, tb))
        if _session is not None:
            with open(_session.crash_file, "a", encoding="utf-8") as f:
                traceback.print_exception(exc_type, exc, tb, file=f)

    sys.excepthook = _report
    threading.excepthook = lambda args: _report(args.exc_type, args.exc_value, args.exc_traceback)
