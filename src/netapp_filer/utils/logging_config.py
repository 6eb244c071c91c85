"""Logging setup and latency helpers.

Three loggers are used by the package:

``netapp_filer``
    Module loggers live below it. Console plus a rotating file.
``netapp_filer.perf``
    One line per timed call, written to ``filer-perf.log`` only.
``netapp_filer.audit``
    JSON lines for commands that change filer state (see audit_log).

Settings are read from the environment unless passed explicitly:

    FILER_LOG_LEVEL     console level (default INFO)
    FILER_LOG_FILE      main log path (default ~/.netapp-filer/filer.log)
    FILER_LOG_MAX_SIZE  rotation size in MB (default 10)
    FILER_LOG_BACKUPS   rotated files kept (default 5)
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

perf_logger = logging.getLogger("netapp_filer.perf")
main_logger = logging.getLogger("netapp_filer")

LOG_FORMAT = "%(asctime)s.%(msecs)03d | %(name)-30s | %(levelname)-7s | %(message)s"
PERF_FORMAT = "%(asctime)s.%(msecs)03d | PERF | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> int:
    """Console level from FILER_LOG_LEVEL."""
    name = os.environ.get("FILER_LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def get_log_file() -> Path:
    default = Path.home() / ".netapp-filer" / "filer.log"
    return Path(os.environ.get("FILER_LOG_FILE", str(default)))


def _rotating(path: Path, fmt: str) -> RotatingFileHandler:
    max_mb = int(os.environ.get("FILER_LOG_MAX_SIZE", "10"))
    handler = RotatingFileHandler(
        path,
        maxBytes=max_mb * 1024 * 1024,
        backupCount=int(os.environ.get("FILER_LOG_BACKUPS", "5")),
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: Optional[int] = None, log_file: Optional[Path] = None) -> Path:
    """Attach console, file, perf and audit handlers.

    The main file captures DEBUG regardless of the console level. Returns
    the path of the main log file. Calling it twice replaces the handlers
    installed by the first call.
    """
    from .audit_log import setup_audit_logging

    if level is None:
        level = get_log_level()
    log_file = Path(log_file) if log_file is not None else get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    for logger in (main_logger, perf_logger):
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    main_logger.setLevel(logging.DEBUG)
    main_logger.addHandler(console)
    main_logger.addHandler(_rotating(log_file, LOG_FORMAT))

    perf_file = log_file.parent / "filer-perf.log"
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.addHandler(_rotating(perf_file, PERF_FORMAT))
    perf_logger.propagate = False

    setup_audit_logging(str(log_file.parent))

    main_logger.info(f"Logging initialized: level={logging.getLevelName(level)}, file={log_file}")
    perf_logger.info(f"Performance logging to: {perf_file}")
    return log_file


def _report(operation: str, filer_id: Optional[str], start: float, error: Optional[Exception] = None,
            extra: Optional[dict] = None) -> None:
    elapsed = (time.perf_counter() - start) * 1000
    msg = f"{operation:20s} | {filer_id or 'N/A':15s} | {elapsed:8.2f}ms | "
    msg += "OK" if error is None else f"FAIL: {error}"
    if extra:
        msg += " | " + " | ".join(f"{k}={v}" for k, v in extra.items())
    if error is None:
        perf_logger.info(msg)
    else:
        perf_logger.warning(msg)


def timed(operation: str, filer_id: Optional[str] = None):
    """Decorator logging the latency of a call to the perf logger.

    When ``filer_id`` is omitted it is taken from ``self.filer_id`` of the
    decorated method's instance, if there is one.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            fid = filer_id
            if fid is None and args:
                fid = getattr(args[0], "filer_id", None)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(operation, fid, start, error=e)
                raise
            _report(operation, fid, start)
            return result

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, filer_id: Optional[str] = None, **extra):
    """Time a block. Keyword arguments are appended to the perf line."""
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        _report(operation, filer_id, start, error=e, extra=extra)
        raise
    _report(operation, filer_id, start, extra=extra)


class PerfStats:
    """Per-command latency samples in milliseconds.

    The executor records one sample per command sent, keyed by the
    operation name (``"volume status"``, ``"export apply"``).
    """

    def __init__(self):
        self._data: dict[str, list[float]] = {}

    def record(self, operation: str, duration_ms: float) -> None:
        self._data.setdefault(operation, []).append(duration_ms)

    def count(self, operation: str) -> int:
        return len(self._data.get(operation, []))

    def operations(self) -> list[str]:
        return sorted(op for op, samples in self._data.items() if samples)

    def summary(self) -> str:
        lines = ["Performance Summary", "=" * 60]
        for op in self.operations():
            samples = self._data[op]
            avg = sum(samples) / len(samples)
            lines.append(
                f"{op:20s} | count={len(samples):4d} | "
                f"avg={avg:8.2f}ms | min={min(samples):8.2f}ms | max={max(samples):8.2f}ms"
            )
        return "\n".join(lines)

    def clear(self) -> None:
        self._data.clear()
