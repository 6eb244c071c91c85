"""Audit trail of commands that change filer state.

Each mutating command the executor sends, and each one it only pretends to
send in a dry run, becomes a ChangeRecord. Records are written as one JSON
document per line to ``audit.log`` through the ``netapp_filer.audit``
logger, and the last few are also kept on the tracker itself.
"""
import json
import logging
import os
from collections import deque
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

audit_logger = logging.getLogger("netapp_filer.audit")

DEFAULT_AUDIT_DIR = "~/.netapp-filer"
AUDIT_FILE = "audit.log"
MAX_OUTPUT = 1000


def default_audit_file() -> str:
    return os.path.join(os.path.expanduser(DEFAULT_AUDIT_DIR), AUDIT_FILE)


def setup_audit_logging(log_dir: Optional[str] = None) -> None:
    """Send audit records to ``<log_dir>/audit.log``, replacing earlier handlers."""
    log_dir = log_dir or os.path.expanduser(DEFAULT_AUDIT_DIR)
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    for handler in list(audit_logger.handlers):
        handler.close()
        audit_logger.removeHandler(handler)

    handler = RotatingFileHandler(
        os.path.join(log_dir, AUDIT_FILE),
        maxBytes=10 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.setLevel(logging.INFO)
    audit_logger.addHandler(handler)
    audit_logger.propagate = False


@dataclass
class ChangeRecord:
    """One state-changing command and its outcome."""
    timestamp: str
    filer_id: str
    operation: str  # "volume create", "export apply", "option set", ...
    command: str
    dry_run: bool
    success: bool
    parameters: dict
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    output: str = ""
    error: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        return cls(**json.loads(json_str))


def _jsonable(data: Any) -> Any:
    """Sets become sorted lists so records round-trip through JSON."""
    if isinstance(data, dict):
        return {str(k): _jsonable(v) for k, v in data.items()}
    if isinstance(data, (set, frozenset)):
        return sorted((_jsonable(v) for v in data), key=str)
    if isinstance(data, (list, tuple)):
        return [_jsonable(v) for v in data]
    return data


class ChangeTracker:
    """Writes audit records for one filer and remembers the latest ones."""

    def __init__(self, filer_id: str, keep: int = 100):
        self.filer_id = filer_id
        self.records: deque[ChangeRecord] = deque(maxlen=keep)

    def log_change(
        self,
        operation: str,
        command: str,
        parameters: dict,
        success: bool,
        output: str = "",
        error: Optional[str] = None,
        dry_run: bool = False,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> ChangeRecord:
        """Record a command.

        Args:
            operation: Catalog operation name, e.g. "volume create"
            command: Command line as sent (or as it would have been sent)
            parameters: Structured arguments of the operation
            success: Whether the filer accepted the command
            output: Filer output, truncated to MAX_OUTPUT characters
            error: Error banner text when the command failed
            dry_run: True when the command was not sent
            before_state: Resource attributes before the change
            after_state: Resource attributes after the change
        """
        record = ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            filer_id=self.filer_id,
            operation=operation,
            command=command,
            dry_run=dry_run,
            success=success,
            parameters=_jsonable(parameters),
            before_state=None if before_state is None else _jsonable(before_state),
            after_state=None if after_state is None else _jsonable(after_state),
            output=(output or "")[:MAX_OUTPUT],
            error=error,
        )
        self.records.append(record)
        audit_logger.info(record.to_json())
        return record

    def failures(self) -> list[ChangeRecord]:
        """Remembered commands the filer rejected."""
        return [r for r in self.records if not r.success]


def get_recent_changes(
    log_file: Optional[str] = None,
    filer_id: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
    failed_only: bool = False,
    include_dry_run: bool = True,
) -> list[ChangeRecord]:
    """Read the audit log back, most recent first.

    Lines that are not audit records are skipped. A missing file is an
    empty history.
    """
    log_file = log_file or default_audit_file()
    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue
            if filer_id and record.filer_id != filer_id:
                continue
            if operation and record.operation != operation:
                continue
            if failed_only and record.success:
                continue
            if record.dry_run and not include_dry_run:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
