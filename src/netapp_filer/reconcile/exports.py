"""Partition of live and persisted export records.

A path can appear in the live table (``exportfs``), in /etc/exports, or in
both. Classification keyed by path:

    persisted only                    permanent, inactive
    persisted and live, same rules    permanent, active
    persisted and live, different     permanent inactive + temporary active
    live only                         temporary, active
"""
from dataclasses import dataclass, field
from typing import Optional

from ..parsing import Record
from .diff import compare_exports

PERMANENT = "permanent"
TEMPORARY = "temporary"


@dataclass
class ExportEntry:
    """One export instance to build: its record, type and whether it is live."""
    record: Record
    type: str
    active: bool

    @property
    def path(self) -> str:
        return self.record["path"]


@dataclass
class ExportPartition:
    entries: list[ExportEntry] = field(default_factory=list)

    @property
    def permanent(self) -> list[ExportEntry]:
        return [e for e in self.entries if e.type == PERMANENT]

    @property
    def temporary(self) -> list[ExportEntry]:
        return [e for e in self.entries if e.type == TEMPORARY]

    @property
    def active(self) -> list[ExportEntry]:
        return [e for e in self.entries if e.active]

    @property
    def inactive(self) -> list[ExportEntry]:
        return [e for e in self.entries if not e.active]

    def for_path(self, path: str) -> list[ExportEntry]:
        return [e for e in self.entries if e.path == path]


def _by_path(records: list[Record]) -> dict[str, Record]:
    # The appliance applies the last line for a path
    result: dict[str, Record] = {}
    for record in records:
        result[record["path"]] = record
    return result


def classify_exports(live: list[Record], persisted: list[Record]) -> ExportPartition:
    """Split export records into permanent/temporary and active/inactive entries."""
    live_by_path = _by_path(live)
    persisted_by_path = _by_path(persisted)
    partition = ExportPartition()

    for path, record in persisted_by_path.items():
        live_record = live_by_path.get(path)
        if live_record is None:
            partition.entries.append(ExportEntry(record, PERMANENT, active=False))
        elif compare_exports(record, live_record):
            partition.entries.append(ExportEntry(record, PERMANENT, active=True))
        else:
            partition.entries.append(ExportEntry(record, PERMANENT, active=False))
            partition.entries.append(ExportEntry(live_record, TEMPORARY, active=True))

    for path, record in live_by_path.items():
        if path not in persisted_by_path:
            partition.entries.append(ExportEntry(record, TEMPORARY, active=True))

    return partition


def find_record(records: list[Record], path: str) -> Optional[Record]:
    """The effective record for a path, or None."""
    return _by_path(records).get(path)
