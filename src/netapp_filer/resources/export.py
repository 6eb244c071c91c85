"""NFS exports.

An export exists in one or both of two places: /etc/exports (permanent)
and the filer's live export table (active). A permanent export whose live
rules differ from the file shows up as two Export instances sharing the
path: the permanent one, inactive, and a temporary one, active. They are
independent objects; updating one never touches the other.

Host list rules:
    set_ro_all(True)   clears ro; ro reads as empty while ro_all is set
    set_ro([...])      clears ro_all
and the same for rw/rw_all.
"""
import logging
from typing import Any, Iterable, Optional

from ..parsing import Record, UNSET, format_export_options, new_export_record
from ..reconcile import (
    EXPORT_FIELDS,
    PERMANENT,
    TEMPORARY,
    PlannedCommand,
    compare_exports,
    diff_exports,
)
from .base import Resource, Reconcilable

logger = logging.getLogger(__name__)

EXPORT_TYPES = (PERMANENT, TEMPORARY)


def _unique(items: Iterable[str]) -> list[str]:
    result: list[str] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


class Export(Reconcilable, Resource):
    """One export rule set for a path."""

    kind = "export"
    key_field = "path"

    def __init__(self, filer, record: Record, type: str = TEMPORARY, active: bool = True):
        if type not in EXPORT_TYPES:
            raise ValueError(f"Invalid export type: {type!r}. Must be one of {', '.join(EXPORT_TYPES)}")
        full = new_export_record(record.get("path", ""))
        full.update(record)
        super().__init__(filer, full)

        self._type = type
        # A temporary export is by definition in the live table
        self._active = True if type == TEMPORARY else bool(active)

        self._actual = full["actual"]
        self._nosuid = bool(full["nosuid"])
        self._anon = full["anon"]
        self._sec = _unique(full["sec"])
        self._root = list(full["root"])
        self._ro_all = bool(full["ro_all"])
        self._ro = [] if self._ro_all else list(full["ro"])
        self._rw_all = bool(full["rw_all"])
        self._rw = [] if self._rw_all else list(full["rw"])

        self._applied = self._snapshot()

    # --- identity ---

    @property
    def path(self) -> str:
        return self._record["path"]

    @property
    def type(self) -> str:
        return self._type

    @property
    def active(self) -> bool:
        return self._active

    @property
    def is_permanent(self) -> bool:
        return self._type == PERMANENT

    @property
    def is_temporary(self) -> bool:
        return self._type == TEMPORARY

    @property
    def last_applied(self) -> Record:
        """Attributes as last read from or accepted by the filer."""
        return dict(self._applied)

    # --- read-only views used for comparison ---

    @property
    def actual(self) -> Any:
        return self._actual

    @property
    def nosuid(self) -> bool:
        return self._nosuid

    @property
    def anon(self) -> Any:
        return self._anon

    @property
    def sec(self) -> list[str]:
        return list(self._sec)

    @property
    def root(self) -> list[str]:
        return list(self._root)

    @property
    def ro_all(self) -> bool:
        return self._ro_all

    @property
    def ro(self) -> list[str]:
        return [] if self._ro_all else list(self._ro)

    @property
    def rw_all(self) -> bool:
        return self._rw_all

    @property
    def rw(self) -> list[str]:
        return [] if self._rw_all else list(self._rw)

    # --- actual / nosuid / anon ---

    def get_actual(self) -> Optional[str]:
        return None if self._actual is UNSET else self._actual

    def set_actual(self, actual: Optional[str]) -> "Export":
        self._actual = UNSET if actual in (None, "") else actual
        return self

    def get_nosuid(self) -> bool:
        return self._nosuid

    def set_nosuid(self, nosuid: bool) -> "Export":
        self._nosuid = bool(nosuid)
        return self

    def get_anon(self) -> Optional[Any]:
        """Anonymous uid (or user name); None when not set. 0 is a real value."""
        return None if self._anon is UNSET else self._anon

    def set_anon(self, anon: Optional[Any]) -> "Export":
        self._anon = UNSET if anon is None else anon
        return self

    # --- sec ---

    def get_sec(self) -> list[str]:
        return list(self._sec)

    def set_sec(self, sec: Iterable[str]) -> "Export":
        self._sec = _unique(sec)
        return self

    def add_sec(self, sec: str) -> "Export":
        if sec not in self._sec:
            self._sec.append(sec)
        return self

    def remove_sec(self, sec: str) -> "Export":
        if sec in self._sec:
            self._sec.remove(sec)
        return self

    def has_sec(self, sec: str) -> bool:
        return sec in self._sec

    # --- root ---

    def get_root(self) -> list[str]:
        return list(self._root)

    def set_root(self, hosts: Iterable[str]) -> "Export":
        self._root = list(hosts)
        return self

    def add_root(self, host: str) -> "Export":
        if host not in self._root:
            self._root.append(host)
        return self

    def remove_root(self, host: str) -> "Export":
        if host in self._root:
            self._root.remove(host)
        return self

    def has_root(self, host: str) -> bool:
        return host in self._root

    # --- ro ---

    def get_ro_all(self) -> bool:
        return self._ro_all

    def set_ro_all(self, ro_all: bool) -> "Export":
        self._ro_all = bool(ro_all)
        if self._ro_all:
            self._ro = []
        return self

    def get_ro(self) -> list[str]:
        return self.ro

    def set_ro(self, hosts: Iterable[str]) -> "Export":
        self._ro = list(hosts)
        self._ro_all = False
        return self

    def add_ro(self, host: str) -> "Export":
        if not self._ro_all and host not in self._ro:
            self._ro.append(host)
        return self

    def remove_ro(self, host: str) -> "Export":
        if not self._ro_all and host in self._ro:
            self._ro.remove(host)
        return self

    def has_ro(self, host: str) -> bool:
        return not self._ro_all and host in self._ro

    # --- rw ---

    def get_rw_all(self) -> bool:
        return self._rw_all

    def set_rw_all(self, rw_all: bool) -> "Export":
        self._rw_all = bool(rw_all)
        if self._rw_all:
            self._rw = []
        return self

    def get_rw(self) -> list[str]:
        return self.rw

    def set_rw(self, hosts: Iterable[str]) -> "Export":
        self._rw = list(hosts)
        self._rw_all = False
        return self

    def add_rw(self, host: str) -> "Export":
        if not self._rw_all and host not in self._rw:
            self._rw.append(host)
        return self

    def remove_rw(self, host: str) -> "Export":
        if not self._rw_all and host in self._rw:
            self._rw.remove(host)
        return self

    def has_rw(self, host: str) -> bool:
        return not self._rw_all and host in self._rw

    # --- serialisation and comparison ---

    def _snapshot(self) -> Record:
        return {
            "actual": self._actual,
            "nosuid": self._nosuid,
            "anon": self._anon,
            "sec": list(self._sec),
            "root": list(self._root),
            "ro_all": self._ro_all,
            "ro": self.ro,
            "rw_all": self._rw_all,
            "rw": self.rw,
        }

    def to_dict(self) -> Record:
        return {"path": self.path, **self._snapshot(), "type": self._type, "active": self._active}

    def get_options_string(self) -> str:
        """Options as exportfs takes them, e.g. ``sec=sys,rw,root=admin``."""
        return format_export_options(self._snapshot())

    def compare(self, other: Any) -> bool:
        """True when other carries the same access rules, whatever its path or type."""
        return compare_exports(self, other)

    def _lookup(self) -> "Export":
        return self.filer.get_export(self.path)

    # --- reconciliation ---

    def _desired_state(self) -> dict:
        return self._snapshot()

    def _current_state(self) -> Optional[dict]:
        state = {"live": self.filer.get_live_export_record(self.path), "persisted": None}
        if self.is_permanent:
            state["persisted"] = self.filer.get_persisted_export_record(self.path)
        return state

    def _diff(self, current, desired):
        changes = diff_exports(current["live"], desired)
        if self.is_permanent and not changes:
            changes = diff_exports(current["persisted"], desired)
        return changes

    def _commands_for(self, changes, desired):
        # exportfs replaces the whole rule set, so one command carries every option
        options = format_export_options(desired)
        if self.is_permanent:
            return [PlannedCommand("export", "persist", {"options": options or None, "path": self.path}, EXPORT_FIELDS)]
        if not options:
            return [PlannedCommand("export", "apply_default", {"path": self.path}, EXPORT_FIELDS)]
        return [PlannedCommand("export", "apply", {"options": options, "path": self.path}, EXPORT_FIELDS)]

    def _mark_applied(self, values: dict) -> None:
        self._applied.update(values)
        self._record.update(values)
        self._active = True

    # --- actions ---

    def persist(self) -> "Export":
        """Write the current rules to /etc/exports and export them.

        Returns a new permanent, active Export; this instance is unchanged.
        """
        snapshot = self._snapshot()
        options = format_export_options(snapshot)
        self._run("persist", options=options or None, path=self.path)
        return Export(self.filer, {"path": self.path, **snapshot}, type=PERMANENT, active=True)

    def unexport(self) -> None:
        """Remove the path from the live export table (``exportfs -u``)."""
        self._run("unexport", path=self.path)
        if self.is_permanent:
            self._active = False

    def destroy(self) -> None:
        """Remove the path from the live table and from /etc/exports (``exportfs -z``)."""
        self._run("destroy", path=self.path)
        if self.is_permanent:
            self._active = False

    def __repr__(self) -> str:
        state = "active" if self._active else "inactive"
        return f"Export({self.path!r}, {self._type}, {state}, {self.get_options_string()!r})"
