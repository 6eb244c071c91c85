"""Base classes for resources built from parsed filer output.

A resource is a snapshot of one record. It keeps a weak reference to the
Filer that produced it, used only for round trips (refresh, actions,
update); the resource never keeps its filer alive.
"""
import copy
import logging
import weakref
from typing import Any, Optional

from ..errors import FilerError
from ..parsing import Record, UNSET
from ..reconcile import AttributeChange, PlannedCommand, ReconcileResult, diff_attributes

logger = logging.getLogger(__name__)


class Resource:
    """One record of filer state."""

    kind: str = ""
    key_field: str = "name"

    def __init__(self, filer, record: Record):
        self._filer = weakref.ref(filer) if filer is not None else None
        self._record = copy.deepcopy(dict(record))

    @property
    def filer(self):
        filer = self._filer() if self._filer is not None else None
        if filer is None:
            raise FilerError(f"{self.kind} {self.key} is no longer attached to a filer")
        return filer

    @property
    def key(self) -> str:
        return str(self._record.get(self.key_field))

    def get(self, name: str, default: Any = UNSET) -> Any:
        """Raw field from the record."""
        return self._record.get(name, default)

    def to_dict(self) -> Record:
        return dict(self._record)

    def refresh(self) -> "Resource":
        """Fetch a new snapshot of this resource from the filer."""
        self.filer.invalidate(self.kind)
        return self._lookup()

    def _lookup(self) -> "Resource":
        raise NotImplementedError(f"{type(self).__name__} cannot be refreshed")

    def _run(self, verb: str, invalidate: tuple[str, ...] = (), **args) -> None:
        """Run a mutating catalog command for this resource."""
        self.filer.mutate(self.kind, verb, args, invalidate=(self.kind, *invalidate))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r})"


class Reconcilable:
    """Mixin for resources whose attributes are written back by update().

    Setters only change the in-memory desired state; update() is the one
    method that contacts the filer.
    """

    def update(self, dry_run: bool = False) -> ReconcileResult:
        """Apply pending attribute changes with the minimal command set."""
        return self.filer.reconciler.apply(self, dry_run=dry_run)

    def preview(self) -> str:
        """Summary of the changes update() would make."""
        return self.filer.reconciler.preview(self)

    def _diff(self, current: Optional[dict], desired: dict) -> list[AttributeChange]:
        return diff_attributes(current, desired)

    def _desired_state(self) -> dict:
        raise NotImplementedError

    def _current_state(self) -> Optional[dict]:
        raise NotImplementedError

    def _commands_for(self, changes: list[AttributeChange], desired: dict) -> list[PlannedCommand]:
        raise NotImplementedError

    def _mark_applied(self, values: dict) -> None:
        raise NotImplementedError


def option_value(value: Any) -> str:
    """Render an option value the way the filer prints it."""
    if value is True:
        return "on"
    if value is False:
        return "off"
    return str(value)


class OptionsMixin(Reconcilable):
    """Per-container options (``aggr options`` / ``vol options``).

    Only options changed through set_option() are compared and written.
    """

    def _init_options(self) -> None:
        self._options = dict(self._record.get("options") or {})
        self._touched: list[str] = []

    def get_options(self) -> dict[str, Any]:
        return dict(self._options)

    def get_option(self, name: str, default: Any = None) -> Any:
        return self._options.get(name, default)

    def set_option(self, name: str, value: Any):
        self._options[name] = option_value(value)
        if name not in self._touched:
            self._touched.append(name)
        return self

    def _desired_state(self) -> dict:
        return {name: self._options[name] for name in self._touched}

    def _current_state(self) -> Optional[dict]:
        return self.refresh().get_options()

    def _diff(self, current, desired):
        return diff_attributes(current, desired, names=self._touched)

    def _commands_for(self, changes, desired):
        return [
            PlannedCommand(
                self.kind, "options",
                {"name": self.key, "option": c.name, "value": c.desired},
                fields=(c.name,),
            )
            for c in changes
        ]

    def _mark_applied(self, values: dict) -> None:
        self._record.setdefault("options", {}).update(values)
        self._touched = [name for name in self._touched if name not in values]
