"""Filer-wide options (``options``)."""
from typing import Any, Optional

from ..parsing import UNSET
from ..reconcile import PlannedCommand
from .base import Resource, Reconcilable, option_value


class Option(Reconcilable, Resource):
    kind = "option"

    def __init__(self, filer, record):
        super().__init__(filer, record)
        self._value = self._record.get("value", "")

    @property
    def name(self) -> str:
        return self._record["name"]

    @property
    def comment(self) -> Optional[str]:
        comment = self._record.get("comment", UNSET)
        return None if comment is UNSET else comment

    def get_value(self) -> str:
        return self._value

    def set_value(self, value: Any) -> "Option":
        self._value = option_value(value)
        return self

    def _lookup(self) -> "Option":
        return self.filer.get_option(self.name)

    def _desired_state(self) -> dict:
        return {"value": self._value}

    def _current_state(self) -> Optional[dict]:
        return {"value": self.refresh().get_value()}

    def _commands_for(self, changes, desired):
        return [PlannedCommand("option", "set", {"name": self.name, "value": desired["value"]}, fields=("value",))]

    def _mark_applied(self, values: dict) -> None:
        self._record.update(values)
