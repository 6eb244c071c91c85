"""Qtrees."""
from typing import Optional

from ..reconcile import PlannedCommand
from .base import Resource, Reconcilable

SECURITY_STYLES = ("unix", "ntfs", "mixed")


class Qtree(Reconcilable, Resource):
    """A qtree from ``qtree status``; the volume root shows up with an empty name."""

    kind = "qtree"
    key_field = "path"

    def __init__(self, filer, record):
        super().__init__(filer, record)
        self._security = self._record.get("security")
        self._oplocks = self._record.get("oplocks")

    @property
    def volume(self) -> str:
        return self._record["volume"]

    @property
    def name(self) -> str:
        return self._record.get("name", "")

    @property
    def path(self) -> str:
        return self._record["path"]

    @property
    def status(self) -> str:
        return self._record.get("status", "")

    def get_security(self) -> Optional[str]:
        return self._security

    def set_security(self, security: str) -> "Qtree":
        self._security = security
        return self

    def get_oplocks(self) -> Optional[bool]:
        return self._oplocks

    def set_oplocks(self, oplocks: bool) -> "Qtree":
        self._oplocks = bool(oplocks)
        return self

    def get_volume(self):
        return self.filer.get_volume(self.volume)

    def _lookup(self) -> "Qtree":
        return self.filer.get_qtree(self.path)

    def _desired_state(self) -> dict:
        return {"security": self._security, "oplocks": self._oplocks}

    def _current_state(self) -> Optional[dict]:
        fresh = self.refresh()
        return {"security": fresh.get_security(), "oplocks": fresh.get_oplocks()}

    def _commands_for(self, changes, desired):
        commands = []
        for change in changes:
            if change.name == "security":
                args = {"path": self.path, "security": change.desired}
            else:
                args = {"path": self.path, "oplocks": change.desired}
            commands.append(PlannedCommand("qtree", change.name, args, fields=(change.name,)))
        return commands

    def _mark_applied(self, values: dict) -> None:
        self._record.update(values)
