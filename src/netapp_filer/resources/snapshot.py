"""Snapshots and snapshot schedules."""
from typing import Optional

from ..reconcile import PlannedCommand
from .base import Resource, Reconcilable


class Snapshot(Resource):
    """One line of ``snap list``."""

    kind = "snapshot"

    @property
    def name(self) -> str:
        return self._record["name"]

    @property
    def volume(self) -> str:
        return self._record["volume"]

    @property
    def date(self) -> str:
        return self._record.get("date", "")

    @property
    def used(self) -> int:
        return self._record.get("used", 0)

    @property
    def total(self) -> int:
        return self._record.get("total", 0)

    @property
    def flags(self) -> list[str]:
        return list(self._record.get("flags", []))

    @property
    def is_busy(self) -> bool:
        return "busy" in self.flags

    def _lookup(self) -> "Snapshot":
        return self.filer.get_snapshot(self.volume, self.name)

    def delete(self) -> None:
        self._run("delete", volume=self.volume, name=self.name)

    def rename(self, new_name: str) -> "Snapshot":
        self._run("rename", volume=self.volume, name=self.name, new_name=new_name)
        return self.filer.get_snapshot(self.volume, new_name)


class Schedule(Reconcilable, Resource):
    """Automatic snapshot schedule of a volume (``snap sched``).

    ``hours`` is the number of hourly snapshots kept; ``hour_list`` the
    hours of the day at which they are taken.
    """

    kind = "schedule"
    key_field = "volume"
    FIELDS = ("weeks", "days", "hours", "hour_list")

    def __init__(self, filer, record):
        super().__init__(filer, record)
        self._desired = {
            "weeks": self._record.get("weeks", 0),
            "days": self._record.get("days", 0),
            "hours": self._record.get("hours", 0),
            "hour_list": list(self._record.get("hour_list", [])),
        }

    @property
    def volume(self) -> str:
        return self._record["volume"]

    def get_weeks(self) -> int:
        return self._desired["weeks"]

    def set_weeks(self, weeks: int) -> "Schedule":
        self._desired["weeks"] = int(weeks)
        return self

    def get_days(self) -> int:
        return self._desired["days"]

    def set_days(self, days: int) -> "Schedule":
        self._desired["days"] = int(days)
        return self

    def get_hours(self) -> int:
        return self._desired["hours"]

    def set_hours(self, hours: int) -> "Schedule":
        self._desired["hours"] = int(hours)
        return self

    def get_hour_list(self) -> list[int]:
        return list(self._desired["hour_list"])

    def set_hour_list(self, hour_list: list[int]) -> "Schedule":
        self._desired["hour_list"] = [int(h) for h in hour_list]
        return self

    def _lookup(self) -> "Schedule":
        return self.filer.get_snapshot_schedule(self.volume)

    def _desired_state(self) -> dict:
        return {name: self._desired[name] for name in self.FIELDS}

    def _current_state(self) -> Optional[dict]:
        fresh = self.refresh()
        return {name: fresh.get(name) for name in self.FIELDS}

    def _commands_for(self, changes, desired):
        # snap sched always takes the whole schedule
        args = {"volume": self.volume, **desired}
        return [PlannedCommand("schedule", "set", args, fields=self.FIELDS)]

    def _mark_applied(self, values: dict) -> None:
        self._record.update(values)
