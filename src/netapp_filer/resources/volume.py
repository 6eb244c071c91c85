"""Flexible and traditional volumes."""
from typing import Optional

from ..parsing import UNSET
from .base import Resource, OptionsMixin


class Volume(OptionsMixin, Resource):
    """A volume as reported by ``vol status -v``."""

    kind = "volume"

    def __init__(self, filer, record):
        super().__init__(filer, record)
        self._init_options()

    @property
    def name(self) -> str:
        return self._record["name"]

    @property
    def state(self) -> str:
        return self._record.get("state", "")

    @property
    def status(self) -> list[str]:
        return list(self._record.get("status", []))

    @property
    def aggregate(self) -> Optional[str]:
        """Containing aggregate; None for traditional volumes."""
        aggregate = self._record.get("aggregate", UNSET)
        return None if aggregate is UNSET else aggregate

    @property
    def uuid(self) -> Optional[str]:
        uuid = self._record.get("uuid", UNSET)
        return None if uuid is UNSET else uuid

    @property
    def path(self) -> str:
        return f"/vol/{self.name}"

    @property
    def is_online(self) -> bool:
        return self.state == "online"

    @property
    def is_flexible(self) -> bool:
        return "flex" in self.status

    def _lookup(self) -> "Volume":
        return self.filer.get_volume(self.name)

    def get_aggregate(self):
        if self.aggregate is None:
            return None
        return self.filer.get_aggregate(self.aggregate)

    def get_qtrees(self) -> list:
        return self.filer.get_qtrees(volume=self.name)

    def create_qtree(self, name: str, **kwargs):
        return self.filer.create_qtree(volume=self.name, name=name, **kwargs)

    def get_snapshots(self) -> list:
        return self.filer.get_snapshots(self.name)

    def get_snapshot(self, name: str):
        return self.filer.get_snapshot(self.name, name)

    def create_snapshot(self, name: str):
        return self.filer.create_snapshot(self.name, name)

    def get_snapshot_schedule(self):
        return self.filer.get_snapshot_schedule(self.name)

    def get_snapmirrors(self) -> list:
        return self.filer.get_snapmirrors(location=self.name)

    def online(self) -> None:
        self._run("online", name=self.name)

    def offline(self) -> None:
        self._run("offline", name=self.name)

    def restrict(self) -> None:
        self._run("restrict", name=self.name)

    def resize(self, size: str) -> None:
        """Set the size, e.g. "200g", "+10g"."""
        self._run("size", name=self.name, size=size)

    def rename(self, new_name: str) -> "Volume":
        """Rename on the filer and return a snapshot under the new name."""
        self._run("rename", invalidate=("aggregate", "qtree", "export"), name=self.name, new_name=new_name)
        return self.filer.get_volume(new_name)

    def destroy(self, force: bool = False) -> None:
        """Destroy the volume; it must already be offline."""
        self._run(
            "destroy",
            invalidate=("aggregate", "qtree", "snapshot", "schedule"),
            name=self.name,
            force=force,
        )
