"""Aggregates and their RAID groups."""
from .base import Resource, OptionsMixin


class RaidGroup(Resource):
    """A RAID group inside one plex of an aggregate."""

    kind = "aggregate"

    @property
    def name(self) -> str:
        return self._record["name"]

    @property
    def plex(self) -> str:
        return self._record.get("plex")

    @property
    def path(self) -> str:
        return self._record["path"]

    @property
    def state(self) -> str:
        return self._record.get("state", "")

    @property
    def aggregate(self) -> str:
        return self._record.get("aggregate")

    @property
    def key(self) -> str:
        return self.path

    def get_aggregate(self) -> "Aggregate":
        return self.filer.get_aggregate(self.aggregate)


class Aggregate(OptionsMixin, Resource):
    """An aggregate as reported by ``aggr status -v``."""

    kind = "aggregate"

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
    def volume_names(self) -> list[str]:
        return list(self._record.get("volumes", []))

    @property
    def plexes(self) -> list[dict]:
        return [dict(p) for p in self._record.get("plexes", [])]

    @property
    def is_online(self) -> bool:
        return self.state == "online"

    @property
    def is_mirrored(self) -> bool:
        return "mirrored" in self.status

    def _lookup(self) -> "Aggregate":
        return self.filer.get_aggregate(self.name)

    def get_raidgroups(self) -> list[RaidGroup]:
        return [
            RaidGroup(self.filer, {**rg, "aggregate": self.name})
            for rg in self._record.get("raidgroups", [])
        ]

    def get_volumes(self) -> list:
        return [v for v in self.filer.get_volumes() if v.aggregate == self.name]

    def create_volume(self, name: str, size: str, **kwargs):
        """Create a flexible volume in this aggregate."""
        return self.filer.create_volume(name=name, aggregate=self.name, size=size, **kwargs)

    def online(self) -> None:
        self._run("online", name=self.name)

    def offline(self) -> None:
        self._run("offline", name=self.name)

    def restrict(self) -> None:
        self._run("restrict", name=self.name)

    def rename(self, new_name: str) -> "Aggregate":
        """Rename on the filer and return a snapshot under the new name."""
        self._run("rename", name=self.name, new_name=new_name)
        return self.filer.get_aggregate(new_name)

    def destroy(self, force: bool = False) -> None:
        """Destroy the aggregate; it must already be offline."""
        self._run("destroy", invalidate=("volume",), name=self.name, force=force)
