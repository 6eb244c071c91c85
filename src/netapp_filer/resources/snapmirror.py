"""SnapMirror relationships (``snapmirror status -l``)."""
from typing import Optional

from ..parsing import UNSET
from .base import Resource


class Snapmirror(Resource):
    """One relationship, keyed by its destination ("filer:volume")."""

    kind = "snapmirror"
    key_field = "destination"

    def _field(self, name: str) -> Optional[str]:
        value = self._record.get(name, UNSET)
        return None if value is UNSET else value

    @property
    def source(self) -> Optional[str]:
        return self._field("source")

    @property
    def destination(self) -> Optional[str]:
        return self._field("destination")

    @property
    def status(self) -> Optional[str]:
        return self._field("status")

    @property
    def state(self) -> Optional[str]:
        return self._field("state")

    @property
    def lag(self) -> Optional[str]:
        return self._field("lag")

    @property
    def is_idle(self) -> bool:
        return (self.status or "").lower() == "idle"

    @property
    def destination_volume(self) -> Optional[str]:
        """Volume part of the destination, as local commands expect it."""
        if self.destination is None:
            return None
        return self.destination.split(":", 1)[-1]

    def _lookup(self) -> "Snapmirror":
        return self.filer.get_snapmirror(self.destination)

    def initialize(self, source: Optional[str] = None) -> None:
        """Start the baseline transfer."""
        self._run("initialize", source=source or self.source, destination=self.destination_volume)

    def transfer(self) -> None:
        """Start an incremental update (``snapmirror update``)."""
        self._run("update", destination=self.destination_volume)

    def quiesce(self) -> None:
        self._run("quiesce", destination=self.destination_volume)

    def resume(self) -> None:
        self._run("resume", destination=self.destination_volume)

    def break_mirror(self) -> None:
        """Make the destination writable."""
        self._run("break", invalidate=("volume",), destination=self.destination_volume)
