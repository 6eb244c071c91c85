"""The Filer: one managed appliance and everything needed to talk to it.

    filer = Filer(FilerConfig(hostname="filer1.example.com"))
    for export in filer.get_active_exports():
        print(export.path, export.get_options_string())

    export = filer.get_export("/vol/vol1")
    export.add_root("admin1").set_ro_all(True)
    export.update()

Reads go through the filer's cache (disabled unless the config enables
it); every write invalidates the kinds it touches.
"""
import logging
from typing import Any, Callable, Optional

from .cache import FilerCache
from .commands import AggregateCreateOptions, CommandExecutor, QtreeCreateOptions, VolumeCreateOptions
from .commands.executor import quote_word
from .config.schema import FilerConfig
from .errors import NotFoundError
from .parsing import Record, UNSET
from .reconcile import PERMANENT, TEMPORARY, ReconciliationEngine, classify_exports, find_record
from .resources import (
    Aggregate,
    Export,
    License,
    Option,
    Qtree,
    Schedule,
    Snapmirror,
    Snapshot,
    Volume,
    option_value,
)
from .transport import Transport, create_transport
from .utils.audit_log import ChangeTracker
from .utils.logging_config import PerfStats, timed

logger = logging.getLogger(__name__)

# Export attributes accepted by create_export, applied in this order
EXPORT_SETTERS = ("actual", "nosuid", "anon", "sec", "root", "ro_all", "ro", "rw_all", "rw")


class Filer:
    """A NetApp filer driven through its command line.

    Args:
        config: Connection and behaviour settings; keyword arguments build
            one when omitted
        transport: Transport to use instead of the one the config selects
        cache: Cache to use instead of one built from the config
        tracker: Audit tracker for mutating commands
        connect: Open the transport now, so bad hosts and credentials fail
            at construction
    """

    def __init__(
        self,
        config: Optional[FilerConfig] = None,
        transport: Optional[Transport] = None,
        cache: Optional[FilerCache] = None,
        tracker: Optional[ChangeTracker] = None,
        connect: bool = True,
        **kwargs: Any,
    ):
        if config is None:
            config = FilerConfig(**kwargs)
        elif kwargs:
            raise TypeError(f"Unexpected arguments with a config: {', '.join(sorted(kwargs))}")

        self.config = config
        self.transport = transport if transport is not None else create_transport(config)
        if cache is None:
            cache = FilerCache(enabled=config.cache_enabled, expiration=config.cache_expiration)
        self.cache = cache
        if tracker is None:
            tracker = ChangeTracker(config.name)
        self.executor = CommandExecutor(self.transport, tracker)
        self.reconciler = ReconciliationEngine(self.executor, invalidate=self.cache.invalidate)

        if connect:
            self.transport.open()

    @property
    def filer_id(self) -> str:
        return self.config.name

    @property
    def hostname(self) -> str:
        return self.config.hostname

    @property
    def stats(self) -> PerfStats:
        return self.executor.stats

    def close(self) -> None:
        """Close the session and drop every cached read."""
        self.transport.close()
        self.cache.clear()

    def __enter__(self):
        if not self.transport.is_open:
            self.transport.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"Filer({self.filer_id!r}, protocol={self.config.protocol})"

    # --- plumbing ---

    def _cached(self, kind: str, accessor: str, args: tuple, compute: Callable[[], Any]) -> Any:
        return self.cache.get_or_compute((kind, accessor, args), compute)

    def invalidate(self, *kinds: str) -> None:
        """Drop cached reads of the given kinds, or all of them."""
        if not kinds:
            self.cache.clear()
        for kind in kinds:
            self.cache.invalidate(kind)

    def mutate(self, kind: str, verb: str, args: Any = None, invalidate: tuple[str, ...] = ()) -> list[Record]:
        """Run a mutating catalog command and invalidate the kinds it touches."""
        try:
            return self.executor.run(kind, verb, args)
        finally:
            self.invalidate(*(invalidate or (kind,)))

    def run_command(self, *argv: str) -> str:
        """Run an arbitrary command line and return its output.

        The command is audited and, since its effect is unknown, every
        cached read is dropped afterwards.
        """
        command = " ".join(quote_word(arg) for arg in argv)
        try:
            result = self.executor.execute(command, operation="command", parameters={"argv": list(argv)})
        finally:
            self.invalidate()
        return result.output

    def _find(self, kind: str, key: str, items: list, match: Callable[[Any], bool]):
        for item in items:
            if match(item):
                return item
        raise NotFoundError(kind, key)

    # --- system ---

    @timed("get_version")
    def get_version(self) -> str:
        """Data ONTAP release, e.g. "7.3.6"."""
        def compute():
            return self.executor.run("version", "show")[0]["release"]
        return self._cached("version", "get_version", (), compute)

    # --- licenses ---

    def get_licenses(self) -> list[License]:
        def compute():
            return [License(self, r) for r in self.executor.run("license", "list")]
        return self._cached("license", "get_licenses", (), compute)

    def get_license(self, service: str) -> License:
        return self._find("license", service, self.get_licenses(), lambda lic: lic.service == service)

    def add_license(self, code: str) -> None:
        self.mutate("license", "add", {"code": code})

    def delete_license(self, service: str) -> None:
        self.mutate("license", "delete", {"service": service})

    # --- options ---

    def get_options(self) -> list[Option]:
        def compute():
            return [Option(self, r) for r in self.executor.run("option", "list")]
        return self._cached("option", "get_options", (), compute)

    def get_option(self, name: str) -> Option:
        def compute():
            return [Option(self, r) for r in self.executor.run("option", "list", {"prefix": name})]
        options = self._cached("option", "get_option", (name,), compute)
        return self._find("option", name, options, lambda o: o.name == name)

    def set_option(self, name: str, value: Any) -> None:
        self.mutate("option", "set", {"name": name, "value": option_value(value)})

    # --- aggregates ---

    def get_aggregates(self) -> list[Aggregate]:
        def compute():
            return [Aggregate(self, r) for r in self.executor.run("aggregate", "status")]
        return self._cached("aggregate", "get_aggregates", (), compute)

    def get_aggregate(self, name: str) -> Aggregate:
        return self._find("aggregate", name, self.get_aggregates(), lambda a: a.name == name)

    def create_aggregate(self, options: Optional[AggregateCreateOptions] = None, **fields: Any) -> Aggregate:
        """Create an aggregate from an options struct or its fields."""
        if options is None:
            options = AggregateCreateOptions(**fields)
        logger.info(f"[{self.filer_id}] creating aggregate {options.name}")
        self.mutate("aggregate", "create", options)
        return self.get_aggregate(options.name)

    def destroy_aggregate(self, name: str, force: bool = False) -> None:
        """Take the aggregate offline and destroy it."""
        logger.info(f"[{self.filer_id}] destroying aggregate {name}")
        self.mutate("aggregate", "offline", {"name": name})
        self.mutate("aggregate", "destroy", {"name": name, "force": force}, invalidate=("aggregate", "volume"))

    # --- volumes ---

    def get_volumes(self) -> list[Volume]:
        def compute():
            return [Volume(self, r) for r in self.executor.run("volume", "status")]
        return self._cached("volume", "get_volumes", (), compute)

    def get_volume(self, name: str) -> Volume:
        return self._find("volume", name, self.get_volumes(), lambda v: v.name == name)

    def create_volume(self, options: Optional[VolumeCreateOptions] = None, **fields: Any) -> Volume:
        """Create a flexible volume from an options struct or its fields."""
        if options is None:
            options = VolumeCreateOptions(**fields)
        logger.info(f"[{self.filer_id}] creating volume {options.name} in {options.aggregate}")
        self.mutate("volume", "create", options, invalidate=("volume", "aggregate"))
        return self.get_volume(options.name)

    def destroy_volume(self, name: str, force: bool = False) -> None:
        """Take the volume offline and destroy it."""
        logger.info(f"[{self.filer_id}] destroying volume {name}")
        self.mutate("volume", "offline", {"name": name})
        self.mutate(
            "volume", "destroy", {"name": name, "force": force},
            invalidate=("volume", "aggregate", "qtree", "snapshot", "schedule"),
        )

    # --- qtrees ---

    def get_qtrees(self, volume: Optional[str] = None) -> list[Qtree]:
        def compute():
            return [Qtree(self, r) for r in self.executor.run("qtree", "status", {"volume": volume})]
        return self._cached("qtree", "get_qtrees", (volume,), compute)

    def get_qtree(self, path: str) -> Qtree:
        parts = path.strip("/").split("/")
        if len(parts) < 2 or parts[0] != "vol":
            raise NotFoundError("qtree", path)
        return self._find("qtree", path, self.get_qtrees(parts[1]), lambda q: q.path == path.rstrip("/"))

    def create_qtree(self, options: Optional[QtreeCreateOptions] = None, **fields: Any) -> Qtree:
        """Create a qtree, then apply its security style and oplocks if given."""
        if options is None:
            options = QtreeCreateOptions(**fields)
        logger.info(f"[{self.filer_id}] creating qtree {options.path}")
        self.mutate("qtree", "create", {"path": options.path, "mode": options.mode})
        if options.security is not None:
            self.mutate("qtree", "security", {"path": options.path, "security": options.security})
        if options.oplocks is not None:
            self.mutate("qtree", "oplocks", {"path": options.path, "oplocks": options.oplocks})
        return self.get_qtree(options.path)

    # --- snapshots ---

    def get_snapshots(self, volume: str) -> list[Snapshot]:
        def compute():
            records = self.executor.run("snapshot", "list", {"volume": volume})
            return [Snapshot(self, {**r, "volume": volume if r["volume"] is UNSET else r["volume"]}) for r in records]
        return self._cached("snapshot", "get_snapshots", (volume,), compute)

    def get_snapshot(self, volume: str, name: str) -> Snapshot:
        return self._find("snapshot", f"{volume}:{name}", self.get_snapshots(volume), lambda s: s.name == name)

    def create_snapshot(self, volume: str, name: str) -> Snapshot:
        self.mutate("snapshot", "create", {"volume": volume, "name": name})
        return self.get_snapshot(volume, name)

    def get_snapshot_schedules(self) -> list[Schedule]:
        def compute():
            return [Schedule(self, r) for r in self.executor.run("schedule", "show")]
        return self._cached("schedule", "get_snapshot_schedules", (), compute)

    def get_snapshot_schedule(self, volume: str) -> Schedule:
        def compute():
            return [Schedule(self, r) for r in self.executor.run("schedule", "show", {"volume": volume})]
        schedules = self._cached("schedule", "get_snapshot_schedule", (volume,), compute)
        return self._find("schedule", volume, schedules, lambda s: s.volume == volume)

    # --- snapmirror ---

    def get_snapmirrors(self, location: Optional[str] = None) -> list[Snapmirror]:
        def compute():
            records = self.executor.run("snapmirror", "status", {"location": location})
            return [Snapmirror(self, r) for r in records if "destination" in r]
        return self._cached("snapmirror", "get_snapmirrors", (location,), compute)

    def get_snapmirror(self, destination: str) -> Snapmirror:
        """Relationship by destination, either "filer:volume" or just the volume."""
        return self._find(
            "snapmirror", destination, self.get_snapmirrors(),
            lambda m: destination in (m.destination, m.destination_volume),
        )

    # --- exports ---

    def get_live_export_record(self, path: str) -> Optional[Record]:
        """Current live rules for a path, read fresh from the filer."""
        return find_record(self.executor.run("export", "list"), path)

    def get_persisted_export_record(self, path: str) -> Optional[Record]:
        """Current /etc/exports rules for a path, read fresh from the filer."""
        return find_record(self.executor.run("export", "list_permanent"), path)

    def get_exports(self) -> list[Export]:
        """Every export instance, permanent and temporary."""
        def compute():
            partition = classify_exports(
                self.executor.run("export", "list"),
                self.executor.run("export", "list_permanent"),
            )
            return [Export(self, e.record, type=e.type, active=e.active) for e in partition.entries]
        return self._cached("export", "get_exports", (), compute)

    def get_permanent_exports(self) -> list[Export]:
        return [e for e in self.get_exports() if e.type == PERMANENT]

    def get_temporary_exports(self) -> list[Export]:
        return [e for e in self.get_exports() if e.type == TEMPORARY]

    def get_active_exports(self) -> list[Export]:
        return [e for e in self.get_exports() if e.active]

    def get_inactive_exports(self) -> list[Export]:
        return [e for e in self.get_exports() if not e.active]

    def get_export(self, path: str) -> Export:
        """Export for a path; the active instance when the path has two."""
        matches = [e for e in self.get_exports() if e.path == path]
        if not matches:
            raise NotFoundError("export", path)
        for export in matches:
            if export.active:
                return export
        return matches[0]

    def create_export(self, path: str, persistent: bool = False, **attributes: Any) -> Export:
        """Export a path with the given attributes.

        Attributes are applied through the matching set_* methods in the
        order actual, nosuid, anon, sec, root, ro_all, ro, rw_all, rw.
        """
        unknown = sorted(set(attributes) - set(EXPORT_SETTERS))
        if unknown:
            raise TypeError(f"Unknown export attributes: {', '.join(unknown)}")

        export = Export(self, {"path": path}, type=PERMANENT if persistent else TEMPORARY, active=False)
        for name in EXPORT_SETTERS:
            if name in attributes:
                getattr(export, f"set_{name}")(attributes[name])

        logger.info(f"[{self.filer_id}] exporting {path} ({export.type}): {export.get_options_string()}")
        export.update()
        return export
