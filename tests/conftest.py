"""Shared fixtures: a scripted transport and captured filer output."""
import pytest

from netapp_filer import Filer, FilerCache, FilerConfig
from netapp_filer.transport.base import CommandResult, Transport
from netapp_filer.utils.audit_log import ChangeTracker


def status_table(title: str, rows: list[tuple[str, str, str, str]], extra: dict = None) -> str:
    """Render ``aggr status -v`` / ``vol status -v`` style output.

    extra maps a row index to indented lines printed after that row.
    """
    extra = extra or {}
    lines = [f"{title:>15} {'State':<15} {'Status':<17} Options"]
    for i, (name, state, status, options) in enumerate(rows):
        lines.append(f"{name:>15} {state:<15} {status:<17} {options}".rstrip())
        for sub in extra.get(i, []):
            lines.append(" " * 16 + sub)
        if i in extra:
            lines.append("")
    return "\n".join(lines)


VERSION_OUTPUT = "NetApp Release 7.3.6: Thu Jul  7 18:20:12 PDT 2011\n"

LICENSE_OUTPUT = """\
cifs not licensed
nfs ABCDEFG
snapmirror site HIJKLMN
flex_clone OPQRSTU (expires 10-Jan-2010)
"""

OPTIONS_OUTPUT = """\
nfs.tcp.enable               on
nfs.v4.enable                off        (value might be overwritten in takeover)
snapmirror.enable            on
"""

AGGR_STATUS = status_table(
    "Aggr",
    [
        ("aggr0", "online", "raid_dp, aggr", "root, nosnap=off,"),
        ("", "", "64-bit", "raidtype=raid_dp"),
        ("aggr1", "offline", "raid4, aggr", "raidsize=8"),
    ],
    extra={
        1: [
            "Volumes: vol0, vol1",
            "",
            "Plex /aggr0/plex0: online, normal, active",
            "    RAID group /aggr0/plex0/rg0: normal",
            "    RAID group /aggr0/plex0/rg1: normal",
        ],
    },
)

VOL_STATUS = status_table(
    "Volume",
    [
        ("vol0", "online", "raid_dp, flex", "root, guarantee=volume"),
        ("vol1", "online", "raid_dp, flex", "nosnap=off, guarantee=none"),
    ],
    extra={
        0: ["Volume UUID: 0001-aaaa", "Containing aggregate: 'aggr0'"],
        1: ["Volume UUID: 0002-bbbb", "Containing aggregate: 'aggr0'"],
    },
)

QTREE_STATUS = """\
Volume   Tree     Style Oplocks  Status
-------- -------- ----- -------- ---------
vol1              unix  enabled  normal
vol1     proj     ntfs  disabled normal
"""

SNAP_LIST = """\
Volume vol1
working...

  %/used       %/total  date          name
----------  ----------  ------------  --------
  0% ( 0%)    0% ( 0%)  Mar 03 16:00  hourly.0
 12% ( 8%)    1% ( 0%)  Mar 02 00:00  nightly.0  (busy,snapmirror)
"""

SNAP_SCHED = "Volume vol1: 0 2 6@8,12,16,20\n"

SNAPMIRROR_STATUS = """\
Snapmirror is on.

Source:                 filer1:vol1
Destination:            filer2:vol1_mirror
Status:                 Idle
Progress:               -
State:                  Snapmirrored
Lag:                    00:05:12
"""

EXPORTFS_OUTPUT = """\
/vol/vol0\t-sec=sys,rw,root=admin1,nosuid
/vol/vol1\t-sec=sys,rw=client1:client2,root=admin1
/vol/tmp\t-sec=sys,ro
"""

ETC_EXPORTS = """\
#Auto-generated by setup Mon Mar  1 10:00:00 GMT 2010
/vol/vol0\t-sec=sys,rw,root=admin1,nosuid
/vol/vol1\t-sec=sys,rw=client1,root=admin1
/vol/old\t-sec=sys,rw
"""


class FakeTransport(Transport):
    """Transport answering from a script of command -> outputs.

    Each command has a queue of responses; the last one repeats. A
    response may be an exception instance, which is raised.
    """

    protocol = "fake"

    def __init__(self, config: FilerConfig = None):
        super().__init__(config or FilerConfig(hostname="filer1"))
        self.responses: dict[str, list] = {}
        self.commands: list[str] = []

    def script(self, command: str, *outputs, status: int = 0) -> "FakeTransport":
        queue = self.responses.setdefault(command, [])
        for output in outputs or ("",):
            queue.append((output, status))
        return self

    def open(self):
        self._opened = True
        return self.session

    def execute(self, command: str) -> CommandResult:
        self.commands.append(command)
        queue = self.responses.get(command)
        if not queue:
            raise AssertionError(f"Unexpected command: {command!r}")
        output, status = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(output, Exception):
            raise output
        return CommandResult(command=command, status=status, output=output, elapsed=0.001)

    def close(self) -> None:
        self._opened = False


class RecordingTracker(ChangeTracker):
    """ChangeTracker that keeps every record instead of the latest few."""

    def __init__(self, filer_id: str = "filer1"):
        super().__init__(filer_id)
        self.records = []


@pytest.fixture
def transport():
    """Fake transport pre-scripted with the common listings."""
    t = FakeTransport()
    t.script("version", VERSION_OUTPUT)
    t.script("license", LICENSE_OUTPUT)
    t.script("options", OPTIONS_OUTPUT)
    t.script("aggr status -v", AGGR_STATUS)
    t.script("vol status -v", VOL_STATUS)
    t.script("qtree status vol1", QTREE_STATUS)
    t.script("snap list vol1", SNAP_LIST)
    t.script("snap sched vol1", SNAP_SCHED)
    t.script("snapmirror status -l", SNAPMIRROR_STATUS)
    t.script("exportfs", EXPORTFS_OUTPUT)
    t.script("rdfile /etc/exports", ETC_EXPORTS)
    return t


@pytest.fixture
def tracker():
    return RecordingTracker()


@pytest.fixture
def filer(transport, tracker):
    """Filer over the fake transport, cache disabled."""
    return Filer(FilerConfig(hostname="filer1"), transport=transport, tracker=tracker)


@pytest.fixture
def cached_filer(transport, tracker):
    """Filer over the fake transport with a cache that never expires."""
    return Filer(
        FilerConfig(hostname="filer1"),
        transport=transport,
        tracker=tracker,
        cache=FilerCache(enabled=True, expiration=0),
    )
