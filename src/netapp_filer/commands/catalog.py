"""Verb and flag tables for the filer CLI.

Each (kind, verb) pair names one appliance command line. A CommandSpec
lists the fixed words and, in order, how each argument is rendered:

    SWITCH      "-f" when the argument is true
    VALUE       "-t raid_dp"
    POSITIONAL  "aggr1" (optionally suffixed, e.g. "8@144g")
    DISKS       "-d 0a.16 0a.17" or "-d 0a.16 0a.17 -d 0b.16 0b.17"
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ArgKind(str, Enum):
    SWITCH = "switch"
    VALUE = "value"
    POSITIONAL = "positional"
    DISKS = "disks"


@dataclass(frozen=True)
class Arg:
    field: str
    kind: ArgKind = ArgKind.POSITIONAL
    flag: Optional[str] = None
    # POSITIONAL only: append "<sep><value of suffix_field>" when set
    suffix_field: Optional[str] = None
    suffix_sep: str = "@"
    # POSITIONAL only: map booleans to words, e.g. ("enable", "disable")
    bool_words: Optional[tuple[str, str]] = None


@dataclass(frozen=True)
class CommandSpec:
    kind: str
    verb: str
    words: tuple[str, ...]
    args: tuple[Arg, ...] = ()
    parse: Optional[str] = None
    mutates: bool = False

    @property
    def operation(self) -> str:
        return f"{self.kind} {self.verb}"


P = ArgKind.POSITIONAL
S = ArgKind.SWITCH
V = ArgKind.VALUE
D = ArgKind.DISKS


def _lifecycle(kind: str, noun: str) -> list[CommandSpec]:
    """online/offline/restrict/rename/destroy/options shared by aggr and vol."""
    return [
        CommandSpec(kind, "online", (noun, "online"), (Arg("name"),), mutates=True),
        CommandSpec(kind, "offline", (noun, "offline"), (Arg("name"),), mutates=True),
        CommandSpec(kind, "restrict", (noun, "restrict"), (Arg("name"),), mutates=True),
        CommandSpec(kind, "rename", (noun, "rename"), (Arg("name"), Arg("new_name")), mutates=True),
        CommandSpec(kind, "destroy", (noun, "destroy"), (Arg("name"), Arg("force", S, "-f")), mutates=True),
        CommandSpec(kind, "options", (noun, "options"), (Arg("name"), Arg("option"), Arg("value")), mutates=True),
    ]


_SPECS = [
    CommandSpec("version", "show", ("version",), parse="version"),

    CommandSpec("license", "list", ("license",), parse="license"),
    CommandSpec("license", "add", ("license", "add"), (Arg("code"),), mutates=True),
    CommandSpec("license", "delete", ("license", "delete"), (Arg("service"),), mutates=True),

    CommandSpec("option", "list", ("options",), (Arg("prefix"),), parse="option"),
    CommandSpec("option", "set", ("options",), (Arg("name"), Arg("value")), mutates=True),

    CommandSpec("aggregate", "status", ("aggr", "status", "-v"), (Arg("name"),), parse="aggregate"),
    CommandSpec(
        "aggregate", "create", ("aggr", "create"),
        (
            Arg("name"),
            Arg("force", S, "-f"),
            Arg("mirrored", S, "-m"),
            Arg("traditional", S, "-v"),
            Arg("snaplock", V, "-L"),
            Arg("raidtype", V, "-t"),
            Arg("raidsize", V, "-r"),
            Arg("disktype", V, "-T"),
            Arg("rpm", V, "-R"),
            Arg("language", V, "-l"),
            Arg("diskcount", P, suffix_field="disksize"),
            Arg("disks", D, "-d"),
        ),
        mutates=True,
    ),
    *_lifecycle("aggregate", "aggr"),

    CommandSpec("volume", "status", ("vol", "status", "-v"), (Arg("name"),), parse="volume"),
    CommandSpec(
        "volume", "create", ("vol", "create"),
        (
            Arg("name"),
            Arg("language", V, "-l"),
            Arg("space_guarantee", V, "-s"),
            Arg("aggregate"),
            Arg("size"),
        ),
        mutates=True,
    ),
    CommandSpec("volume", "size", ("vol", "size"), (Arg("name"), Arg("size")), mutates=True),
    *_lifecycle("volume", "vol"),

    CommandSpec("qtree", "status", ("qtree", "status"), (Arg("volume"),), parse="qtree"),
    CommandSpec("qtree", "create", ("qtree", "create"), (Arg("path"), Arg("mode", V, "-m")), mutates=True),
    CommandSpec("qtree", "security", ("qtree", "security"), (Arg("path"), Arg("security")), mutates=True),
    CommandSpec(
        "qtree", "oplocks", ("qtree", "oplocks"),
        (Arg("path"), Arg("oplocks", bool_words=("enable", "disable"))),
        mutates=True,
    ),

    CommandSpec("snapshot", "list", ("snap", "list"), (Arg("volume"),), parse="snapshot"),
    CommandSpec("snapshot", "create", ("snap", "create"), (Arg("volume"), Arg("name")), mutates=True),
    CommandSpec("snapshot", "delete", ("snap", "delete"), (Arg("volume"), Arg("name")), mutates=True),
    CommandSpec(
        "snapshot", "rename", ("snap", "rename"),
        (Arg("volume"), Arg("name"), Arg("new_name")),
        mutates=True,
    ),

    CommandSpec("schedule", "show", ("snap", "sched"), (Arg("volume"),), parse="schedule"),
    CommandSpec(
        "schedule", "set", ("snap", "sched"),
        (Arg("volume"), Arg("weeks"), Arg("days"), Arg("hours", suffix_field="hour_list")),
        mutates=True,
    ),

    CommandSpec("snapmirror", "status", ("snapmirror", "status", "-l"), (Arg("location"),), parse="snapmirror"),
    CommandSpec(
        "snapmirror", "initialize", ("snapmirror", "initialize"),
        (Arg("source", V, "-S"), Arg("destination")),
        mutates=True,
    ),
    CommandSpec("snapmirror", "update", ("snapmirror", "update"), (Arg("destination"),), mutates=True),
    CommandSpec("snapmirror", "quiesce", ("snapmirror", "quiesce"), (Arg("destination"),), mutates=True),
    CommandSpec("snapmirror", "resume", ("snapmirror", "resume"), (Arg("destination"),), mutates=True),
    CommandSpec("snapmirror", "break", ("snapmirror", "break"), (Arg("destination"),), mutates=True),

    CommandSpec("export", "list", ("exportfs",), parse="export"),
    CommandSpec("export", "list_permanent", ("rdfile", "/etc/exports"), parse="export"),
    CommandSpec("export", "apply", ("exportfs", "-io"), (Arg("options"), Arg("path")), mutates=True),
    CommandSpec("export", "apply_default", ("exportfs", "-i"), (Arg("path"),), mutates=True),
    CommandSpec("export", "persist", ("exportfs", "-p"), (Arg("options"), Arg("path")), mutates=True),
    CommandSpec("export", "unexport", ("exportfs", "-u"), (Arg("path"),), mutates=True),
    CommandSpec("export", "destroy", ("exportfs", "-z"), (Arg("path"),), mutates=True),
]

COMMANDS: dict[tuple[str, str], CommandSpec] = {(spec.kind, spec.verb): spec for spec in _SPECS}


def get_command(kind: str, verb: str) -> CommandSpec:
    try:
        return COMMANDS[(kind, verb)]
    except KeyError:
        raise ValueError(f"Unknown command: {kind} {verb}") from None
