"""Aggregates, volumes, RAID groups and qtrees.

``aggr status -v`` and ``vol status -v`` share one column-aligned layout:

               Aggr State           Status            Options
              aggr0 online          raid_dp, aggr     root, nosnap=off,
                                    64-bit            raidtype=raid_dp
                    Volumes: vol0, vol1

                    Plex /aggr0/plex0: online, normal, active
                        RAID group /aggr0/plex0/rg0: normal

A row with a name starts a record; rows with a blank name column continue
the Status and Options cells of the record above.
"""
import re

from .base import (
    grammar,
    ParseContext,
    Record,
    UNSET,
    column_spans,
    parse_key_values,
    slice_columns,
    split_list,
)

VOLUMES_RE = re.compile(r"^Volumes:\s*(?P<volumes>.*)$")
PLEX_RE = re.compile(r"^Plex\s+(?P<plex>\S+):\s*(?P<status>.*)$")
RAIDGROUP_RE = re.compile(r"^RAID group\s+(?P<path>\S+):\s*(?P<state>.*)$")
CONTAINING_RE = re.compile(r"^Containing aggregate:\s*'?(?P<aggregate>[^']*)'?$")
UUID_RE = re.compile(r"^Volume UUID:\s*(?P<uuid>\S+)$")
HEADER_RE = re.compile(r"^\s*(Aggr|Volume)\s+State\s+Status\s+Options\s*$")


def _finish(record: Record) -> Record:
    record["status"] = split_list(record.pop("_status"), ",")
    record["options"] = parse_key_values(record.pop("_options"), ",")
    return record


def _parse_status_table(lines: list[str], ctx: ParseContext, name_title: str) -> None:
    spans = None
    current = None

    for line in lines:
        line_stripped = line.strip()
        if not line_stripped:
            continue

        if HEADER_RE.match(line):
            spans = column_spans(line, [name_title, "State", "Status", "Options"])
            continue

        if current is not None:
            match = VOLUMES_RE.match(line_stripped)
            if match:
                current["volumes"] = split_list(match.group("volumes"), ",")
                continue
            match = PLEX_RE.match(line_stripped)
            if match:
                current["plexes"].append({
                    "name": match.group("plex"),
                    "status": split_list(match.group("status"), ","),
                })
                continue
            match = RAIDGROUP_RE.match(line_stripped)
            if match:
                path = match.group("path")
                parts = path.strip("/").split("/")
                current["raidgroups"].append({
                    "name": parts[-1],
                    "plex": parts[-2] if len(parts) > 1 else UNSET,
                    "path": path,
                    "state": match.group("state").strip(),
                })
                continue
            match = CONTAINING_RE.match(line_stripped)
            if match:
                current["aggregate"] = match.group("aggregate").strip()
                continue
            match = UUID_RE.match(line_stripped)
            if match:
                current["uuid"] = match.group("uuid")
                continue

        if spans is None:
            ctx.skip(line)
            continue

        cells = slice_columns(line, spans)
        if cells[name_title] and cells["State"]:
            if current is not None:
                _finish(current)
            current = ctx.add({
                "name": cells[name_title],
                "state": cells["State"],
                "_status": cells["Status"],
                "_options": cells["Options"],
                "volumes": [],
                "plexes": [],
                "raidgroups": [],
                "aggregate": UNSET,
                "uuid": UNSET,
            })
        elif current is not None and not cells[name_title]:
            if cells["Status"]:
                current["_status"] += ", " + cells["Status"]
            if cells["Options"]:
                current["_options"] += ", " + cells["Options"]
        else:
            ctx.skip(line)

    if current is not None:
        _finish(current)


@grammar("aggregate", required=True)
def parse_aggregates(lines: list[str], ctx: ParseContext) -> None:
    _parse_status_table(lines, ctx, "Aggr")


@grammar("volume", required=True)
def parse_volumes(lines: list[str], ctx: ParseContext) -> None:
    _parse_status_table(lines, ctx, "Volume")


@grammar("qtree", required=True)
def parse_qtrees(lines: list[str], ctx: ParseContext) -> None:
    """``qtree status`` output.

        Volume   Tree     Style Oplocks  Status
        -------- -------- ----- -------- ---------
        vol0              unix  enabled  normal
        vol1     proj     ntfs  disabled normal
    """
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped or line_stripped.startswith("-"):
            continue
        parts = line_stripped.split()
        if parts[:2] == ["Volume", "Tree"]:
            continue
        if len(parts) == 5:
            volume, tree, style, oplocks, status = parts
        elif len(parts) == 4:
            volume, style, oplocks, status = parts
            tree = ""
        else:
            ctx.skip(line)
            continue
        if oplocks not in ("enabled", "disabled"):
            ctx.skip(line)
            continue
        ctx.add({
            "volume": volume,
            "name": tree,
            "path": f"/vol/{volume}/{tree}" if tree else f"/vol/{volume}",
            "security": style,
            "oplocks": oplocks == "enabled",
            "status": status,
        })
