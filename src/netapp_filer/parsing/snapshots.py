"""Snapshot listings and snapshot schedules."""
import re

from .base import grammar, ParseContext, UNSET, split_list

VOLUME_BANNER_RE = re.compile(r"^Volume\s+(?P<volume>\S+)$")
SNAPSHOT_RE = re.compile(
    r"^(?P<used>\d+)%\s*\(\s*(?P<used_cumulative>\d+)%\)\s+"
    r"(?P<total>\d+)%\s*\(\s*(?P<total_cumulative>\d+)%\)\s+"
    r"(?P<date>[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2})\s+"
    r"(?P<name>\S+)"
    r"(?:\s+\((?P<flags>[^)]*)\))?$"
)
SCHEDULE_RE = re.compile(
    r"^Volume\s+(?P<volume>\S+):\s+(?P<weeks>\d+)\s+(?P<days>\d+)\s+"
    r"(?P<hours>\d+)(?:@(?P<hour_list>[\d,]+))?"
    r"(?:\s+(?P<minutes>\d+)(?:@(?P<minute_list>[\d,]+))?)?\s*$"
)
BANNERS = ("working...", "No snapshots exist.")


@grammar("snapshot")
def parse_snapshots(lines: list[str], ctx: ParseContext) -> None:
    """``snap list <volume>`` output.

        Volume vol0
        working...

          %/used       %/total  date          name
        ----------  ----------  ------------  --------
          0% ( 0%)    0% ( 0%)  Mar 03 16:00  hourly.0
         12% ( 8%)    1% ( 0%)  Mar 02 00:00  nightly.0  (busy,snapmirror)
    """
    volume = UNSET
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped or line_stripped.startswith("-") or line_stripped in BANNERS:
            continue
        if line_stripped.startswith("%/used"):
            continue
        match = VOLUME_BANNER_RE.match(line_stripped)
        if match:
            volume = match.group("volume")
            continue
        match = SNAPSHOT_RE.match(line_stripped)
        if not match:
            ctx.skip(line)
            continue
        ctx.add({
            "volume": volume,
            "name": match.group("name"),
            "date": re.sub(r"\s+", " ", match.group("date")),
            "used": int(match.group("used")),
            "used_cumulative": int(match.group("used_cumulative")),
            "total": int(match.group("total")),
            "total_cumulative": int(match.group("total_cumulative")),
            "flags": split_list(match.group("flags") or "", ","),
        })


@grammar("schedule", required=True)
def parse_schedules(lines: list[str], ctx: ParseContext) -> None:
    """``snap sched [volume]`` output: ``Volume vol0: 0 2 6@8,12,16,20``."""
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped:
            continue
        match = SCHEDULE_RE.match(line_stripped)
        if not match:
            ctx.skip(line)
            continue
        ctx.add({
            "volume": match.group("volume"),
            "weeks": int(match.group("weeks")),
            "days": int(match.group("days")),
            "hours": int(match.group("hours")),
            "hour_list": [int(h) for h in split_list(match.group("hour_list") or "", ",")],
        })
