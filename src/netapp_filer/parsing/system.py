"""Filer-wide listings: version, licenses, options and snapmirror status."""
import re

from .base import grammar, ParseContext, Record, UNSET

VERSION_RE = re.compile(r"^NetApp Release\s+(?P<release>[^:]+?)\s*(?::\s*(?P<date>.*))?$")

SERVICE = r"(?P<service>[a-z][a-z0-9_]*)"
LICENSE_PATTERNS = [
    (re.compile(rf"^{SERVICE}\s+not licensed$"), {"licensed": False}),
    (re.compile(rf"^{SERVICE}\s+ENABLED$"), {"licensed": True}),
    (re.compile(rf"^{SERVICE}\s+site\s+(?P<code>[A-Z0-9]+)$"), {"licensed": True, "site": True}),
    (re.compile(rf"^{SERVICE}\s+expired\s+\((?P<expiration>[^)]*)\)$"), {"licensed": False, "expired": True}),
    (
        re.compile(rf"^{SERVICE}\s+(?P<code>[A-Z0-9]+)(?:\s+\(expires\s+(?P<expiration>[^)]*)\))?$"),
        {"licensed": True},
    ),
]

OPTION_RE = re.compile(
    r"^(?P<name>[a-z][\w.\-]*)\s*(?P<value>[^\s(]\S*)?\s*(?:\((?P<comment>[^)]*)\))?$"
)

SNAPMIRROR_FIELD_RE = re.compile(r"^(?P<key>[A-Z][A-Za-z ]*?):\s+(?P<value>.*)$")
SNAPMIRROR_BANNER_RE = re.compile(r"^Snapmirror is (?P<state>on|off)\.?$", re.IGNORECASE)


@grammar("version", required=True)
def parse_version(lines: list[str], ctx: ParseContext) -> None:
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped:
            continue
        match = VERSION_RE.match(line_stripped)
        if match:
            ctx.add({"release": match.group("release"), "date": match.group("date") or UNSET})
        else:
            ctx.skip(line)


@grammar("license", required=True)
def parse_licenses(lines: list[str], ctx: ParseContext) -> None:
    """``license`` output, one service per line.

        cifs not licensed
        nfs ABCDEFG
        snapmirror site HIJKLMN
        a_sis ENABLED
        flex_clone OPQRSTU (expires 10-Jan-2010)
    """
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped:
            continue
        for pattern, defaults in LICENSE_PATTERNS:
            match = pattern.match(line_stripped)
            if match:
                record: Record = {
                    "service": match.group("service"),
                    "licensed": False,
                    "code": UNSET,
                    "site": False,
                    "expired": False,
                    "expiration": UNSET,
                }
                record.update(defaults)
                for key, value in match.groupdict().items():
                    if key != "service" and value is not None:
                        record[key] = value
                ctx.add(record)
                break
        else:
            ctx.skip(line)


@grammar("option", required=True)
def parse_options(lines: list[str], ctx: ParseContext) -> None:
    """``options`` output: ``nfs.tcp.enable   on   (value might be overwritten in takeover)``."""
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped:
            continue
        match = OPTION_RE.match(line_stripped)
        if not match:
            ctx.skip(line)
            continue
        ctx.add({
            "name": match.group("name"),
            "value": match.group("value") or "",
            "comment": match.group("comment") if match.group("comment") is not None else UNSET,
        })


def _field_name(key: str) -> str:
    return re.sub(r"\s+", "_", key.strip().lower())


@grammar("snapmirror")
def parse_snapmirrors(lines: list[str], ctx: ParseContext) -> None:
    """``snapmirror status -l`` output: blocks of ``Key: value`` lines.

        Snapmirror is on.

        Source:                 filer1:vol1
        Destination:            filer2:vol1
        Status:                 Idle
        ...
    """
    current = None
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped:
            current = None
            continue
        if SNAPMIRROR_BANNER_RE.match(line_stripped):
            continue
        match = SNAPMIRROR_FIELD_RE.match(line_stripped)
        if not match:
            ctx.skip(line)
            continue
        key = _field_name(match.group("key"))
        value = match.group("value").strip()
        if key == "source" or current is None:
            current = ctx.add({})
        current[key] = UNSET if value == "-" else value
