"""NFS export lines, as printed by ``exportfs`` and stored in /etc/exports.

    /vol/vol0        -sec=sys,rw,root=admin1:admin2,anon=0,nosuid
    /vol/alias       -actual=/vol/vol1/data,sec=sys:krb5,ro=client1:client2

Host lists and security flavours are colon separated. A bare ``rw`` or
``ro`` grants access to every host.
"""
import logging
from typing import Any

from .base import grammar, ParseContext, Record, UNSET, split_list, to_int

logger = logging.getLogger(__name__)

# Order in which options are written back
OPTION_ORDER = ("actual", "sec", "rw", "ro", "root", "anon", "nosuid")


def new_export_record(path: str = "") -> Record:
    """A record with every export field present and defaulted."""
    return {
        "path": path,
        "actual": UNSET,
        "nosuid": False,
        "anon": UNSET,
        "sec": [],
        "root": [],
        "ro_all": False,
        "ro": [],
        "rw_all": False,
        "rw": [],
    }


def parse_export_options(options: str, path: str = "") -> Record:
    """Parse a comma separated option string into an export record."""
    record = new_export_record(path)
    options = options.strip()
    if options.startswith("-"):
        options = options[1:]

    for item in split_list(options, ","):
        key, has_value, value = item.partition("=")
        key = key.strip().lstrip("-")
        value = value.strip()

        if key == "actual":
            record["actual"] = value
        elif key == "nosuid":
            record["nosuid"] = True
        elif key == "anon":
            anon: Any = to_int(value)
            # anon may name a user instead of a uid
            record["anon"] = value if anon is UNSET and value else anon
        elif key == "sec":
            record["sec"] = split_list(value, ":")
        elif key == "root":
            record["root"] = split_list(value, ":")
        elif key in ("ro", "rw"):
            if has_value:
                record[key] = split_list(value, ":")
                record[f"{key}_all"] = False
            else:
                record[key] = []
                record[f"{key}_all"] = True
        else:
            logger.debug(f"Ignoring unknown export option {item!r} on {path}")
            record.setdefault("unknown", []).append(item)

    return record


def format_export_options(record: Record) -> str:
    """Inverse of parse_export_options: build the option string for exportfs."""
    parts = []
    for key in OPTION_ORDER:
        if key == "actual":
            if record.get("actual") not in (UNSET, None, ""):
                parts.append(f"actual={record['actual']}")
        elif key == "sec":
            if record.get("sec"):
                parts.append("sec=" + ":".join(record["sec"]))
        elif key in ("rw", "ro"):
            if record.get(f"{key}_all"):
                parts.append(key)
            elif record.get(key):
                parts.append(f"{key}=" + ":".join(record[key]))
        elif key == "root":
            if record.get("root"):
                parts.append("root=" + ":".join(record["root"]))
        elif key == "anon":
            if record.get("anon") not in (UNSET, None):
                parts.append(f"anon={record['anon']}")
        elif key == "nosuid":
            if record.get("nosuid"):
                parts.append("nosuid")
    return ",".join(parts)


@grammar("export")
def parse_exports(lines: list[str], ctx: ParseContext) -> None:
    for line in lines:
        line_stripped = line.strip()
        if not line_stripped or line_stripped.startswith("#"):
            continue
        if not line_stripped.startswith("/"):
            ctx.skip(line)
            continue
        parts = line_stripped.split(None, 1)
        path = parts[0]
        options = parts[1] if len(parts) > 1 else ""
        ctx.add(parse_export_options(options, path=path))
