"""Shared machinery for turning filer command output into records.

Every grammar reduces its output to a list of Records: ordered mappings
from field name to value. Lines a grammar does not recognise are skipped
and remembered; if a grammar that must yield data yields nothing, the
first skipped line is reported in a ParseError.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ..errors import ParseError

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class _Unset:
    """Marker for a field the appliance did not report.

    Distinct from every real value, including 0 and "".
    """

    _instance: Optional["_Unset"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNSET = _Unset()


def is_unset(value: Any) -> bool:
    return value is UNSET


@dataclass
class ParseContext:
    """Collects records and skipped lines while a grammar runs."""
    kind: str
    records: list[Record] = field(default_factory=list)
    unparsed: list[str] = field(default_factory=list)

    def add(self, record: Record) -> Record:
        self.records.append(record)
        return record

    def skip(self, line: str) -> None:
        logger.debug(f"Skipping unrecognised {self.kind} line: {line!r}")
        self.unparsed.append(line)


@dataclass(frozen=True)
class Grammar:
    kind: str
    func: Callable[[list[str], ParseContext], None]
    required: bool


_GRAMMARS: dict[str, Grammar] = {}


def grammar(kind: str, required: bool = False):
    """Register a grammar function for a resource kind.

    Args:
        kind: Resource kind the grammar parses ("license", "export", ...)
        required: Whether output that yields no record at all is an error
    """
    def decorator(func: Callable[[list[str], ParseContext], None]):
        _GRAMMARS[kind] = Grammar(kind, func, required)
        return func

    return decorator


def known_kinds() -> list[str]:
    return sorted(_GRAMMARS)


def parse(kind: str, text: str) -> list[Record]:
    """Parse raw command output for a resource kind into records.

    Raises:
        ParseError: if the grammar requires records, none were found, and
            the output held lines the grammar could not read
    """
    if kind not in _GRAMMARS:
        raise ValueError(f"No grammar for resource kind: {kind}")
    g = _GRAMMARS[kind]
    ctx = ParseContext(kind)
    g.func(text.replace("\r", "").split("\n"), ctx)
    if g.required and not ctx.records and ctx.unparsed:
        raise ParseError(kind, ctx.unparsed[0])
    return ctx.records


def split_list(value: str, sep: str = ",") -> list[str]:
    """Split a list-valued field, keeping order and dropping blank items.

    An empty string is an empty list; callers decide whether the field
    was present at all.
    """
    return [item.strip() for item in value.split(sep) if item.strip()]


def parse_key_values(text: str, sep: str = ",", assign: str = "=") -> dict[str, Any]:
    """Parse "a, b=1, c=x" into {"a": True, "b": "1", "c": "x"} in order."""
    result: dict[str, Any] = {}
    for item in split_list(text, sep):
        key, has_value, value = item.partition(assign)
        result[key.strip()] = value.strip() if has_value else True
    return result


def column_spans(header: str, names: Iterable[str]) -> list[tuple[str, int, Optional[int]]]:
    """Derive column boundaries from a header line.

    Each column starts where its title starts; the first column also takes
    everything to its left, which covers right-aligned name columns.
    """
    starts = []
    for name in names:
        match = re.search(rf"\b{re.escape(name)}\b", header)
        if not match:
            raise ValueError(f"Column {name!r} not in header {header!r}")
        starts.append((name, match.start()))
    spans: list[tuple[str, int, Optional[int]]] = []
    for i, (name, start) in enumerate(starts):
        begin = 0 if i == 0 else start
        end = starts[i + 1][1] if i + 1 < len(starts) else None
        spans.append((name, begin, end))
    return spans


def slice_columns(line: str, spans: list[tuple[str, int, Optional[int]]]) -> dict[str, str]:
    return {name: line[begin:end].strip() for name, begin, end in spans}


def to_int(value: str) -> Any:
    """Integer value of a field, or UNSET when it is not a number."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return UNSET
