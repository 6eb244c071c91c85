"""Attribute comparison between applied and desired resource state."""
from typing import Any, Iterable, Mapping, Optional

from ..parsing import UNSET
from .schema import AttributeChange, ChangeType, ReconcilePlan

# Fields that decide whether two exports are the same. Path, type and
# active status are not compared.
EXPORT_FIELDS = ("actual", "nosuid", "anon", "sec", "root", "ro_all", "ro", "rw_all", "rw")
DEFAULT_SEC = ("sys",)


def _get(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def export_signature(export: Any) -> dict[str, Any]:
    """Normalised comparison fields of an export record or Export.

    ``sec`` is compared as a set, with no flavor meaning ``sys`` as the
    filer reports it. Host lists compare in order, and a host list is
    ignored while the matching ``*_all`` flag is set.
    """
    actual = _get(export, "actual", UNSET)
    anon = _get(export, "anon", UNSET)
    ro_all = bool(_get(export, "ro_all", False))
    rw_all = bool(_get(export, "rw_all", False))
    return {
        "actual": None if actual in (UNSET, None, "") else actual,
        "nosuid": bool(_get(export, "nosuid", False)),
        "anon": None if anon is UNSET else anon,
        "sec": frozenset(_get(export, "sec", None) or DEFAULT_SEC),
        "root": tuple(_get(export, "root", None) or ()),
        "ro_all": ro_all,
        "ro": () if ro_all else tuple(_get(export, "ro", None) or ()),
        "rw_all": rw_all,
        "rw": () if rw_all else tuple(_get(export, "rw", None) or ()),
    }


def compare_exports(a: Any, b: Any) -> bool:
    """True when two exports would produce identical access rules."""
    return export_signature(a) == export_signature(b)


def diff_attributes(
    current: Optional[Mapping[str, Any]],
    desired: Mapping[str, Any],
    names: Optional[Iterable[str]] = None,
) -> list[AttributeChange]:
    """Attributes whose desired value differs from the current one.

    With no current state every desired attribute is a CREATE.
    """
    names = list(desired) if names is None else list(names)
    if current is None:
        return [AttributeChange(n, ChangeType.CREATE, None, desired.get(n)) for n in names]

    changes = []
    for name in names:
        have = current.get(name, UNSET)
        want = desired.get(name, UNSET)
        if have != want:
            changes.append(AttributeChange(name, ChangeType.MODIFY, have, want))
    return changes


def diff_exports(current: Any, desired: Any) -> list[AttributeChange]:
    """Per-field changes between two exports over the comparison fields."""
    if current is None:
        return diff_attributes(None, export_signature(desired), EXPORT_FIELDS)
    return diff_attributes(export_signature(current), export_signature(desired), EXPORT_FIELDS)


def _show(value: Any) -> str:
    if isinstance(value, (set, frozenset)):
        return "{" + ", ".join(sorted(map(str, value))) + "}"
    if value is UNSET or value is None:
        return "-"
    return repr(value)


def summarize_plan(plan: ReconcilePlan) -> str:
    """Human-readable summary of a reconciliation plan."""
    if plan.no_change:
        return f"{plan.kind} {plan.key}: no changes"

    lines = [f"{plan.kind} {plan.key}: {len(plan.changes)} change(s)"]
    for change in plan.changes:
        if change.change_type is ChangeType.CREATE:
            lines.append(f"  + {change.name} = {_show(change.desired)}")
        else:
            lines.append(f"  ~ {change.name}: {_show(change.current)} -> {_show(change.desired)}")
    if plan.commands:
        lines.append("Commands:")
        lines.extend(f"  {c.line}" for c in plan.commands)
    return "\n".join(lines)
