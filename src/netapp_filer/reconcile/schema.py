"""Dataclasses describing one reconciliation: what differs, what to send, what happened."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ChangeType(str, Enum):
    """Type of change in a diff."""
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    NO_CHANGE = "no_change"


@dataclass
class AttributeChange:
    """One attribute whose applied value differs from the desired value."""
    name: str
    change_type: ChangeType
    current: Any = None
    desired: Any = None


@dataclass
class PlannedCommand:
    """A catalog command plus the attributes it brings into line."""
    kind: str
    verb: str
    args: dict[str, Any] = field(default_factory=dict)
    fields: tuple[str, ...] = ()
    line: str = ""


@dataclass
class ReconcilePlan:
    """Changes found for one resource and the commands that apply them."""
    kind: str
    key: str
    changes: list[AttributeChange] = field(default_factory=list)
    commands: list[PlannedCommand] = field(default_factory=list)
    desired: dict[str, Any] = field(default_factory=dict)

    @property
    def no_change(self) -> bool:
        return len(self.changes) == 0

    @property
    def total_commands(self) -> int:
        return len(self.commands)


@dataclass
class ReconcileResult:
    """Result of applying a plan."""
    plan: ReconcilePlan
    success: bool = False
    dry_run: bool = False
    commands_executed: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.commands_executed) and not self.dry_run

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.plan.kind,
            "key": self.plan.key,
            "success": self.success,
            "dry_run": self.dry_run,
            "changes": [
                {
                    "name": c.name,
                    "change_type": c.change_type.value,
                    "current": c.current,
                    "desired": c.desired,
                }
                for c in self.plan.changes
            ],
            "commands_planned": [c.line for c in self.plan.commands],
            "commands_executed": self.commands_executed,
            "error": self.error,
        }
