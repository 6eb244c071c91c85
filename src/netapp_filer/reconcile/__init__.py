"""Attribute reconciliation for mutable filer resources."""
from .schema import (
    ChangeType,
    AttributeChange,
    PlannedCommand,
    ReconcilePlan,
    ReconcileResult,
)
from .diff import (
    EXPORT_FIELDS,
    compare_exports,
    diff_attributes,
    diff_exports,
    export_signature,
    summarize_plan,
)
from .exports import ExportEntry, ExportPartition, classify_exports, find_record, PERMANENT, TEMPORARY
from .engine import ReconciliationEngine

__all__ = [
    "ChangeType",
    "AttributeChange",
    "PlannedCommand",
    "ReconcilePlan",
    "ReconcileResult",
    "EXPORT_FIELDS",
    "compare_exports",
    "diff_attributes",
    "diff_exports",
    "export_signature",
    "summarize_plan",
    "ExportEntry",
    "ExportPartition",
    "classify_exports",
    "find_record",
    "PERMANENT",
    "TEMPORARY",
    "ReconciliationEngine",
]
