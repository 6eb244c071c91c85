"""Typed resources built from parsed filer records."""
from .base import Resource, Reconcilable, OptionsMixin, option_value
from .aggregate import Aggregate, RaidGroup
from .volume import Volume
from .qtree import Qtree, SECURITY_STYLES
from .snapshot import Snapshot, Schedule
from .snapmirror import Snapmirror
from .license import License
from .option import Option
from .export import Export, EXPORT_TYPES

__all__ = [
    "Resource",
    "Reconcilable",
    "OptionsMixin",
    "option_value",
    "Aggregate",
    "RaidGroup",
    "Volume",
    "Qtree",
    "SECURITY_STYLES",
    "Snapshot",
    "Schedule",
    "Snapmirror",
    "License",
    "Option",
    "Export",
    "EXPORT_TYPES",
]
