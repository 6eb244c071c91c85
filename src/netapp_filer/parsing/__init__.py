"""Parsers for filer command output.

Importing this package registers every grammar with ``parse``.
"""
from .base import (
    Record,
    UNSET,
    is_unset,
    parse,
    known_kinds,
    split_list,
    parse_key_values,
    column_spans,
    slice_columns,
)
from .exports import parse_export_options, format_export_options, new_export_record
from . import storage, snapshots, system  # noqa: F401  (grammar registration)

__all__ = [
    "Record",
    "UNSET",
    "is_unset",
    "parse",
    "known_kinds",
    "split_list",
    "parse_key_values",
    "column_spans",
    "slice_columns",
    "parse_export_options",
    "format_export_options",
    "new_export_record",
]
