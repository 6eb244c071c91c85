"""Command construction and execution for the filer CLI."""
from .catalog import ArgKind, Arg, CommandSpec, COMMANDS, get_command
from .executor import CommandExecutor, format_disks
from .options import AggregateCreateOptions, VolumeCreateOptions, QtreeCreateOptions

__all__ = [
    "ArgKind",
    "Arg",
    "CommandSpec",
    "COMMANDS",
    "get_command",
    "CommandExecutor",
    "format_disks",
    "AggregateCreateOptions",
    "VolumeCreateOptions",
    "QtreeCreateOptions",
]
