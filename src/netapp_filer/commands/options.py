"""Typed argument structs for the operations that take many options.

Each field maps to one flag of the appliance command (see catalog.py).
Values are passed through unchecked: the filer is the authority on which
combinations are legal.
"""
from dataclasses import dataclass
from typing import Optional, Union

DiskList = Union[list[str], list[list[str]]]


@dataclass
class AggregateCreateOptions:
    """``aggr create`` arguments.

    Either ``diskcount`` (optionally with ``disksize``) or ``disks`` selects
    the disks. ``disks`` is a flat list for a single disk set, or a list of
    lists for the two halves of a mirrored aggregate.
    """
    name: str
    raidtype: Optional[str] = None  # raid0, raid4, raid_dp
    raidsize: Optional[int] = None
    disktype: Optional[str] = None  # ATA, FCAL, LUN, SAS, SATA, SCSI
    diskcount: Optional[int] = None
    disksize: Optional[str] = None  # e.g. "144g", appended as count@size
    rpm: Optional[int] = None
    language: Optional[str] = None
    snaplock: Optional[str] = None  # compliance, enterprise
    mirrored: bool = False
    traditional: bool = False
    force: bool = False
    disks: Optional[DiskList] = None


@dataclass
class VolumeCreateOptions:
    """``vol create`` arguments for a flexible volume."""
    name: str
    aggregate: str
    size: str  # e.g. "20g"
    language: Optional[str] = None
    space_guarantee: Optional[str] = None  # none, file, volume


@dataclass
class QtreeCreateOptions:
    """``qtree create`` arguments, plus settings applied right after."""
    volume: str
    name: str
    mode: Optional[str] = None  # unix permissions, e.g. "0755"
    security: Optional[str] = None  # unix, ntfs, mixed
    oplocks: Optional[bool] = None

    @property
    def path(self) -> str:
        return f"/vol/{self.volume}/{self.name}"
