"""Manage NetApp filers through their command line.

    from netapp_filer import Filer, FilerConfig

    with Filer(FilerConfig(hostname="filer1", ssh_identity="~/.ssh/filer")) as filer:
        print(filer.get_version())
        for volume in filer.get_volumes():
            print(volume.name, volume.state)
"""
from .errors import (
    FilerError,
    ConfigurationError,
    TransportError,
    CommandError,
    ParseError,
    NotFoundError,
)
# config before filer: the inventory builds Filer instances
from .config import FilerConfig, FilerInventory
from .cache import FilerCache
from .filer import Filer
from .parsing import UNSET

__version__ = "0.1.0"

__all__ = [
    "FilerError",
    "ConfigurationError",
    "TransportError",
    "CommandError",
    "ParseError",
    "NotFoundError",
    "FilerConfig",
    "FilerInventory",
    "FilerCache",
    "Filer",
    "UNSET",
]
