"""Filer configuration and inventory."""
from .schema import FilerConfig, PROTOCOLS
from .inventory import FilerInventory

__all__ = ["FilerConfig", "PROTOCOLS", "FilerInventory"]
