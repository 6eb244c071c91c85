"""Filer inventory management from YAML configuration."""
import logging
from pathlib import Path
from typing import Optional

import yaml

from ..errors import ConfigurationError
from ..filer import Filer
from .schema import FilerConfig

logger = logging.getLogger(__name__)


class FilerInventory:
    """Manages the filer inventory loaded from YAML config.

    ```yaml
    defaults:
      username: root
      protocol: ssh
      ssh_identity: ~/.ssh/filer_rsa
      cache_enabled: true

    filers:
      filer-a:
        hostname: filer-a.example.com
      filer-b:
        hostname: filer-b.example.com
        protocol: telnet
        telnet_password: secret

    groups:
      production:
        - filer-a
        - filer-b
    ```
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config()
        self._config: dict = {}
        self._filers: dict[str, Filer] = {}
        self._load_config()

    def _find_config(self) -> str:
        """Find the filers.yaml config file."""
        search_paths = [
            Path.cwd() / "configs" / "filers.yaml",
            Path.cwd() / "filers.yaml",
            Path.home() / ".config" / "netapp-filer" / "filers.yaml",
            Path("/etc/netapp-filer/filers.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return str(path)

        raise ConfigurationError(
            "Could not find filers.yaml. Create one in ./configs/filers.yaml"
        )

    def _load_config(self) -> None:
        """Load the YAML configuration."""
        try:
            with open(self.config_path) as f:
                self._config = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read {self.config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        defaults = self._config.get("defaults") or {}
        filers = self._config.setdefault("filers", {}) or {}
        for filer_id, filer_config in filers.items():
            if filer_config is None:
                filer_config = filers[filer_id] = {}
            for key, value in defaults.items():
                if key not in filer_config:
                    filer_config[key] = value

        self._validate_groups()

    def get_filer_ids(self) -> list[str]:
        """Get all filer IDs."""
        return list(self._config.get("filers", {}).keys())

    def get_filer_config(self, filer_id: str) -> FilerConfig:
        """Get the validated config for a filer."""
        filers = self._config.get("filers", {})
        if filer_id not in filers:
            raise KeyError(f"Unknown filer: {filer_id}")
        data = dict(filers[filer_id])
        data.setdefault("name", filer_id)
        return FilerConfig.from_dict(data)

    def get_filer(self, filer_id: str) -> Filer:
        """Get or create a filer instance."""
        if filer_id not in self._filers:
            self._filers[filer_id] = Filer(self.get_filer_config(filer_id))
        return self._filers[filer_id]

    def get_all_filers(self) -> dict[str, Filer]:
        """Get all filer instances."""
        for filer_id in self.get_filer_ids():
            self.get_filer(filer_id)
        return self._filers

    def close_all(self) -> None:
        """Close all filer sessions."""
        for filer in self._filers.values():
            filer.close()
        self._filers.clear()

    # === Group Management ===

    def _validate_groups(self) -> None:
        """Validate that all group members reference valid filers."""
        groups = self._config.get("groups") or {}
        filers = self._config.get("filers", {})

        for group_name, members in groups.items():
            if not isinstance(members, list):
                logger.warning(f"Group '{group_name}' should be a list of filer IDs")
                continue
            for filer_id in members:
                if filer_id not in filers:
                    logger.warning(
                        f"Group '{group_name}' references unknown filer: {filer_id}"
                    )

    def get_group_names(self) -> list[str]:
        """Get list of all group names."""
        return list((self._config.get("groups") or {}).keys())

    def get_group_members(self, group_name: str) -> list[str]:
        """Get filer IDs in a group.

        Raises:
            KeyError: If group doesn't exist
        """
        groups = self._config.get("groups") or {}
        if group_name not in groups:
            raise KeyError(f"Unknown group: {group_name}")
        return list(groups[group_name])

    def get_filers_in_group(self, group_name: str) -> list[Filer]:
        """Get filer instances for all members of a group."""
        return [self.get_filer(filer_id) for filer_id in self.get_group_members(group_name)]

    def get_filer_groups(self, filer_id: str) -> list[str]:
        """Get all groups a filer belongs to."""
        return [
            group_name
            for group_name, members in (self._config.get("groups") or {}).items()
            if isinstance(members, list) and filer_id in members
        ]
