"""Tests for filer inventory management."""
import pytest

from netapp_filer.config.inventory import FilerInventory
from netapp_filer.errors import ConfigurationError

CONFIG = """
defaults:
  username: admin
  cache_enabled: true
  connect_retries: 1

filers:
  filer-a:
    hostname: filer-a.example.com
  filer-b:
    hostname: filer-b.example.com
    protocol: telnet
    telnet_password: secret
    cache_expiration: 0

groups:
  production:
    - filer-a
    - filer-b
  lab:
    - filer-b
    - filer-missing
"""


class TestFilerInventory:
    """Tests for FilerInventory class."""

    @pytest.fixture
    def config_file(self, tmp_path):
        path = tmp_path / "filers.yaml"
        path.write_text(CONFIG)
        return str(path)

    def test_load_config(self, config_file):
        """Inventory loads filer ids."""
        inv = FilerInventory(config_file)
        assert inv.get_filer_ids() == ["filer-a", "filer-b"]

    def test_defaults_merged(self, config_file):
        """Defaults apply unless the filer overrides them."""
        inv = FilerInventory(config_file)
        config = inv.get_filer_config("filer-b")
        assert config.username == "admin"
        assert config.cache_enabled is True
        assert config.cache_expiration == 0
        assert config.protocol == "telnet"
        assert config.name == "filer-b"

    def test_unknown_filer(self, config_file):
        """Unknown filer raises KeyError."""
        inv = FilerInventory(config_file)
        with pytest.raises(KeyError, match="Unknown filer"):
            inv.get_filer_config("nonexistent")

    def test_missing_file(self, tmp_path):
        """A missing config file is a configuration error."""
        with pytest.raises(ConfigurationError):
            FilerInventory(str(tmp_path / "absent.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is a configuration error."""
        path = tmp_path / "filers.yaml"
        path.write_text("filers: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            FilerInventory(str(path))

    def test_search_path(self, tmp_path, monkeypatch):
        """Without a path the working directory is searched."""
        (tmp_path / "filers.yaml").write_text(CONFIG)
        monkeypatch.chdir(tmp_path)
        inv = FilerInventory()
        assert inv.config_path.endswith("filers.yaml")

    def test_groups(self, config_file):
        """Group membership queries."""
        inv = FilerInventory(config_file)
        assert inv.get_group_names() == ["production", "lab"]
        assert inv.get_group_members("production") == ["filer-a", "filer-b"]
        assert inv.get_filer_groups("filer-b") == ["production", "lab"]
        with pytest.raises(KeyError):
            inv.get_group_members("nope")

    def test_unknown_group_member_warns(self, config_file, caplog):
        """Groups naming unknown filers are reported."""
        with caplog.at_level("WARNING"):
            FilerInventory(config_file)
        assert "filer-missing" in caplog.text

    def test_get_filer_cached(self, config_file, monkeypatch):
        """Filer instances are built once per id and closed together."""
        built = []

        class StubFiler:
            def __init__(self, config):
                self.config = config
                self.closed = False
                built.append(self)

            def close(self):
                self.closed = True

        monkeypatch.setattr("netapp_filer.config.inventory.Filer", StubFiler)
        inv = FilerInventory(config_file)
        first = inv.get_filer("filer-a")
        assert inv.get_filer("filer-a") is first
        assert len(inv.get_all_filers()) == 2
        assert len(built) == 2

        inv.close_all()
        assert all(f.closed for f in built)
