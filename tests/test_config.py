"""Tests for configuration manager."""

from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]

from toggl_cli.core.config import LOCAL_CONFIG_NAME, ConfigManager, find_local_config


@pytest.fixture
def temp_config_path(tmp_path: Path) -> Path:
    """Global config file path inside a temporary directory."""
    return tmp_path / "home" / "config.yml"


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Directory that holds no local config."""
    path = tmp_path / "project"
    path.mkdir()
    return path


def write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f)


class TestConfigManager:
    """Test ConfigManager."""

    def test_defaults_without_file(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that defaults apply and nothing is written on read."""
        config = ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

        assert not temp_config_path.exists()
        assert config.get("version") == "1.0"
        assert config.get("picker.fzf") is False
        assert config.get("picker.history_size") == 50
        assert config.get("defaults.description") is None
        assert config.get("advanced.log_level") == "WARNING"

    def test_merge_with_defaults(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that partial config is merged with defaults."""
        write_yaml(temp_config_path, {"version": "1.0", "picker": {"fzf": True}})

        config = ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

        assert config.get("picker.fzf") is True
        assert config.get("picker.fzf_command") == "fzf"
        assert config.get("api.timeout") == 30

    def test_local_config_overrides_global(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that a local file wins over the global one."""
        write_yaml(temp_config_path, {"version": "1.0", "defaults": {"project": "Internal", "billable": False}})
        local = project_dir / LOCAL_CONFIG_NAME
        write_yaml(local, {"defaults": {"project": "Client Work"}})

        config = ConfigManager(temp_config_path, local_path=local)

        assert config.get("defaults.project") == "Client Work"
        assert config.get("defaults.billable") is False
        assert config.active_path == local

    def test_invalid_config_raises(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that schema violations are reported."""
        write_yaml(temp_config_path, {"version": "1.0", "picker": {"history_size": 0}})

        with pytest.raises(ValueError, match="Invalid configuration"):
            ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

    def test_invalid_yaml_raises(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that unparsable files are reported."""
        temp_config_path.parent.mkdir(parents=True)
        temp_config_path.write_text("picker: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

    def test_set_persists(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test setting values with dot notation."""
        config = ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

        config.set("picker.fzf", True)

        assert config.get("picker.fzf") is True
        with open(temp_config_path) as f:
            saved = yaml.safe_load(f)
        assert saved["picker"]["fzf"] is True
        assert saved["version"] == "1.0"

    def test_set_invalid_value(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that invalid values are rejected and nothing is saved."""
        config = ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

        with pytest.raises(ValueError):
            config.set("advanced.log_level", "LOUD")

        assert config.get("advanced.log_level") == "WARNING"
        assert not temp_config_path.exists()

    def test_init(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test creating the global config file."""
        config = ConfigManager(temp_config_path, local_path=project_dir / LOCAL_CONFIG_NAME)

        assert config.init() == temp_config_path
        assert temp_config_path.exists()
        with pytest.raises(FileExistsError):
            config.init()

    def test_init_local(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test that a local file only carries the defaults section."""
        local = project_dir / LOCAL_CONFIG_NAME
        config = ConfigManager(temp_config_path, local_path=local)

        config.init(local)

        with open(local) as f:
            saved = yaml.safe_load(f)
        assert set(saved) == {"version", "defaults"}

    def test_delete_active_file(self, temp_config_path: Path, project_dir: Path) -> None:
        """Test deleting the active config file."""
        local = project_dir / LOCAL_CONFIG_NAME
        write_yaml(local, {"defaults": {"description": "x"}})
        config = ConfigManager(temp_config_path, local_path=local)

        assert config.delete() == local
        assert not local.exists()
        with pytest.raises(FileNotFoundError):
            config.delete()


def test_find_local_config_walks_up(tmp_path: Path) -> None:
    """Test that the nearest local config above a directory is found."""
    local = tmp_path / LOCAL_CONFIG_NAME
    local.write_text("defaults: {}\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_local_config(nested) == local.resolve()
