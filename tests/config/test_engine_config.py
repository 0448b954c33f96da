"""Tests for layered engine configuration."""

from pathlib import Path
import pytest
import yaml
from converge.config import load_engine_config
from converge.config.manager import load_config, save_config
from converge.lifecycle.context import ProviderContext
from converge.utils.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Point the user and project config locations at empty temporary directories."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    monkeypatch.chdir(project)
    return {"home": home, "project": project}


def write_yaml(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Test config layering."""

    def test_defaults(self, isolated):
        """Test packaged defaults."""
        config = load_engine_config()
        assert config["engine"]["timeout_seconds"] == 300
        assert config["engine"]["max_workers"] == 4
        assert config["state"]["path"] == ".converge/state.json"
        assert config["logging"]["level"] == "WARNING"
        assert config["provider"]["region"] == "us-east-1"

    def test_layers_merge(self, isolated):
        """Test that user, project and explicit files override in order, key by key."""
        write_yaml(isolated["home"] / ".converge" / "config.yaml", {"engine": {"max_workers": 8}, "provider": {"region": "eu-west-1"}})
        write_yaml(isolated["project"] / ".converge" / "config.yaml", {"provider": {"region": "us-west-2"}})
        explicit = write_yaml(isolated["project"] / "ci.yaml", {"engine": {"timeout_seconds": 30}})

        config = load_engine_config(str(explicit))
        assert config["engine"] == {"timeout_seconds": 30, "max_workers": 8}
        assert config["provider"]["region"] == "us-west-2"
        assert config["provider"]["partition"] == "aws"

    def test_broken_user_config_is_ignored(self, isolated):
        """Test that an unreadable user config falls back to defaults."""
        path = isolated["home"] / ".converge" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("engine: [unclosed", encoding="utf-8")

        assert load_config()["engine"]["max_workers"] == 4

    def test_explicit_file_missing(self, isolated):
        """Test that an explicit config file must exist."""
        with pytest.raises(ConfigError, match="not found"):
            load_engine_config("missing.yaml")

    def test_explicit_file_not_mapping(self, isolated):
        """Test that config files must contain a mapping."""
        path = isolated["project"] / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            load_engine_config(str(path))

    @pytest.mark.parametrize("override,message", [
        ({"engine": {"timeout_seconds": 0}}, "timeout_seconds"),
        ({"engine": {"timeout_seconds": True}}, "timeout_seconds"),
        ({"engine": {"max_workers": 0}}, "max_workers"),
        ({"state": {"path": ""}}, "state.path"),
        ({"provider": {"account_id": 123456789012}}, "provider.account_id"),
        ({"logging": "DEBUG"}, "missing sections"),
    ])
    def test_invalid_values(self, isolated, override, message):
        """Test validation of engine settings."""
        path = write_yaml(isolated["project"] / "bad.yaml", override)
        with pytest.raises(ConfigError, match=message):
            load_engine_config(str(path))

    def test_save_config(self, isolated):
        """Test that saved config is picked up as the user layer."""
        save_config({"engine": {"max_workers": 2}})
        assert (isolated["home"] / ".converge" / "config.yaml").exists()
        assert load_engine_config()["engine"]["max_workers"] == 2


class TestProviderContextFromConfig:
    """Test building a provider context from config."""

    def test_from_config(self, isolated):
        """Test that engine and provider settings reach the context."""
        path = write_yaml(isolated["project"] / "c.yaml", {
            "engine": {"timeout_seconds": 12},
            "provider": {"region": "ap-south-1", "account_id": "111122223333", "partition": "aws-cn"},
        })
        context = ProviderContext.from_config(load_engine_config(str(path)))
        assert context.timeout == 12.0
        assert context.arn("s3express", "bucket/x") == "arn:aws-cn:s3express:ap-south-1:111122223333:bucket/x"
