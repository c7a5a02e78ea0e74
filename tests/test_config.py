"""
Tests for ContainerConfig and ConfigLoader.
"""

import json
import logging
import pytest

from scopewire.config import ConfigLoader, ContainerConfig
from scopewire.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "SCOPEWIRE_DETECT_MIXED_SCOPES",
        "SCOPEWIRE_WIRE_SCOPED_PROXY",
        "SCOPEWIRE_DEFAULT_SCOPE",
        "SCOPEWIRE_PROXY_CLASS_SUFFIX",
    ):
        monkeypatch.delenv(key, raising=False)


class TestContainerConfig:

    def test_defaults(self):
        config = ContainerConfig()
        assert config.detect_mixed_scopes is False
        assert config.wire_scoped_proxy is False
        assert config.default_scope == "singleton"
        assert config.proxy_class_suffix == "ScopedProxy"

    def test_unknown_default_scope(self):
        with pytest.raises(ConfigError, match="Unknown scope"):
            ContainerConfig(default_scope="galaxy")

    def test_empty_suffix(self):
        with pytest.raises(ConfigError, match="proxy_class_suffix"):
            ContainerConfig(proxy_class_suffix="")

    def test_to_dict(self):
        assert ContainerConfig(wire_scoped_proxy=True).to_dict() == {
            "detect_mixed_scopes": False,
            "wire_scoped_proxy": True,
            "default_scope": "singleton",
            "proxy_class_suffix": "ScopedProxy",
        }


class TestConfigLoader:

    def test_empty_load_gives_defaults(self):
        assert ConfigLoader.load().to_config() == ContainerConfig()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "container.yaml"
        path.write_text("detect_mixed_scopes: true\ndefault_scope: request\n")

        config = ConfigLoader.load(paths=[str(path)]).to_config()
        assert config.detect_mixed_scopes is True
        assert config.default_scope == "request"

    def test_container_section(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("container:\n  wire_scoped_proxy: true\nother: 1\n")

        config = ConfigLoader.load(paths=[str(path)]).to_config()
        assert config.wire_scoped_proxy is True

    def test_json_file(self, tmp_path):
        path = tmp_path / "container.json"
        path.write_text(json.dumps({"wire_scoped_proxy": True}))

        assert ConfigLoader.load(paths=[str(path)]).to_config().wire_scoped_proxy is True

    def test_glob_files_merge_in_order(self, tmp_path):
        (tmp_path / "a.yaml").write_text("detect_mixed_scopes: true\nproxy_class_suffix: A\n")
        (tmp_path / "b.yaml").write_text("proxy_class_suffix: B\n")

        config = ConfigLoader.load(paths=[str(tmp_path / "*.yaml")]).to_config()
        assert config.detect_mixed_scopes is True
        assert config.proxy_class_suffix == "B"

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            ConfigLoader.load(paths=[str(path)])

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SCOPEWIRE_WIRE_SCOPED_PROXY", "yes")
        monkeypatch.setenv("SCOPEWIRE_DEFAULT_SCOPE", "session")

        config = ConfigLoader.load().to_config()
        assert config.wire_scoped_proxy is True
        assert config.default_scope == "session"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SCOPEWIRE_DETECT_MIXED_SCOPES=on\nOTHER_KEY=1\n")

        loader = ConfigLoader.load(env_file=str(env_file))
        assert loader.get("detect_mixed_scopes") is True
        assert loader.get("other_key") is None

    def test_missing_env_file_is_ignored(self, tmp_path):
        loader = ConfigLoader.load(env_file=str(tmp_path / "missing.env"))
        assert loader.to_dict() == {}

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "container.yaml"
        path.write_text("proxy_class_suffix: FromFile\ndetect_mixed_scopes: true\n")
        env_file = tmp_path / ".env"
        env_file.write_text("SCOPEWIRE_PROXY_CLASS_SUFFIX=FromDotenv\n")
        monkeypatch.setenv("SCOPEWIRE_PROXY_CLASS_SUFFIX", "FromEnv")

        loader = ConfigLoader.load(paths=[str(path)], env_file=str(env_file))
        assert loader.get("proxy_class_suffix") == "FromEnv"

        loader = ConfigLoader.load(
            paths=[str(path)],
            env_file=str(env_file),
            overrides={"proxy_class_suffix": "FromOverride"},
        )
        config = loader.to_config()
        assert config.proxy_class_suffix == "FromOverride"
        assert config.detect_mixed_scopes is True

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("MYAPP_WIRE_SCOPED_PROXY", "1")
        assert ConfigLoader.load(env_prefix="MYAPP_").to_config().wire_scoped_proxy is True

    def test_wrong_type(self):
        loader = ConfigLoader.load(overrides={"wire_scoped_proxy": "maybe"})
        with pytest.raises(ConfigError, match="expected bool, got str"):
            loader.to_config()

    def test_unknown_keys_warn(self, caplog):
        loader = ConfigLoader.load(overrides={"colour": "blue"})
        with caplog.at_level(logging.WARNING, logger="scopewire.config"):
            config = loader.to_config()

        assert config == ContainerConfig()
        assert "Unknown container config key 'colour' ignored" in caplog.text
