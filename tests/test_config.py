"""Unit tests for deedreg.engine.config — RegistryConfig and loading."""

import pytest

from deedreg.engine.config import (
    DatabaseConfig,
    LoggingConfig,
    RegistryConfig,
    get_registry_config,
    load_registry_config,
)


class TestRegistryConfig:
    """Test RegistryConfig Pydantic model."""

    def test_defaults(self):
        cfg = RegistryConfig()
        assert cfg.name == "DeedReg"
        assert cfg.environment == "dev"
        assert cfg.administrator is None
        assert cfg.database.url == "sqlite:///deedreg.db"
        assert cfg.logging.level == "INFO"
        assert cfg.logging.async_queue.flush_batch_size == 50

    def test_valid_environments(self):
        for env in ("dev", "staging", "prod"):
            assert RegistryConfig(environment=env).environment == env

    def test_invalid_environment(self):
        with pytest.raises(ValueError, match="dev/staging/prod"):
            RegistryConfig(environment="test")

    def test_logging_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_logging_level(self):
        with pytest.raises(ValueError, match="standard level"):
            LoggingConfig(level="loud")

    def test_custom_database(self):
        cfg = RegistryConfig(database=DatabaseConfig(url="postgresql://u:p@db/deeds", echo=True))
        assert cfg.database.url == "postgresql://u:p@db/deeds"
        assert cfg.database.echo is True


class TestLoadRegistryConfig:
    """Test load_registry_config() from file."""

    def test_load_from_file(self, project_root):
        cfg = load_registry_config(str(project_root / "deedreg.yaml"))
        assert cfg.name == "TestRegistry"
        assert cfg.administrator == "registry-admin"
        assert cfg.database.url.endswith("registry.db")
        assert cfg.logging.level == "DEBUG"

    def test_missing_file_returns_defaults(self, tmp_path):
        cfg = load_registry_config(str(tmp_path / "nonexistent.yaml"))
        assert cfg.name == "DeedReg"
        assert cfg.administrator is None

    def test_auto_discovers_from_subdirectory(self, project_root, monkeypatch):
        nested = project_root / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        cfg = load_registry_config()
        assert cfg.administrator == "registry-admin"

    def test_get_registry_config_caches(self, project_root):
        loaded = load_registry_config(str(project_root / "deedreg.yaml"))
        assert get_registry_config() is loaded

    def test_invalid_environment_in_file(self, tmp_path):
        path = tmp_path / "deedreg.yaml"
        path.write_text("registry:\n  environment: qa\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_registry_config(str(path))
