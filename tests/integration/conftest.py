"""
Integration test fixtures — file-backed registry database and audit log directory.
Mark with @pytest.mark.integration to skip in unit-only runs.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest

from deedreg.documents.service import RegistryService
from deedreg.engine.config import load_registry_config


# Custom marker for integration tests
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: uses a file-backed registry and audit log")


@pytest.fixture
def integration_project(tmp_path):
    """Create a project tree with deedreg.yaml, a SQLite file and a log directory."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "deedreg.yaml").write_text(
        "registry:\n"
        "  name: IntegrationRegistry\n"
        "  environment: staging\n"
        "  administrator: deployer\n"
        "database:\n"
        f"  url: sqlite:///{root / 'deeds.db'}\n"
        "logging:\n"
        f"  directory: {root / 'logs'}\n"
        "  async_queue:\n"
        "    flush_interval_ms: 10\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def file_service(integration_project):
    """RegistryService built from the project's deedreg.yaml, tables created."""
    config = load_registry_config(str(integration_project / "deedreg.yaml"))
    return RegistryService.from_config(config, create_tables=True)
