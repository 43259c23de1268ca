"""
DeedReg Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import pytest

from deedreg.db.session import close_registry_db, init_registry_db
from deedreg.documents.service import RegistryService
from deedreg.engine.context import acting_as, clear_execution_context

ADMIN = "registry-admin"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset global singletons between tests."""
    import deedreg.engine.config as cfg_mod
    import deedreg.engine.logging as log_mod

    cfg_mod._registry_config = None
    clear_execution_context()
    yield
    log_mod.shutdown_audit_log()
    clear_execution_context()
    close_registry_db()


@pytest.fixture
def session_factory():
    """Session factory over a fresh in-memory SQLite registry."""
    return init_registry_db("sqlite://", create_tables=True)


@pytest.fixture
def service(session_factory):
    return RegistryService(session_factory, administrator=ADMIN)


@pytest.fixture
def registered(service):
    """A document registered by alice at height 10; returns its doc_id."""
    with acting_as(ALICE, height=10):
        return service.register("Deed-1", 2048, "Lot 7", ["residential"])


@pytest.fixture
def project_root(tmp_path):
    """A directory holding a deedreg.yaml pointing at a file-backed SQLite DB."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "deedreg.yaml").write_text(
        "registry:\n"
        "  name: TestRegistry\n"
        "  environment: dev\n"
        f"  administrator: {ADMIN}\n"
        "database:\n"
        f"  url: sqlite:///{root / 'registry.db'}\n"
        "logging:\n"
        "  level: debug\n"
        f"  directory: {root / 'logs'}\n",
        encoding="utf-8",
    )
    return root
