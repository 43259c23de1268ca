"""Unit tests for deedreg.engine.context — ExecutionContext and context helpers."""

import pytest

from deedreg.engine.context import (
    ExecutionContext,
    acting_as,
    clear_execution_context,
    get_execution_context,
    require_execution_context,
    set_execution_context,
)
from deedreg.engine.errors import DeedRegSessionError


class TestExecutionContext:
    def test_basic_creation(self):
        ctx = ExecutionContext(identity="alice", height=5)
        assert ctx.identity == "alice"
        assert ctx.height == 5
        assert ctx.execution_id.startswith("exec_")
        assert len(ctx.execution_id) == 17  # "exec_" + 12 hex chars

    def test_is_immutable(self):
        ctx = ExecutionContext(identity="alice", height=5)
        with pytest.raises(AttributeError):
            ctx.height = 6

    def test_empty_identity_rejected(self):
        with pytest.raises(ValueError, match="identity"):
            ExecutionContext(identity="", height=1)

    def test_negative_height_rejected(self):
        with pytest.raises(ValueError, match="height"):
            ExecutionContext(identity="alice", height=-1)

    def test_to_dict(self):
        d = ExecutionContext(identity="bob", height=3).to_dict()
        assert d["identity"] == "bob"
        assert d["height"] == 3
        assert "execution_id" in d


class TestContextVarHelpers:
    def test_set_and_get(self):
        ctx = ExecutionContext(identity="alice", height=1)
        set_execution_context(ctx)
        assert get_execution_context() is ctx

    def test_clear(self):
        set_execution_context(ExecutionContext(identity="alice", height=1))
        clear_execution_context()
        assert get_execution_context() is None

    def test_require_without_context_raises(self):
        with pytest.raises(DeedRegSessionError, match="No execution context"):
            require_execution_context()

    def test_acting_as_restores_previous(self):
        outer = ExecutionContext(identity="outer", height=1)
        set_execution_context(outer)
        with acting_as("inner", height=2) as ctx:
            assert get_execution_context() is ctx
            assert ctx.identity == "inner"
        assert get_execution_context() is outer

    def test_acting_as_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with acting_as("alice", height=1):
                raise RuntimeError("boom")
        assert get_execution_context() is None
