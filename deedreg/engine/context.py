"""
DeedReg Execution Context — Caller identity and height per operation.

The hosting environment authenticates the caller and supplies the current
height (a monotonically increasing counter). Both travel in an
ExecutionContext held in a context variable, so no registry operation ever
takes "who is calling" as an argument.

Usage:
    from deedreg.engine.context import ExecutionContext, acting_as

    with acting_as("alice", height=12):
        service.register(...)
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

from deedreg.engine.errors import DeedRegSessionError

# ---------------------------------------------------------------------------
# Thread-safe context variable, one per call
# ---------------------------------------------------------------------------

current_execution_context: ContextVar[Optional["ExecutionContext"]] = ContextVar(
    "execution_context", default=None
)


@dataclass(frozen=True)
class ExecutionContext:
    """
    Authenticated caller plus the host's current height.

    Populated by the hosting environment before each operation.
    """

    identity: str
    height: int
    execution_id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity must be a non-empty string")
        if self.height < 0:
            raise ValueError(f"height must be non-negative, got {self.height}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "identity": self.identity,
            "height": self.height,
            "execution_id": self.execution_id,
        }


def set_execution_context(ctx: ExecutionContext) -> None:
    """Set the execution context for the current thread/task."""
    current_execution_context.set(ctx)


def get_execution_context() -> Optional[ExecutionContext]:
    """Get the current execution context. Returns None if not set."""
    return current_execution_context.get()


def require_execution_context() -> ExecutionContext:
    """Get execution context or raise error if not set."""
    ctx = get_execution_context()
    if ctx is None:
        raise DeedRegSessionError(
            "No execution context — caller not authenticated",
            reason="missing_context",
        )
    return ctx


def clear_execution_context() -> None:
    """Clear the execution context (e.g., when the host finishes a call)."""
    current_execution_context.set(None)


@contextmanager
def acting_as(identity: str, height: int) -> Generator[ExecutionContext, None, None]:
    """Run a block with `identity` as the caller at `height`, restoring the previous context after."""
    ctx = ExecutionContext(identity=identity, height=height)
    token = current_execution_context.set(ctx)
    try:
        yield ctx
    finally:
        current_execution_context.reset(token)
