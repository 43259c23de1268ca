"""
DeedReg Permissions — Ownership guards and the per-viewer access ledger.

Access model:
    - The current owner of a record may always view it.
    - The administrator (fixed at construction) may view every record.
    - Anyone else needs a permission entry with can_view = True.

Permission entries are independent per viewer; there is no inheritance or
grouping. Entries whose record was deleted are ignored because every check
loads the record first.

The guard functions (require_record, require_owner, ...) are shared with
the document service so every operation reports denials the same way.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from deedreg.db.session import session_scope
from deedreg.documents.models import DocumentRecord
from deedreg.documents.stores import PermissionStore, RegistryStore
from deedreg.documents.validation import check_identity
from deedreg.engine.context import ExecutionContext, require_execution_context
from deedreg.engine.errors import (
    AdminOnlyActionError,
    DeedRegConfigError,
    DeedRegError,
    DocumentNotFoundError,
    PermissionDeniedError,
    UnauthorizedOwnerError,
)
from deedreg.engine.logging import audit, denial_event, permission_event

logger = logging.getLogger("deedreg.security.permissions")


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def deny(error: DeedRegError, ctx: ExecutionContext) -> DeedRegError:
    """Record a denial in the audit trail and hand the error back for raising."""
    logger.warning(
        f"Denied {error.operation} on doc {error.doc_id} for '{ctx.identity}': {error.error_code}"
    )
    audit(denial_event(error, ctx))
    return error


def require_record(documents: RegistryStore, doc_id: int, ctx: ExecutionContext, operation: str) -> DocumentRecord:
    """Load `doc_id` or raise DocumentNotFoundError."""
    record = documents.get(doc_id)
    if record is None:
        raise DocumentNotFoundError(
            f"Document {doc_id} not found",
            doc_id=doc_id,
            identity=ctx.identity,
            operation=operation,
        )
    return record


def require_owner(record: DocumentRecord, ctx: ExecutionContext, operation: str) -> None:
    """Raise UnauthorizedOwnerError unless the caller owns `record`."""
    if not record.is_owned_by(ctx.identity):
        raise deny(
            UnauthorizedOwnerError(
                f"'{ctx.identity}' is not the owner of document {record.doc_id}",
                doc_id=record.doc_id,
                identity=ctx.identity,
                operation=operation,
            ),
            ctx,
        )


def require_administrator(administrator: str, ctx: ExecutionContext, operation: str,
                          doc_id: Optional[int] = None) -> None:
    """Raise AdminOnlyActionError unless the caller is the administrator."""
    if ctx.identity != administrator:
        raise deny(
            AdminOnlyActionError(
                f"'{operation}' is restricted to the registry administrator",
                doc_id=doc_id,
                identity=ctx.identity,
                operation=operation,
            ),
            ctx,
        )


def viewer_allowed(record: DocumentRecord, identity: str, administrator: str,
                   permissions: PermissionStore) -> bool:
    """True iff `identity` owns `record`, is the administrator, or holds a can_view grant."""
    if record.is_owned_by(identity) or identity == administrator:
        return True
    entry = permissions.get(record.doc_id, identity)
    return entry is not None and entry.can_view


def require_viewer(record: DocumentRecord, ctx: ExecutionContext, administrator: str,
                   permissions: PermissionStore, operation: str) -> None:
    """Raise PermissionDeniedError unless the caller may view `record`."""
    if not viewer_allowed(record, ctx.identity, administrator, permissions):
        raise deny(
            PermissionDeniedError(
                f"'{ctx.identity}' may not view document {record.doc_id}",
                doc_id=record.doc_id,
                identity=ctx.identity,
                operation=operation,
            ),
            ctx,
        )


# ---------------------------------------------------------------------------
# Permission service
# ---------------------------------------------------------------------------

class PermissionService:
    """
    Owner-managed view grants.

    grant_access and revoke_access mutate the Permission Store; can_view
    answers the combined owner / administrator / grant check.
    """

    def __init__(self, session_factory: sessionmaker, administrator: str):
        if not administrator or not administrator.strip():
            raise DeedRegConfigError("An administrator identity is required")
        self._session_factory = session_factory
        self._administrator = administrator

    @property
    def administrator(self) -> str:
        return self._administrator

    def grant_access(self, doc_id: int, viewer: str) -> None:
        """Give `viewer` view access to `doc_id`. Owner only; overwrites any existing entry."""
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            record = require_record(RegistryStore(session), doc_id, ctx, "grant_access")
            require_owner(record, ctx, "grant_access")
            check_identity(viewer, "viewer")
            PermissionStore(session).put(doc_id, viewer, can_view=True)

        logger.info(f"Granted view on doc {doc_id} to '{viewer}' (by '{ctx.identity}')")
        audit(permission_event("granted", ctx, doc_id, viewer))

    def revoke_access(self, doc_id: int, viewer: str) -> None:
        """
        Remove `viewer`'s entry for `doc_id`. Owner only.

        The owner cannot revoke their own entry through this path; that
        attempt fails with AdminOnlyActionError. Revoking a viewer with no
        entry succeeds and changes nothing.
        """
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            record = require_record(RegistryStore(session), doc_id, ctx, "revoke_access")
            require_owner(record, ctx, "revoke_access")
            check_identity(viewer, "viewer")
            if viewer == ctx.identity:
                raise deny(
                    AdminOnlyActionError(
                        "An owner cannot revoke their own access",
                        doc_id=doc_id,
                        identity=ctx.identity,
                        operation="revoke_access",
                    ),
                    ctx,
                )
            PermissionStore(session).remove(doc_id, viewer)

        logger.info(f"Revoked view on doc {doc_id} from '{viewer}' (by '{ctx.identity}')")
        audit(permission_event("revoked", ctx, doc_id, viewer))

    def can_view(self, doc_id: int, identity: str) -> bool:
        """
        Whether `identity` may view `doc_id`.

        A missing record yields False, so entries orphaned by delete never
        grant anything.
        """
        with session_scope(self._session_factory) as session:
            record = RegistryStore(session).get(doc_id)
            if record is None:
                return False
            return viewer_allowed(record, identity, self._administrator, PermissionStore(session))
