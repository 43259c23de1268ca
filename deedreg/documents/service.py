"""
DeedReg Registry Service — Document lifecycle, access-gated reports, maintenance.

Handles:
- Registration (doc_id allocation, creator auto-grant)
- Owner-only mutations: update, transfer, add_tags, archive, delete
- Permission grants (delegated to PermissionService)
- Access-gated reads: get_document, verify_authenticity, get_statistics
- Administrator maintenance check and security lock

Every operation reads the caller and current height from the execution
context, validates all preconditions, then writes inside one unit of
work. A failed check leaves no partial state.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Sequence

from sqlalchemy.orm import sessionmaker

from deedreg.db.session import init_registry_db, session_scope
from deedreg.documents.models import (
    AuthenticityReport,
    DocumentRecord,
    DocumentStatistics,
    MaintenanceReport,
)
from deedreg.documents.stores import CounterStore, PermissionStore, RegistryStore
from deedreg.documents.validation import (
    ARCHIVED_TAG,
    check_file_size,
    check_identity,
    check_tag_capacity,
    check_tags,
    check_text_fields,
)
from deedreg.engine.config import RegistryConfig
from deedreg.engine.context import require_execution_context
from deedreg.engine.errors import AdminOnlyActionError, DeedRegConfigError
from deedreg.engine.logging import audit, document_event, maintenance_event
from deedreg.security.permissions import (
    PermissionService,
    deny,
    require_administrator,
    require_owner,
    require_record,
    require_viewer,
)

logger = logging.getLogger("deedreg.documents.service")


class RegistryService:
    """
    The registry's public operation surface.

    One instance per registry database. The administrator identity is fixed
    here and never changes for the life of the service.
    """

    def __init__(self, session_factory: sessionmaker, administrator: str):
        self._session_factory = session_factory
        self.permissions = PermissionService(session_factory, administrator)
        # Serialises counter read-and-advance between registrations in this process
        self._counter_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: RegistryConfig, create_tables: bool = False) -> "RegistryService":
        """Build a service from a loaded deedreg.yaml."""
        if not config.administrator:
            raise DeedRegConfigError("registry.administrator must be set in deedreg.yaml")
        factory = init_registry_db(
            config.database.url,
            create_tables=create_tables,
            pool_pre_ping=config.database.pool_pre_ping,
            echo=config.database.echo,
        )
        return cls(factory, config.administrator)

    @property
    def administrator(self) -> str:
        return self.permissions.administrator

    # -------------------------------------------------------------------
    # Document lifecycle
    # -------------------------------------------------------------------

    def register(self, title: str, file_size: int, description: str, tags: Sequence[str]) -> int:
        """
        Register a new document owned by the caller.

        1. Validate title/description, size, tags
        2. Allocate doc_id = counter + 1
        3. Store the record and a can_view entry for the caller
        4. Advance the counter

        Steps 2-4 commit together. Returns the new doc_id.
        """
        ctx = require_execution_context()
        context = {"identity": ctx.identity, "operation": "register"}
        check_text_fields(title, description, **context)
        check_file_size(file_size, **context)
        check_tags(tags, **context)

        with self._counter_lock, session_scope(self._session_factory) as session:
            counter = CounterStore(session)
            doc_id = counter.next_id()
            record = DocumentRecord(
                doc_id=doc_id,
                title=title,
                owner=ctx.identity,
                file_size=file_size,
                registration_height=ctx.height,
                description=description,
                tags=tuple(tags),
            )
            RegistryStore(session).put(record)
            PermissionStore(session).put(doc_id, ctx.identity, can_view=True)
            counter.advance_to(doc_id)

        logger.info(f"Registered doc {doc_id} '{title}' for '{ctx.identity}' at height {ctx.height}")
        audit(document_event("registered", ctx, doc_id))
        return doc_id

    def update(
        self,
        doc_id: int,
        new_title: str,
        new_file_size: int,
        new_description: str,
        new_tags: Sequence[str],
    ) -> None:
        """Overwrite title, size, description and tags. Owner and registration height are untouched."""
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            documents = RegistryStore(session)
            record = require_record(documents, doc_id, ctx, "update")
            require_owner(record, ctx, "update")

            context = {"doc_id": doc_id, "identity": ctx.identity, "operation": "update"}
            check_text_fields(new_title, new_description, **context)
            check_file_size(new_file_size, **context)
            check_tags(new_tags, **context)

            changes = {
                "title": new_title,
                "file_size": new_file_size,
                "description": new_description,
                "tags": tuple(new_tags),
            }
            fields_changed = [k for k, v in changes.items() if getattr(record, k) != v]
            documents.put(record.model_copy(update=changes))

        logger.info(f"Updated doc {doc_id} ({', '.join(fields_changed) or 'no changes'})")
        audit(document_event("updated", ctx, doc_id, fields_changed=fields_changed))

    def transfer(self, doc_id: int, new_owner: str) -> None:
        """
        Hand control of `doc_id` to `new_owner`.

        Existing permission entries are left exactly as they are, including
        the previous owner's own entry. A blank `new_owner` raises ValueError
        once ownership has been checked.
        """
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            documents = RegistryStore(session)
            record = require_record(documents, doc_id, ctx, "transfer")
            require_owner(record, ctx, "transfer")
            check_identity(new_owner, "new_owner")
            documents.put(record.model_copy(update={"owner": new_owner}))

        logger.info(f"Transferred doc {doc_id} from '{ctx.identity}' to '{new_owner}'")
        audit(document_event("transferred", ctx, doc_id, new_owner=new_owner))

    def add_tags(self, doc_id: int, additional_tags: Sequence[str]) -> List[str]:
        """Append `additional_tags` after the existing tags. Returns the combined list."""
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            documents = RegistryStore(session)
            record = require_record(documents, doc_id, ctx, "add_tags")
            require_owner(record, ctx, "add_tags")

            context = {"doc_id": doc_id, "identity": ctx.identity, "operation": "add_tags"}
            check_tags(additional_tags, **context)
            check_tag_capacity(record.tags, additional_tags, **context)

            combined = record.tags + tuple(additional_tags)
            documents.put(record.model_copy(update={"tags": combined}))

        audit(document_event("tagged", ctx, doc_id, tags_added=list(additional_tags)))
        return list(combined)

    def archive(self, doc_id: int) -> None:
        """Mark `doc_id` archived by appending the ARCHIVED tag. The record stays in place."""
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            documents = RegistryStore(session)
            record = require_record(documents, doc_id, ctx, "archive")
            require_owner(record, ctx, "archive")
            check_tag_capacity(
                record.tags, [ARCHIVED_TAG],
                doc_id=doc_id, identity=ctx.identity, operation="archive",
            )
            documents.put(record.model_copy(update={"tags": record.tags + (ARCHIVED_TAG,)}))

        logger.info(f"Archived doc {doc_id}")
        audit(document_event("archived", ctx, doc_id))

    def delete(self, doc_id: int) -> None:
        """
        Remove the record for `doc_id`.

        Permission entries for the id are not purged; they stay in the
        Permission Store and are ignored because the record is gone.
        """
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            documents = RegistryStore(session)
            record = require_record(documents, doc_id, ctx, "delete")
            require_owner(record, ctx, "delete")
            documents.remove(doc_id)

        logger.info(f"Deleted doc {doc_id} (by '{ctx.identity}')")
        audit(document_event("deleted", ctx, doc_id))

    # -------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------

    def grant_access(self, doc_id: int, viewer: str) -> None:
        self.permissions.grant_access(doc_id, viewer)

    def revoke_access(self, doc_id: int, viewer: str) -> None:
        self.permissions.revoke_access(doc_id, viewer)

    def can_view(self, doc_id: int, identity: str) -> bool:
        return self.permissions.can_view(doc_id, identity)

    # -------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------

    def get_document(self, doc_id: int) -> DocumentRecord:
        """Return the record for `doc_id` if the caller may view it."""
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            record = require_record(RegistryStore(session), doc_id, ctx, "get_document")
            require_viewer(record, ctx, self.administrator, PermissionStore(session), "get_document")
        return record

    def verify_authenticity(self, doc_id: int, presumed_owner: str) -> AuthenticityReport:
        """Check whether `presumed_owner` is the current owner of `doc_id`."""
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            record = require_record(RegistryStore(session), doc_id, ctx, "verify_authenticity")
            require_viewer(record, ctx, self.administrator, PermissionStore(session), "verify_authenticity")

        owner_match = record.owner == presumed_owner
        return AuthenticityReport(
            is_valid=owner_match,
            current_height=ctx.height,
            blocks_since_creation=record.age_at(ctx.height),
            owner_match=owner_match,
        )

    def get_statistics(self, doc_id: int) -> DocumentStatistics:
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            record = require_record(RegistryStore(session), doc_id, ctx, "get_statistics")
            require_viewer(record, ctx, self.administrator, PermissionStore(session), "get_statistics")

        return DocumentStatistics(
            document_age=record.age_at(ctx.height),
            size_in_bytes=record.file_size,
            metadata_count=record.tag_count,
        )

    def system_maintenance_check(self) -> MaintenanceReport:
        """Administrator-only snapshot of the registry counter at the current height."""
        ctx = require_execution_context()
        require_administrator(self.administrator, ctx, "system_maintenance_check")
        with session_scope(self._session_factory) as session:
            registry_count = CounterStore(session).current()

        audit(maintenance_event("maintenance_check", ctx, registry_count=registry_count))
        return MaintenanceReport(registry_count=registry_count, system_healthy=True, last_checked=ctx.height)

    def security_lock(self, doc_id: int) -> None:
        """
        Authorise a security lock on `doc_id` (owner or administrator).

        Only the authorisation is performed; the record is not changed.
        """
        ctx = require_execution_context()
        with session_scope(self._session_factory) as session:
            record = require_record(RegistryStore(session), doc_id, ctx, "security_lock")

        if not record.is_owned_by(ctx.identity) and ctx.identity != self.administrator:
            raise deny(
                AdminOnlyActionError(
                    "Security lock requires the owner or the administrator",
                    doc_id=doc_id,
                    identity=ctx.identity,
                    operation="security_lock",
                ),
                ctx,
            )

        audit(maintenance_event("security_lock_acknowledged", ctx, doc_id=doc_id))

    def __repr__(self) -> str:
        return f"<RegistryService administrator='{self.administrator}'>"
