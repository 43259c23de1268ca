"""
DeedReg Stores — Key-value views over the registry tables.

RegistryStore:   doc_id -> DocumentRecord
PermissionStore: (doc_id, viewer) -> can_view
CounterStore:    last assigned doc_id

Each store wraps the Session of the current unit of work; committing or
rolling back is the caller's job (see deedreg.db.session.session_scope).
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from deedreg.db.models import (
    REGISTRY_STATE_ROW_ID,
    DocumentRow,
    PermissionRow,
    RegistryStateRow,
)
from deedreg.documents.models import DocumentRecord, PermissionEntry


def _to_record(row: DocumentRow) -> DocumentRecord:
    return DocumentRecord(
        doc_id=row.doc_id,
        title=row.title,
        owner=row.owner,
        file_size=row.file_size,
        registration_height=row.registration_height,
        description=row.description,
        tags=tuple(row.tags or ()),
    )


class RegistryStore:
    """Document records keyed by doc_id."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, doc_id: int) -> Optional[DocumentRecord]:
        row = self._session.get(DocumentRow, doc_id)
        return _to_record(row) if row is not None else None

    def put(self, record: DocumentRecord) -> None:
        """Insert or replace the stored record for record.doc_id."""
        row = self._session.get(DocumentRow, record.doc_id)
        if row is None:
            row = DocumentRow(doc_id=record.doc_id)
            self._session.add(row)
        row.title = record.title
        row.owner = record.owner
        row.file_size = record.file_size
        row.registration_height = record.registration_height
        row.description = record.description
        row.tags = list(record.tags)
        self._session.flush()

    def remove(self, doc_id: int) -> bool:
        row = self._session.get(DocumentRow, doc_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True


class PermissionStore:
    """View grants keyed by (doc_id, viewer)."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, doc_id: int, viewer: str) -> Optional[PermissionEntry]:
        row = self._session.get(PermissionRow, (doc_id, viewer))
        if row is None:
            return None
        return PermissionEntry(doc_id=row.doc_id, viewer=row.viewer, can_view=row.can_view)

    def put(self, doc_id: int, viewer: str, can_view: bool = True) -> None:
        """Insert or overwrite the entry for (doc_id, viewer)."""
        row = self._session.get(PermissionRow, (doc_id, viewer))
        if row is None:
            row = PermissionRow(doc_id=doc_id, viewer=viewer)
            self._session.add(row)
        row.can_view = can_view
        self._session.flush()

    def remove(self, doc_id: int, viewer: str) -> bool:
        row = self._session.get(PermissionRow, (doc_id, viewer))
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True


class CounterStore:
    """The registry counter: the last doc_id handed out."""

    def __init__(self, session: Session):
        self._session = session

    def _row(self, for_update: bool = False) -> RegistryStateRow:
        stmt = select(RegistryStateRow).where(RegistryStateRow.id == REGISTRY_STATE_ROW_ID)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.scalars(stmt).first()
        if row is None:
            row = RegistryStateRow(id=REGISTRY_STATE_ROW_ID, last_doc_id=0)
            self._session.add(row)
            self._session.flush()
        return row

    def current(self) -> int:
        return int(self._row().last_doc_id)

    def next_id(self) -> int:
        """Lock the counter row and return the id the next registration would take."""
        return int(self._row(for_update=True).last_doc_id) + 1

    def advance_to(self, doc_id: int) -> None:
        row = self._row(for_update=True)
        if doc_id <= row.last_doc_id:
            raise ValueError(
                f"Registry counter cannot move backwards ({row.last_doc_id} -> {doc_id})"
            )
        row.last_doc_id = doc_id
        self._session.flush()
