"""
DeedReg Tables — SQLAlchemy models backing the registry stores.

Tables:
1. documents             — Registry Store (doc_id -> record)
2. document_permissions  — Permission Store ((doc_id, viewer) -> can_view)
3. registry_state        — Single-row registry counter

document_permissions deliberately has no foreign key to documents:
entries survive deletion of their record and are treated as inert.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    JSON,
    String,
)

from deedreg.db.base import Base, TimestampMixin

REGISTRY_STATE_ROW_ID = 1


class DocumentRow(Base, TimestampMixin):
    __tablename__ = "documents"

    doc_id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(64), nullable=False)
    owner = Column(String(255), nullable=False, index=True)
    file_size = Column(BigInteger, nullable=False)
    registration_height = Column(BigInteger, nullable=False)
    description = Column(String(128), nullable=False)
    tags = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("doc_id > 0", name="ck_documents_doc_id_positive"),
        CheckConstraint(
            "file_size > 0 AND file_size < 1000000000",
            name="ck_documents_file_size",
        ),
    )

    def __repr__(self) -> str:
        return f"<DocumentRow(doc_id={self.doc_id}, title='{self.title}', owner='{self.owner}')>"


class PermissionRow(Base):
    __tablename__ = "document_permissions"

    doc_id = Column(Integer, primary_key=True, autoincrement=False)
    viewer = Column(String(255), primary_key=True)
    can_view = Column(Boolean, nullable=False, default=True)
    granted_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PermissionRow(doc_id={self.doc_id}, viewer='{self.viewer}', can_view={self.can_view})>"


class RegistryStateRow(Base):
    __tablename__ = "registry_state"

    id = Column(Integer, primary_key=True, autoincrement=False)
    last_doc_id = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("last_doc_id >= 0", name="ck_registry_state_counter"),
    )

    def __repr__(self) -> str:
        return f"<RegistryStateRow(last_doc_id={self.last_doc_id})>"
