"""
DeedReg Document Models — Pydantic value types for records and reports.

DocumentRecord: Immutable metadata for one registered property document.
PermissionEntry: One (doc_id, viewer) view grant.
AuthenticityReport / DocumentStatistics / MaintenanceReport: read-side shapes.

Records are never patched in place: every mutation builds a new value with
``record.model_copy(update=...)`` and the store replaces the stored row.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Document record
# ---------------------------------------------------------------------------

class DocumentRecord(BaseModel):
    """
    Metadata for one registered document.

    `doc_id` and `registration_height` are fixed at registration; title,
    file_size, description, tags and owner change only through owner-gated
    operations. Field bounds are enforced by deedreg.documents.validation
    before a record is built, so they are not repeated here.
    """

    model_config = ConfigDict(frozen=True)

    doc_id: int = Field(gt=0, description="Registry-assigned identifier, never reused")
    title: str = Field(description="Document title (1-64 bytes)")
    owner: str = Field(description="Identity currently controlling the record")
    file_size: int = Field(description="Size in bytes of the off-registry file")
    registration_height: int = Field(ge=0, description="Height at registration")
    description: str = Field(description="Free-text description (1-128 bytes)")
    tags: Tuple[str, ...] = Field(default=(), description="Ordered tags, at most 10")

    @property
    def tag_count(self) -> int:
        return len(self.tags)

    def is_owned_by(self, identity: str) -> bool:
        return self.owner == identity

    def age_at(self, height: int) -> int:
        """Heights elapsed since registration."""
        return height - self.registration_height

    def to_dict(self) -> Dict[str, Any]:
        d = self.model_dump()
        d["tags"] = list(self.tags)
        return d


class PermissionEntry(BaseModel):
    """A view grant for one viewer on one document."""

    model_config = ConfigDict(frozen=True)

    doc_id: int
    viewer: str
    can_view: bool = True


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class AuthenticityReport(BaseModel):
    """
    Result of verify_authenticity.

    `is_valid` always equals `owner_match`; both are part of the response
    shape and are kept.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    current_height: int
    blocks_since_creation: int
    owner_match: bool


class DocumentStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_age: int
    size_in_bytes: int
    metadata_count: int


class MaintenanceReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    registry_count: int
    system_healthy: bool = True
    last_checked: int
