"""Unit tests for deedreg.documents.models — record and report value types."""

import pytest
from pydantic import ValidationError

from deedreg.documents.models import (
    AuthenticityReport,
    DocumentRecord,
    MaintenanceReport,
    PermissionEntry,
)


def _record(**overrides):
    fields = dict(
        doc_id=1,
        title="Deed-1",
        owner="alice",
        file_size=2048,
        registration_height=10,
        description="Lot 7",
        tags=("residential",),
    )
    fields.update(overrides)
    return DocumentRecord(**fields)


class TestDocumentRecord:
    def test_helpers(self):
        record = _record()
        assert record.tag_count == 1
        assert record.is_owned_by("alice")
        assert not record.is_owned_by("bob")
        assert record.age_at(25) == 15

    def test_frozen(self):
        record = _record()
        with pytest.raises(ValidationError):
            record.title = "changed"

    def test_model_copy_leaves_original(self):
        record = _record()
        moved = record.model_copy(update={"owner": "bob"})
        assert moved.owner == "bob"
        assert record.owner == "alice"
        assert moved.registration_height == record.registration_height

    def test_doc_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            _record(doc_id=0)

    def test_to_dict_lists_tags(self):
        d = _record(tags=("a", "b")).to_dict()
        assert d["tags"] == ["a", "b"]
        assert d["owner"] == "alice"


class TestReports:
    def test_permission_entry_defaults_to_view(self):
        assert PermissionEntry(doc_id=1, viewer="carol").can_view is True

    def test_authenticity_report_fields(self):
        report = AuthenticityReport(
            is_valid=True, current_height=12, blocks_since_creation=2, owner_match=True,
        )
        assert report.model_dump() == {
            "is_valid": True,
            "current_height": 12,
            "blocks_since_creation": 2,
            "owner_match": True,
        }

    def test_maintenance_report_defaults_healthy(self):
        assert MaintenanceReport(registry_count=0, last_checked=5).system_healthy is True
