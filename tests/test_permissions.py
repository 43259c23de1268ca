"""Unit tests for deedreg.security.permissions — view grants and access guards."""

import pytest

from deedreg.engine.context import acting_as
from deedreg.engine.errors import (
    AdminOnlyActionError,
    DocumentNotFoundError,
    PermissionDeniedError,
    UnauthorizedOwnerError,
)
from deedreg.engine.logging import AuditWriter, init_audit_log, shutdown_audit_log

from tests.conftest import ADMIN, ALICE, BOB, CAROL


class TestCanView:
    """Owner, administrator and grant holders may view."""

    def test_owner(self, service, registered):
        assert service.can_view(registered, ALICE)

    def test_administrator(self, service, registered):
        assert service.can_view(registered, ADMIN)

    def test_stranger(self, service, registered):
        assert not service.can_view(registered, CAROL)

    def test_missing_record(self, service):
        assert not service.can_view(42, ADMIN)


class TestGrantAccess:
    def test_grant_allows_viewing(self, service, registered):
        with acting_as(ALICE, height=11):
            service.grant_access(registered, CAROL)
        assert service.can_view(registered, CAROL)
        with acting_as(CAROL, height=12):
            assert service.get_document(registered).title == "Deed-1"

    def test_grant_is_idempotent(self, service, registered):
        with acting_as(ALICE, height=11):
            service.grant_access(registered, CAROL)
            service.grant_access(registered, CAROL)
        assert service.can_view(registered, CAROL)

    def test_grants_are_per_viewer(self, service, registered):
        with acting_as(ALICE, height=11):
            service.grant_access(registered, CAROL)
        assert not service.can_view(registered, BOB)

    def test_non_owner_cannot_grant(self, service, registered):
        with acting_as(CAROL, height=11):
            with pytest.raises(UnauthorizedOwnerError):
                service.grant_access(registered, CAROL)
        assert not service.can_view(registered, CAROL)

    def test_administrator_cannot_grant(self, service, registered):
        with acting_as(ADMIN, height=11):
            with pytest.raises(UnauthorizedOwnerError):
                service.grant_access(registered, CAROL)

    def test_missing_document(self, service):
        with acting_as(ALICE, height=11):
            with pytest.raises(DocumentNotFoundError):
                service.grant_access(5, CAROL)

    @pytest.mark.parametrize("viewer", ["", "   ", None])
    def test_blank_viewer_rejected(self, service, registered, viewer):
        with acting_as(ALICE, height=11):
            with pytest.raises(ValueError, match="viewer"):
                service.grant_access(registered, viewer)


class TestRevokeAccess:
    def test_revoke_removes_view(self, service, registered):
        with acting_as(ALICE, height=11):
            service.grant_access(registered, CAROL)
            service.revoke_access(registered, CAROL)
        assert not service.can_view(registered, CAROL)
        with acting_as(CAROL, height=12):
            with pytest.raises(PermissionDeniedError):
                service.get_statistics(registered)

    def test_owner_cannot_revoke_self(self, service, registered):
        with acting_as(ALICE, height=11):
            with pytest.raises(AdminOnlyActionError, match="own access"):
                service.revoke_access(registered, ALICE)
        assert service.can_view(registered, ALICE)

    def test_revoke_without_entry_succeeds(self, service, registered):
        with acting_as(ALICE, height=11):
            service.revoke_access(registered, CAROL)
        assert not service.can_view(registered, CAROL)

    def test_non_owner_cannot_revoke(self, service, registered):
        with acting_as(ALICE, height=11):
            service.grant_access(registered, CAROL)
        with acting_as(BOB, height=12):
            with pytest.raises(UnauthorizedOwnerError):
                service.revoke_access(registered, CAROL)
        assert service.can_view(registered, CAROL)

    def test_new_owner_may_revoke_previous_owner(self, service, registered):
        with acting_as(ALICE, height=11):
            service.transfer(registered, BOB)
        with acting_as(BOB, height=12):
            service.revoke_access(registered, ALICE)
        assert not service.can_view(registered, ALICE)


class TestOrphanedGrants:
    def test_grants_do_not_outlive_their_record(self, service, registered):
        with acting_as(ALICE, height=11):
            service.grant_access(registered, CAROL)
            service.delete(registered)
        assert not service.can_view(registered, CAROL)
        assert not service.can_view(registered, ALICE)


class TestAuditEntries:
    def test_denial_written_to_denials_stream(self, service, registered, tmp_path):
        init_audit_log(log_dir=str(tmp_path), flush_interval_ms=10)
        with acting_as(BOB, height=30):
            with pytest.raises(UnauthorizedOwnerError):
                service.transfer(registered, BOB)
        shutdown_audit_log()

        entries = AuditWriter(str(tmp_path)).read("denials")
        assert len(entries) == 1
        assert entries[0]["event"] == "access_denied"
        assert entries[0]["identity"] == BOB
        assert entries[0]["operation"] == "transfer"
        assert entries[0]["error_code"] == "UnauthorizedOwner"
        assert entries[0]["height"] == 30

    def test_grants_recorded_in_permissions_stream(self, service, registered, tmp_path):
        init_audit_log(log_dir=str(tmp_path), flush_interval_ms=10)
        with acting_as(ALICE, height=31):
            service.grant_access(registered, CAROL)
            service.revoke_access(registered, CAROL)
        shutdown_audit_log()

        entries = AuditWriter(str(tmp_path)).read("permissions")
        assert [(e["event"], e["viewer"]) for e in entries] == [
            ("permission_granted", CAROL),
            ("permission_revoked", CAROL),
        ]
        assert AuditWriter(str(tmp_path)).read("denials") == []
