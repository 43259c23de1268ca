"""
DeedReg Error Hierarchy — Typed failures for every registry operation.

Every error carries the identity and document it concerns so the audit
trail can record denials without re-deriving them.

Hierarchy:
    DeedRegError
    ├── DocumentNotFoundError        — doc_id has no record
    ├── DocumentAlreadyExistsError   — reserved, not raised
    ├── InvalidTitleError            — title/description byte length out of bounds
    ├── InvalidDocumentSizeError     — file_size zero or at/above the cap
    ├── TagValidationError           — tag count/length/emptiness or capacity
    ├── PermissionDeniedError        — caller lacks view access
    ├── UnauthorizedOwnerError       — caller is not the current owner
    ├── AdminOnlyActionError         — caller is not the administrator / self-revoke
    ├── ViewingRestrictedError       — reserved, not raised
    ├── DeedRegConfigError           — invalid deedreg.yaml
    └── DeedRegSessionError          — no execution context
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class DeedRegError(Exception):
    """
    Base error for all registry failures.
    All context is serializable to JSON for the audit log.
    """

    error_code: str = "DeedRegError"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.doc_id: Optional[int] = context.get("doc_id")
        self.identity: Optional[str] = context.get("identity")
        self.operation: Optional[str] = context.get("operation")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "error_code": self.error_code,
            "message": self.message,
            "doc_id": self.doc_id,
            "identity": self.identity,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("doc_id", "identity", "operation")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.doc_id is not None:
            parts.append(f"doc_id={self.doc_id}")
        if self.identity:
            parts.append(f"identity={self.identity}")
        return " | ".join(parts)


class DocumentNotFoundError(DeedRegError):
    """Referenced doc_id has no record."""
    error_code = "DocumentNotFound"


class DocumentAlreadyExistsError(DeedRegError):
    """Reserved. No operation raises this today."""
    error_code = "DocumentAlreadyExists"


class InvalidTitleError(DeedRegError):
    """Title or description length out of the allowed byte bounds."""
    error_code = "InvalidTitle"

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        return d


class InvalidDocumentSizeError(DeedRegError):
    """File size is zero (or negative) or at/above the size cap."""
    error_code = "InvalidDocumentSize"


class TagValidationError(DeedRegError):
    """
    Tag count, length or emptiness violates the format rules,
    or a concatenation would exceed the tag capacity.
    """
    error_code = "TagValidationFailed"

    def __init__(self, message: str, **context: Any):
        self.tags: Optional[list] = context.get("tags")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["tags"] = self.tags
        return d


class PermissionDeniedError(DeedRegError):
    """Caller lacks view access for a gated read."""
    error_code = "PermissionDenied"


class UnauthorizedOwnerError(DeedRegError):
    """Caller is not the record's current owner."""
    error_code = "UnauthorizedOwner"


class AdminOnlyActionError(DeedRegError):
    """Caller is not the administrator, or an owner tried to revoke themselves."""
    error_code = "AdminOnlyAction"


class ViewingRestrictedError(DeedRegError):
    """Reserved. No operation raises this today."""
    error_code = "ViewingRestricted"


class DeedRegConfigError(DeedRegError):
    """Configuration error — invalid deedreg.yaml."""
    error_code = "ConfigError"


class DeedRegSessionError(DeedRegError):
    """No execution context: the caller was not authenticated by the host."""
    error_code = "SessionError"
