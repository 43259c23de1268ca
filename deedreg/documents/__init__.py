"""
DeedReg Documents — Record values, validation rules and key-value stores.

The operation layer lives in deedreg.documents.service (RegistryService);
it is not imported here because deedreg.security depends on this package.
"""

from deedreg.documents.models import (
    AuthenticityReport,
    DocumentRecord,
    DocumentStatistics,
    MaintenanceReport,
    PermissionEntry,
)

__all__ = [
    "AuthenticityReport",
    "DocumentRecord",
    "DocumentStatistics",
    "MaintenanceReport",
    "PermissionEntry",
]
