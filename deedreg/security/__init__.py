"""DeedReg Security — Ownership guards and view permissions."""

from deedreg.security.permissions import PermissionService

__all__ = ["PermissionService"]
