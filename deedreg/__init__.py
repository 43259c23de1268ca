"""
DeedReg — Permissioned property-document registry.

Stores property-document metadata, enforces single-owner control over each
record, and gates reads through an explicit per-viewer permission table.

Usage:
    from deedreg.documents.service import RegistryService
    from deedreg.engine.context import acting_as
"""

__version__ = "1.0.0"
__all__ = ["engine", "db", "documents", "security"]
