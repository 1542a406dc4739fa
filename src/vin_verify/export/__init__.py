"""
VIN Verify Export Module
========================

CSV export of still-unverified reference rows.
"""

from .diff import (
    DEFAULT_SOURCE_COLUMN,
    ExportArtifact,
    export_unverified,
    export_filename,
    build_export,
)

__all__ = [
    "DEFAULT_SOURCE_COLUMN",
    "ExportArtifact",
    "export_unverified",
    "export_filename",
    "build_export",
]
