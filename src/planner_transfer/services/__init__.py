"""Service layer for the planner_transfer package.

This package contains the import/export pipeline: section extraction, chunked
writes, foreign format conversion, the importer and exporter, and the legacy
key-value store migration.
"""

from .json_import_export_service import (
    export_bundle,
    import_bundle,
    reset_all,
)
from .importer import Importer, InvalidEnvelopeError
from .exporter import Exporter
from .format_converter import FormatTag, analyze_import, convert, detect_format
from .legacy_migration import migrate_legacy_snapshot

__all__ = [
    "export_bundle",
    "import_bundle",
    "reset_all",
    "Importer",
    "InvalidEnvelopeError",
    "Exporter",
    "FormatTag",
    "analyze_import",
    "convert",
    "detect_format",
    "migrate_legacy_snapshot",
]
