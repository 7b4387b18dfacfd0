"""Export and Import Module.

JSON export of a year of tracked travel, and re-import of that document.
"""

from export.trip_export import (
    TripExport,
    TripExportError,
    build_export,
    export_filename,
    export_json,
    import_json,
    parse_export,
)

__all__ = [
    "TripExport",
    "TripExportError",
    "build_export",
    "export_filename",
    "export_json",
    "import_json",
    "parse_export",
]
