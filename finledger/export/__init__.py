"""Export package."""

from finledger.export.projection import (
    CSV_COLUMNS,
    export_filename,
    project_rows,
    write_csv,
)

__all__ = ["CSV_COLUMNS", "export_filename", "project_rows", "write_csv"]
