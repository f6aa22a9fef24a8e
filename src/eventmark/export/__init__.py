"""Export of recorded event occurrences."""

from eventmark.export.csv_export import export_csv, format_number, write_export

__all__ = [
    "export_csv",
    "format_number",
    "write_export",
]
