"""Dataset export helpers."""

from .csv_export import ExportUnavailable, export_filename, read_csv, to_frame, write_csv

__all__ = ["ExportUnavailable", "export_filename", "read_csv", "to_frame", "write_csv"]
