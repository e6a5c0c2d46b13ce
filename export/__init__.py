"""
Export module for the Keyword Cluster Processor.

Provides JSON, CSV, tab-separated and Excel export functionality.
"""
from export.csv_exporter import (
    PayloadExporter,
    build_filename,
    create_download_link,
    format_cluster_text,
)
from export.excel_exporter import ExcelExporter

__all__ = [
    "PayloadExporter",
    "ExcelExporter",
    "build_filename",
    "create_download_link",
    "format_cluster_text",
]
