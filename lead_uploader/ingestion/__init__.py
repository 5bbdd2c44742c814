"""Spreadsheet helpers around the bulk upload: file checks, templates and error exports."""
from __future__ import annotations

from .exporters import error_details_to_dataframe, export_error_details
from .files import SUPPORTED_UPLOAD_SUFFIXES, UnsupportedFileTypeError, ensure_upload_file
from .templates import TEMPLATE_COLUMNS, template_dataframe, write_template

__all__ = [
    "SUPPORTED_UPLOAD_SUFFIXES",
    "TEMPLATE_COLUMNS",
    "UnsupportedFileTypeError",
    "ensure_upload_file",
    "error_details_to_dataframe",
    "export_error_details",
    "template_dataframe",
    "write_template",
]
