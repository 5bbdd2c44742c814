"""Desktop window for the bulk lead upload workflow."""

from .app import BulkUploadApp, main  # noqa: F401

__all__ = ["BulkUploadApp", "main"]
