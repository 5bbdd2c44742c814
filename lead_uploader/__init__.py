"""Client toolkit for bulk uploading lead spreadsheets to the lead management backend."""

from . import models  # noqa: F401
from .api import APIError, LeadAPIClient  # noqa: F401
from .models import (
    CommitRequest,
    FileType,
    InspectionResult,
    LeadRow,
    RowError,
    UploadResult,
    User,
)
from .session import AuthorizationError, SessionContext  # noqa: F401
from .upload import SelectionError, SheetSelection, SyntheticProgress, UploadSession  # noqa: F401

__all__ = [
    "APIError",
    "AuthorizationError",
    "CommitRequest",
    "FileType",
    "InspectionResult",
    "LeadAPIClient",
    "LeadRow",
    "RowError",
    "SelectionError",
    "SessionContext",
    "SheetSelection",
    "SyntheticProgress",
    "UploadResult",
    "UploadSession",
    "User",
    "ingestion",
    "upload",
]
