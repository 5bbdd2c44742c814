"""Data models exchanged with the lead backend during bulk uploads."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

MAX_ERROR_DETAILS = 100


class FileType(str, Enum):
    """Spreadsheet family reported by the inspect endpoint."""

    EXCEL = "excel"
    CSV = "csv"


# --- Lead projections ---

# Backend keys mapped onto LeadRow attributes.
_LEAD_ROW_FIELDS: Mapping[str, str] = {
    "name": "name",
    "phone": "phone",
    "email": "email",
    "fatherName": "father_name",
    "fatherPhone": "father_phone",
    "motherName": "mother_name",
    "village": "village",
    "district": "district",
    "mandal": "mandal",
    "state": "state",
    "quota": "quota",
    "courseInterested": "course_interested",
    "applicationStatus": "application_status",
    "gender": "gender",
    "rank": "rank",
    "interCollege": "inter_college",
    "hallTicketNumber": "hall_ticket_number",
}


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class LeadRow:
    """Partial lead shown in previews and error reports. Not validated."""

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    father_name: Optional[str] = None
    father_phone: Optional[str] = None
    mother_name: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    mandal: Optional[str] = None
    state: Optional[str] = None
    quota: Optional[str] = None
    course_interested: Optional[str] = None
    application_status: Optional[str] = None
    gender: Optional[str] = None
    rank: Optional[str] = None
    inter_college: Optional[str] = None
    hall_ticket_number: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LeadRow":
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in payload.items():
            attr = _LEAD_ROW_FIELDS.get(key)
            if attr:
                values[attr] = _clean(value)
            elif key == "dynamicFields" and isinstance(value, Mapping):
                extra.update(value)
            else:
                extra[key] = value
        return cls(extra=extra, **values)

    def display_name(self) -> str:
        return self.name or "(Unnamed Lead)"

    def as_row(self) -> Dict[str, Any]:
        """Return the lead using the backend's column names."""
        row: Dict[str, Any] = {}
        for key, attr in _LEAD_ROW_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                row[key] = value
        row.update(self.extra)
        return row


# --- Inspect phase ---

@dataclass(frozen=True)
class InspectionResult:
    """Server-side analysis of a spreadsheet that has not been committed yet."""

    upload_token: Optional[str]
    original_name: str
    size: int
    file_type: FileType
    sheet_names: Tuple[str, ...] = ()
    previews: Mapping[str, Tuple[LeadRow, ...]] = field(default_factory=dict)
    preview_available: bool = True
    preview_disabled_reason: Optional[str] = None
    expires_in_ms: int = 0

    @property
    def is_excel(self) -> bool:
        return self.file_type is FileType.EXCEL

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "InspectionResult":
        raw_type = payload.get("fileType")
        try:
            file_type = FileType(raw_type)
        except ValueError:
            raise ValueError(f"Unexpected file type: {raw_type!r}") from None

        sheet_names: List[str] = []
        if file_type is FileType.EXCEL:
            for name in payload.get("sheetNames") or []:
                name = str(name)
                if name not in sheet_names:
                    sheet_names.append(name)

        preview_available = bool(payload.get("previewAvailable", False))
        previews: Dict[str, Tuple[LeadRow, ...]] = {}
        if preview_available:
            for sheet, rows in (payload.get("previews") or {}).items():
                # CSV files have no sheet names, so their single implicit sheet is kept as-is.
                if file_type is FileType.EXCEL and sheet not in sheet_names:
                    continue
                previews[str(sheet)] = tuple(LeadRow.from_payload(row) for row in rows or [])

        return cls(
            upload_token=str(payload.get("uploadToken") or "") or None,
            original_name=str(payload.get("originalName") or ""),
            size=int(payload.get("size") or 0),
            file_type=file_type,
            sheet_names=tuple(sheet_names),
            previews=previews,
            preview_available=preview_available,
            preview_disabled_reason=payload.get("previewDisabledReason"),
            expires_in_ms=int(payload.get("expiresInMs") or 0),
        )


# --- Commit phase ---

@dataclass(frozen=True)
class CommitRequest:
    """Validated multipart payload for the commit endpoint."""

    source: str
    upload_token: Optional[str] = None
    file_path: Optional[Path] = None
    selected_sheets: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if not self.upload_token and self.file_path is None:
            raise ValueError("A commit needs either an upload token or a file")


@dataclass(frozen=True)
class RowError:
    """A row the backend rejected while importing a batch."""

    row: int
    error: str
    sheet: Optional[str] = None
    data: Optional[LeadRow] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RowError":
        data = payload.get("data")
        return cls(
            row=int(payload.get("row") or 0),
            error=str(payload.get("error") or ""),
            sheet=payload.get("sheet") or None,
            data=LeadRow.from_payload(data) if isinstance(data, Mapping) else None,
        )


@dataclass(frozen=True)
class UploadResult:
    """Outcome reported by the backend for a committed upload."""

    total: int
    success: int
    errors: int
    batch_id: Optional[str] = None
    duration_ms: Optional[int] = None
    sheets_processed: Tuple[str, ...] = ()
    error_details: Tuple[RowError, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UploadResult":
        duration = payload.get("durationMs")
        details = payload.get("errorDetails") or []
        return cls(
            total=int(payload.get("total") or 0),
            success=int(payload.get("success") or 0),
            errors=int(payload.get("errors") or 0),
            batch_id=payload.get("batchId"),
            duration_ms=int(duration) if isinstance(duration, (int, float)) else None,
            sheets_processed=tuple(str(name) for name in payload.get("sheetsProcessed") or []),
            error_details=tuple(RowError.from_payload(item) for item in details[:MAX_ERROR_DETAILS]),
        )


# --- Session users ---

@dataclass(slots=True)
class User:
    """Account returned by the backend for the bearer token in use."""

    id: str
    name: str
    email: str
    role_name: str
    is_active: bool = True

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "User":
        return cls(
            id=str(payload.get("_id") or payload.get("id") or ""),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            role_name=str(payload.get("roleName") or ""),
            is_active=bool(payload.get("isActive", True)),
        )


__all__ = [
    "CommitRequest",
    "FileType",
    "InspectionResult",
    "LeadRow",
    "MAX_ERROR_DETAILS",
    "RowError",
    "UploadResult",
    "User",
]
