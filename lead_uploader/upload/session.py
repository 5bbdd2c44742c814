"""Bulk upload session: inspect a spreadsheet, pick sheets, then commit it."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Tuple

from ..api.client import LeadAPIClient, error_message
from ..config import DEFAULT_SOURCE
from ..models import CommitRequest, FileType, InspectionResult, LeadRow, UploadResult
from .progress import ProgressSource, SyntheticProgress
from .sheets import SheetSelection
from .state import Analyzing, Committing, Done, Failed, Idle, ReadyToCommit, SessionState, Stage

LOGGER = logging.getLogger(__name__)

NO_FILE_MESSAGE = "Please select a file first"
ANALYSIS_RUNNING_MESSAGE = "File analysis in progress. Please wait."
NO_SHEETS_MESSAGE = "Select at least one worksheet to include in the upload."
UPLOAD_RUNNING_MESSAGE = "An upload is already in progress."
INSPECT_FALLBACK_MESSAGE = "Failed to analyze file. Please try again."
COMMIT_FALLBACK_MESSAGE = "Upload failed. Please try again."
PREVIEW_DISABLED_MESSAGE = "Preview disabled for this file. Data will still be processed on upload."

PreviewRow = Tuple[str, LeadRow]


class SelectionError(ValueError):
    """Raised when a commit is requested before the session is ready for it."""


@dataclass(frozen=True)
class AnalysisInfo:
    preview_available: bool
    preview_disabled_reason: Optional[str] = None

    @property
    def notice(self) -> Optional[str]:
        if self.preview_available:
            return None
        return self.preview_disabled_reason or PREVIEW_DISABLED_MESSAGE


class UploadSession:
    """Client-side state for one bulk upload, from file choice to import result.

    Network calls go through ``client``; callers that run them elsewhere (for
    example on a worker thread) use the ``start_*``/``complete_*``/``fail_*``
    pairs and apply outcomes on their own thread. Outcomes that belong to a
    file the user has since replaced are discarded.
    """

    def __init__(
        self,
        client: LeadAPIClient,
        *,
        progress: Optional[ProgressSource] = None,
        default_source: str = DEFAULT_SOURCE,
    ) -> None:
        self._client = client
        self.progress: ProgressSource = progress or SyntheticProgress()
        self.default_source = default_source
        self.source = default_source
        self._listeners: List[Callable[[SessionState], None]] = []
        self._generation = 0
        self._commit_generation: Optional[int] = None
        self._state: SessionState = Idle()
        self._message: Optional[str] = None
        self._clear_file_state()

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_analyzing(self) -> bool:
        return isinstance(self._state, Analyzing)

    @property
    def is_uploading(self) -> bool:
        return isinstance(self._state, Committing)

    @property
    def result(self) -> Optional[UploadResult]:
        return self._state.result if isinstance(self._state, Done) else None

    @property
    def error(self) -> Optional[str]:
        if self._message:
            return self._message
        if isinstance(self._state, Failed):
            return self._state.message
        return None

    @property
    def sheet_names(self) -> List[str]:
        return self.sheets.sheet_names if self.sheets is not None else []

    @property
    def selected_sheets(self) -> List[str]:
        return self.sheets.selected if self.sheets is not None else []

    @property
    def warning(self) -> Optional[str]:
        if self.file_type is FileType.EXCEL and self.sheets is not None and self.sheets.is_empty and not self.is_analyzing:
            return NO_SHEETS_MESSAGE
        return None

    @property
    def can_commit(self) -> bool:
        return self._commit_blocker() is None

    def subscribe(self, callback: Callable[[SessionState], None]) -> None:
        self._listeners.append(callback)

    def preview_rows(self, limit: int = 10) -> List[PreviewRow]:
        """Rows to show for verification: selected sheets for Excel, everything for CSV."""

        if self.analysis_info is not None and not self.analysis_info.preview_available:
            return []
        if self.file_type is FileType.EXCEL:
            sheets = self.selected_sheets
        else:
            sheets = list(self.previews)

        rows: List[PreviewRow] = []
        for sheet in sheets:
            for row in self.previews.get(sheet, ()):
                if len(rows) >= limit:
                    return rows
                rows.append((sheet, row))
        return rows

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    def select_file(self, path: str | Path) -> bool:
        """Replace the current file and inspect it. Returns whether inspection succeeded."""

        ticket = self.start_inspection(path)
        try:
            inspection = self._client.inspect_bulk_upload(self.file)  # type: ignore[arg-type]
        except Exception as exc:
            return self.fail_inspection(ticket, exc)
        return self.complete_inspection(ticket, inspection)

    def start_inspection(self, path: str | Path) -> int:
        self.progress.reset()
        self._generation += 1
        self._commit_generation = None
        self._clear_file_state()
        self.file = Path(path)
        LOGGER.info("Inspecting %s", self.file.name)
        self._transition(Analyzing(self._generation))
        return self._generation

    def complete_inspection(self, ticket: int, inspection: InspectionResult) -> bool:
        if not self._is_current_inspection(ticket):
            LOGGER.warning("Discarding inspection result for superseded file %s", inspection.original_name)
            return False

        self.inspection = inspection
        self.upload_token = inspection.upload_token
        self.file_type = inspection.file_type
        self.sheets = SheetSelection(inspection.sheet_names) if inspection.is_excel else None
        self.previews = dict(inspection.previews) if inspection.preview_available else {}
        self.analysis_info = AnalysisInfo(inspection.preview_available, inspection.preview_disabled_reason)
        LOGGER.info(
            "Inspected %s: %s with %d sheet(s), token expires in %d ms",
            inspection.original_name or self.file,
            inspection.file_type.value,
            len(inspection.sheet_names),
            inspection.expires_in_ms,
        )
        self._transition(ReadyToCommit())
        return True

    def fail_inspection(self, ticket: int, exc: BaseException) -> bool:
        if not self._is_current_inspection(ticket):
            LOGGER.warning("Discarding inspection failure for superseded file: %s", exc)
            return False

        message = error_message(exc, INSPECT_FALLBACK_MESSAGE)
        LOGGER.warning("Inspection failed: %s", message)
        self._clear_file_state()
        self._transition(Failed(message, Stage.INSPECT))
        return True

    def _is_current_inspection(self, ticket: int) -> bool:
        return ticket == self._generation and isinstance(self._state, Analyzing)

    # ------------------------------------------------------------------
    # Sheet selection
    # ------------------------------------------------------------------
    def toggle_sheet(self, name: str) -> bool:
        return self._require_sheets().toggle(name)

    def select_all_sheets(self) -> None:
        self._require_sheets().select_all()

    def clear_all_sheets(self) -> None:
        self._require_sheets().clear_all()

    def _require_sheets(self) -> SheetSelection:
        if self.sheets is None:
            raise SelectionError("Sheet selection is only available for Excel workbooks.")
        return self.sheets

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------
    def prepare_commit(self) -> CommitRequest:
        """Build the commit payload, raising :class:`SelectionError` when it may not be sent."""

        blocker = self._commit_blocker()
        if blocker:
            raise SelectionError(blocker)

        selected: Optional[Tuple[str, ...]] = None
        if self.file_type is FileType.EXCEL:
            selected = tuple(self.selected_sheets)

        source = (self.source or "").strip() or self.default_source or DEFAULT_SOURCE
        if self.upload_token:
            return CommitRequest(source=source, upload_token=self.upload_token, selected_sheets=selected)
        return CommitRequest(source=source, file_path=self.file, selected_sheets=selected)

    def begin_commit(self) -> CommitRequest:
        try:
            request = self.prepare_commit()
        except SelectionError as exc:
            self._message = str(exc)
            self._notify()
            raise

        self._commit_generation = self._generation
        LOGGER.info(
            "Committing %s (source=%r, sheets=%s)",
            self.file.name if self.file else "upload",
            request.source,
            list(request.selected_sheets) if request.selected_sheets is not None else "n/a",
        )
        self._transition(Committing())
        self.progress.start()
        return request

    def complete_commit(self, result: UploadResult) -> bool:
        if not self._settle_commit():
            return False
        LOGGER.info(
            "Upload finished: %d total, %d imported, %d failed",
            result.total,
            result.success,
            result.errors,
        )
        self._transition(Done(result))
        return True

    def fail_commit(self, exc: BaseException) -> bool:
        if not self._settle_commit():
            return False
        message = error_message(exc, COMMIT_FALLBACK_MESSAGE)
        LOGGER.warning("Upload failed: %s", message)
        self._transition(Failed(message, Stage.COMMIT))
        return True

    def commit(self) -> Optional[UploadResult]:
        """Run the commit synchronously. Returns the result, or ``None`` on failure."""

        try:
            request = self.begin_commit()
        except SelectionError:
            return None
        try:
            result = self._client.bulk_upload(request)
        except Exception as exc:
            self.fail_commit(exc)
            return None
        self.complete_commit(result)
        return result

    def _settle_commit(self) -> bool:
        if self._commit_generation != self._generation or not isinstance(self._state, Committing):
            LOGGER.warning("Discarding upload outcome for a session that has moved on")
            return False
        self._commit_generation = None
        self.progress.finish()
        return True

    def _commit_blocker(self) -> Optional[str]:
        if self.file is None:
            return NO_FILE_MESSAGE
        if self.is_analyzing:
            return ANALYSIS_RUNNING_MESSAGE
        if self.is_uploading:
            return UPLOAD_RUNNING_MESSAGE
        if self.file_type is FileType.EXCEL and (self.sheets is None or self.sheets.is_empty):
            return NO_SHEETS_MESSAGE
        return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Start over: forget the file, token, selection and any result."""

        self.progress.reset()
        self._generation += 1
        self._commit_generation = None
        self._clear_file_state()
        self._transition(Idle())

    def close(self) -> None:
        self.progress.reset()

    def _clear_file_state(self) -> None:
        self.file: Optional[Path] = None
        self.inspection: Optional[InspectionResult] = None
        self.upload_token: Optional[str] = None
        self.file_type: Optional[FileType] = None
        self.sheets: Optional[SheetSelection] = None
        self.previews: Mapping[str, Tuple[LeadRow, ...]] = {}
        self.analysis_info: Optional[AnalysisInfo] = None

    def _transition(self, state: SessionState) -> None:
        LOGGER.debug("Upload session %s -> %s", type(self._state).__name__, type(state).__name__)
        self._state = state
        self._message = None
        self._notify()

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self._state)


__all__ = [
    "AnalysisInfo",
    "PreviewRow",
    "SelectionError",
    "UploadSession",
]
