"""HTTP client for the lead backend's bulk upload endpoints."""
from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from ..config import DEFAULT_API_URL
from ..models import CommitRequest, InspectionResult, UploadResult, User
from ..session import SessionContext

LOGGER = logging.getLogger(__name__)

INSPECT_PATH = "/leads/bulk-upload/inspect"
COMMIT_PATH = "/leads/bulk-upload"
CURRENT_USER_PATH = "/auth/me"
UPLOAD_STATS_PATH = "/leads/upload-stats"

_CONTENT_TYPES = {
    ".csv": "text/csv",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
}


class APIError(RuntimeError):
    """Raised when the backend answers with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


def error_message(exc: BaseException, fallback: str) -> str:
    """Pick the text shown to the user: server message, then exception text, then fallback."""

    server_message = getattr(exc, "server_message", None)
    if server_message:
        return str(server_message)
    text = str(exc).strip()
    return text or fallback


class LeadAPIClient:
    """Thin wrapper over :class:`httpx.Client` speaking the backend's JSON envelope."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session: Optional[SessionContext] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.session = session or SessionContext()
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            event_hooks={"request": [self._attach_token], "response": [self._handle_unauthorized]},
        )

    def __enter__(self) -> "LeadAPIClient":
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------
    # Hooks
    # -------------------------------------------------------

    def _attach_token(self, request: httpx.Request) -> None:
        token = self.session.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    def _handle_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            LOGGER.warning("Backend rejected credentials for %s %s", response.request.method, response.request.url.path)
            self.session.logout()

    # -------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------

    def inspect_bulk_upload(self, path: str | Path) -> InspectionResult:
        """Send a spreadsheet for inspection without importing anything."""

        file_path = Path(path)
        LOGGER.debug("Inspecting %s", file_path.name)
        with file_path.open("rb") as handle:
            response = self._client.post(INSPECT_PATH, files={"file": _file_part(file_path, handle)})
        payload = self._unwrap(response, empty_message="No analysis data received")
        try:
            return InspectionResult.from_payload(payload)
        except ValueError as exc:
            raise APIError(str(exc), status_code=response.status_code) from exc

    def bulk_upload(self, request: CommitRequest) -> UploadResult:
        """Commit a previously inspected upload (or the raw file when no token exists)."""

        data: Dict[str, str] = {"source": request.source}
        if request.selected_sheets is not None:
            data["selectedSheets"] = json.dumps(list(request.selected_sheets))

        if request.file_path is not None and not request.upload_token:
            with request.file_path.open("rb") as handle:
                response = self._client.post(
                    COMMIT_PATH,
                    data=data,
                    files={"file": _file_part(request.file_path, handle)},
                )
        else:
            # A filename-less part keeps the body multipart without attaching a file.
            response = self._client.post(
                COMMIT_PATH,
                data=data,
                files={"uploadToken": (None, (request.upload_token or "").encode("utf-8"))},
            )
        payload = self._unwrap(response, empty_message="Upload response was empty")
        return UploadResult.from_payload(payload)

    def get_current_user(self) -> User:
        response = self._client.get(CURRENT_USER_PATH)
        payload = self._unwrap(response, empty_message="No user data received")
        if isinstance(payload.get("user"), dict):
            payload = payload["user"]
        return User.from_payload(payload)

    def get_upload_stats(self, batch_id: str) -> Dict[str, Any]:
        response = self._client.get(UPLOAD_STATS_PATH, params={"batchId": batch_id})
        return self._unwrap(response, empty_message="No upload statistics received")

    # -------------------------------------------------------
    # Response handling
    # -------------------------------------------------------

    def _unwrap(self, response: httpx.Response, *, empty_message: str) -> Dict[str, Any]:
        body = _json_or_none(response)

        if response.is_error:
            server_message = body.get("message") if isinstance(body, dict) else None
            LOGGER.error(
                "%s %s -> %s: %s",
                response.request.method,
                response.request.url.path,
                response.status_code,
                server_message or response.reason_phrase,
            )
            raise APIError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                server_message=server_message,
            )

        payload = body.get("data") if isinstance(body, dict) else None
        if not payload or not isinstance(payload, dict):
            raise APIError(empty_message, status_code=response.status_code)
        return payload


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _file_part(path: Path, handle):
    content_type = _CONTENT_TYPES.get(path.suffix.lower()) or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return (path.name, handle, content_type)


__all__ = ["APIError", "LeadAPIClient", "error_message"]
