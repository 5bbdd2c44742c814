from __future__ import annotations

import httpx
import pytest

from lead_uploader.api import APIError, LeadAPIClient, error_message
from lead_uploader.models import CommitRequest, FileType
from lead_uploader.session import SessionContext


def test_inspect_sends_file_with_bearer_token(backend, client, xlsx_file, excel_payload) -> None:
    backend.ok("POST", "/leads/bulk-upload/inspect", excel_payload())

    inspection = client.inspect_bulk_upload(xlsx_file)

    request = backend.calls("/leads/bulk-upload/inspect")[0]
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="file"; filename="leads.xlsx"' in request.content
    assert inspection.upload_token == "tok-excel"
    assert inspection.file_type is FileType.EXCEL
    assert inspection.sheet_names == ("Jan", "Feb", "Mar")
    assert inspection.previews["Feb"][0].name == "Feb Lead 1"


def test_inspect_error_carries_server_message(backend, client, xlsx_file) -> None:
    backend.reply("POST", "/leads/bulk-upload/inspect", 413, {"message": "File too large"})

    with pytest.raises(APIError) as excinfo:
        client.inspect_bulk_upload(xlsx_file)

    assert excinfo.value.status_code == 413
    assert excinfo.value.server_message == "File too large"
    assert error_message(excinfo.value, "fallback") == "File too large"


def test_error_without_json_body_uses_exception_text(backend, client, xlsx_file) -> None:
    backend.reply("POST", "/leads/bulk-upload/inspect", 502, "Bad Gateway")

    with pytest.raises(APIError) as excinfo:
        client.inspect_bulk_upload(xlsx_file)

    assert excinfo.value.server_message is None
    assert error_message(excinfo.value, "fallback") == "Request failed with status code 502"


def test_error_message_falls_back_when_exception_is_blank() -> None:
    assert error_message(RuntimeError(""), "Upload failed. Please try again.") == "Upload failed. Please try again."


def test_missing_envelope_data_is_an_error(backend, client, xlsx_file) -> None:
    backend.reply("POST", "/leads/bulk-upload/inspect", 200, {"success": True})

    with pytest.raises(APIError, match="No analysis data received"):
        client.inspect_bulk_upload(xlsx_file)


def test_inspect_without_file_type_is_an_error(backend, client, xlsx_file, excel_payload) -> None:
    payload = excel_payload()
    payload["fileType"] = None
    backend.ok("POST", "/leads/bulk-upload/inspect", payload)

    with pytest.raises(APIError, match="Unexpected file type: None"):
        client.inspect_bulk_upload(xlsx_file)


def test_commit_with_token_sends_metadata_only(backend, client) -> None:
    backend.ok("POST", "/leads/bulk-upload", {"batchId": "b1", "total": 2, "success": 2, "errors": 0, "errorDetails": []})

    result = client.bulk_upload(
        CommitRequest(source="Campaign", upload_token="tok-excel", selected_sheets=("Jan", "Mar"))
    )

    body = backend.calls("/leads/bulk-upload")[0].content
    assert b'name="uploadToken"' in body
    assert b"tok-excel" in body
    assert b'name="source"' in body and b"Campaign" in body
    assert b'["Jan", "Mar"]' in body
    assert b"filename=" not in body
    assert result.total == 2
    assert result.batch_id == "b1"


def test_commit_without_token_sends_raw_file_and_omits_sheets(backend, client, csv_file) -> None:
    backend.ok("POST", "/leads/bulk-upload", {"total": 1, "success": 1, "errors": 0, "errorDetails": []})

    client.bulk_upload(CommitRequest(source="Bulk Upload", file_path=csv_file))

    body = backend.calls("/leads/bulk-upload")[0].content
    assert b'name="file"; filename="leads.csv"' in body
    assert b"selectedSheets" not in body
    assert b"uploadToken" not in body


def test_commit_request_requires_token_or_file() -> None:
    with pytest.raises(ValueError):
        CommitRequest(source="Bulk Upload")


def test_unauthorized_response_logs_the_session_out(backend) -> None:
    session = SessionContext(token="expired")
    events: list[str] = []
    session.on_logout(lambda: events.append("logout"))
    backend.reply("GET", "/auth/me", 401, {"message": "Token expired"})

    with LeadAPIClient("http://testserver/api", session, transport=backend.transport) as api:
        with pytest.raises(APIError):
            api.get_current_user()

    assert session.get_token() is None
    assert events == ["logout"]


def test_get_current_user_parses_role(backend, client) -> None:
    backend.ok("GET", "/auth/me", {"_id": "u1", "name": "Admin", "email": "admin@example.com", "roleName": "Super Admin", "isActive": True})

    user = client.get_current_user()

    assert user.id == "u1"
    assert user.role_name == "Super Admin"


def test_upload_stats_passes_batch_id(backend, client) -> None:
    backend.ok("GET", "/leads/upload-stats", {"batchId": "b1", "total": 10})

    stats = client.get_upload_stats("b1")

    assert stats["total"] == 10
    assert backend.calls("/leads/upload-stats")[0].url.params["batchId"] == "b1"


def test_transport_errors_propagate(xlsx_file) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with LeadAPIClient("http://testserver/api", transport=httpx.MockTransport(refuse)) as api:
        with pytest.raises(httpx.ConnectError):
            api.inspect_bulk_upload(xlsx_file)
