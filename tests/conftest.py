from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Tuple, Union

import httpx
import pytest

from lead_uploader.api import LeadAPIClient
from lead_uploader.session import SessionContext
from lead_uploader.upload import ManualScheduler, SyntheticProgress, UploadSession

Reply = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Scripted stand-in for the lead backend, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, method: str, path: str, status: int, body: Any) -> None:
        self.routes.setdefault((method, path), []).append((status, body))

    def ok(self, method: str, path: str, data: Any) -> None:
        self.reply(method, path, 200, {"success": True, "message": "OK", "data": data})

    def calls(self, path: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.path.endswith(path)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        status, body = reply
        if isinstance(body, (dict, list)):
            return httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})
        return httpx.Response(status, text=str(body))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def client(backend: FakeBackend) -> LeadAPIClient:
    api = LeadAPIClient("http://testserver/api", SessionContext(token="secret-token"), transport=backend.transport)
    yield api
    api.close()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def upload_session(client: LeadAPIClient, scheduler: ManualScheduler) -> UploadSession:
    return UploadSession(client, progress=SyntheticProgress(scheduler))


def excel_inspection(sheets=("Jan", "Feb", "Mar"), **overrides) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "uploadToken": "tok-excel",
        "originalName": "leads.xlsx",
        "size": 20480,
        "fileType": "excel",
        "sheetNames": list(sheets),
        "previews": {
            sheet: [{"name": f"{sheet} Lead {index}", "phone": f"98765432{index:02d}", "mandal": "Guntur", "state": "AP"} for index in range(1, 5)]
            for sheet in sheets
        },
        "previewAvailable": True,
        "expiresInMs": 900000,
    }
    payload.update(overrides)
    return payload


def csv_inspection(**overrides) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "uploadToken": "tok-csv",
        "originalName": "leads.csv",
        "size": 512,
        "fileType": "csv",
        "sheetNames": [],
        "previews": {"CSV": [{"name": "Asha", "phone": "9000000001", "mandal": "Tenali", "state": "AP"}]},
        "previewAvailable": True,
        "expiresInMs": 900000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def xlsx_file(tmp_path):
    path = tmp_path / "leads.xlsx"
    path.write_bytes(b"PK\x03\x04 fake workbook bytes")
    return path


@pytest.fixture()
def csv_file(tmp_path):
    path = tmp_path / "leads.csv"
    path.write_text("name,phone\nAsha,9000000001\n", encoding="utf-8")
    return path


@pytest.fixture()
def excel_payload():
    return excel_inspection


@pytest.fixture()
def csv_payload():
    return csv_inspection
