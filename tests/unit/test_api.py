import io
import pytest
import requests
from unittest.mock import MagicMock
from videonft.domain.errors import RemoteRequestError
from videonft.domain.models import ExportTask, ImportTask, TranscodeProfile, TranscodeTask
from videonft.infrastructure.api import ProgressReader, VodApiClient

def make_response(status_code=200, json_data=None, text="", reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response

@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s

@pytest.fixture
def client(session):
    return VodApiClient(api_key="key-123", endpoint="https://api.example.com/", session=session)

def test_api_key_auth_header(client, session):
    assert session.headers["Authorization"] == "Bearer key-123"

def test_jwt_auth_header(session):
    VodApiClient(jwt="tok", session=session)
    assert session.headers["Authorization"] == "JWT tok"

def test_get_asset(client, session):
    session.request.return_value = make_response(json_data={
        "id": "a1",
        "name": "clip",
        "size": 1234,
        "videoSpec": {"tracks": [{"type": "video", "bitrate": 1000, "width": 640, "height": 360}]},
    })

    asset = client.get_asset("a1")

    method, url = session.request.call_args[0]
    assert (method, url) == ("GET", "https://api.example.com/api/asset/a1")
    assert session.request.call_args[1]["allow_redirects"] is False
    assert asset.size == 1234
    assert asset.video_track.height == 360

def test_get_task_returns_variant(client, session):
    session.request.return_value = make_response(json_data={
        "id": "t1", "type": "transcode", "status": {"phase": "running", "progress": 0.5}
    })
    task = client.get_task("t1")
    assert isinstance(task, TranscodeTask)
    assert task.status.progress == 0.5

def test_request_upload_url(client, session):
    session.request.return_value = make_response(json_data={
        "url": "https://upload.example.com/xyz",
        "asset": {"id": "a1", "name": "clip"},
        "task": {"id": "t1", "type": "import", "status": {"phase": "pending"}},
    })

    slot = client.request_upload_url("clip")

    assert session.request.call_args[1]["json"] == {"name": "clip"}
    assert slot.url == "https://upload.example.com/xyz"
    assert slot.asset.id == "a1"
    assert isinstance(slot.task, ImportTask)

def test_upload_file_streams_to_absolute_url(client, session):
    session.request.return_value = make_response()
    progress = []
    content = io.BytesIO(b"x" * 10)

    client.upload_file("https://upload.example.com/xyz", content, size=10, mime_type="video/mp4", on_progress=progress.append)

    method, url = session.request.call_args[0]
    kwargs = session.request.call_args[1]
    assert (method, url) == ("PUT", "https://upload.example.com/xyz")
    assert kwargs["headers"]["Content-Type"] == "video/mp4"
    assert kwargs["headers"]["Content-Length"] == "10"
    assert kwargs["timeout"] == client.upload_timeout
    assert isinstance(kwargs["data"], ProgressReader)

def test_transcode_payload(client, session):
    session.request.return_value = make_response(json_data={
        "asset": {"id": "a2", "name": "clip (720p)"},
        "task": {"id": "t2", "type": "transcode"},
    })
    profile = TranscodeProfile(name="720p", width=1280, height=720, bitrate=600_000)

    asset, task = client.transcode_asset("a1", "clip (720p)", profile)

    assert session.request.call_args[1]["json"] == {
        "assetId": "a1",
        "name": "clip (720p)",
        "profile": {"name": "720p", "width": 1280, "height": 720, "bitrate": 600_000, "fps": 0},
    }
    assert asset.id == "a2"
    assert isinstance(task, TranscodeTask)

def test_export_payload_with_metadata(client, session):
    session.request.return_value = make_response(json_data={"task": {"id": "t3", "type": "export"}})

    task = client.export_asset("a1", {"name": "My NFT"})

    _, url = session.request.call_args[0]
    assert url == "https://api.example.com/api/asset/a1/export"
    assert session.request.call_args[1]["json"] == {"ipfs": {"nftMetadata": {"name": "My NFT"}}}
    assert isinstance(task, ExportTask)

def test_export_payload_without_metadata(client, session):
    session.request.return_value = make_response(json_data={"task": {"id": "t3", "type": "export"}})
    client.export_asset("a1")
    assert session.request.call_args[1]["json"] == {"ipfs": {}}

def test_error_uses_first_error_entry(client, session):
    session.request.return_value = make_response(
        status_code=422, reason="Unprocessable Entity", json_data={"errors": ["name is required", "other"]}
    )

    with pytest.raises(RemoteRequestError) as exc_info:
        client.request_upload_url("")

    err = exc_info.value
    assert err.status_code == 422
    assert err.message == "name is required"
    assert "(422 Unprocessable Entity): name is required" in str(err)

def test_error_falls_back_to_raw_body(client, session):
    session.request.return_value = make_response(status_code=500, reason="Internal Server Error", text="boom")

    with pytest.raises(RemoteRequestError) as exc_info:
        client.get_asset("a1")

    assert exc_info.value.message == "boom"
    assert "500 Internal Server Error" in str(exc_info.value)

def test_error_json_body_without_errors(client, session):
    session.request.return_value = make_response(status_code=404, reason="Not Found", json_data={"detail": "missing"})
    with pytest.raises(RemoteRequestError) as exc_info:
        client.get_task("nope")
    assert exc_info.value.message == '{"detail": "missing"}'

def test_redirect_is_an_error(client, session):
    session.request.return_value = make_response(status_code=302, reason="Found", text="")
    with pytest.raises(RemoteRequestError):
        client.get_asset("a1")

def test_transport_failure(client, session):
    session.request.side_effect = requests.ConnectionError("connection refused")
    with pytest.raises(RemoteRequestError) as exc_info:
        client.get_asset("a1")
    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)

def test_progress_reader_reports_fraction():
    progress = []
    reader = ProgressReader(io.BytesIO(b"x" * 10), 10, progress.append)
    assert len(reader) == 10
    assert reader.read(4) == b"xxxx"
    assert reader.read() == b"x" * 6
    assert reader.read() == b""
    assert progress == [0.4, 1.0]

def test_progress_reader_iterates_chunks():
    reader = ProgressReader(io.BytesIO(b"abc"), 3)
    assert b"".join(reader) == b"abc"
