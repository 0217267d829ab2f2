import pytest
import yaml
from typing import Dict, List, Optional
from videonft.domain.models import (
    Asset, ExportTask, ImportTask, Task, TaskStatus, TranscodeTask, UploadSlot, parse_task
)

IPFS_OUTPUT = {
    "videoFileCid": "bafyvideo",
    "videoFileUrl": "ipfs://bafyvideo",
    "videoFileGatewayUrl": "https://ipfs.example/ipfs/bafyvideo",
    "nftMetadataCid": "bafymeta",
    "nftMetadataUrl": "ipfs://bafymeta",
    "nftMetadataGatewayUrl": "https://ipfs.example/ipfs/bafymeta",
}


def make_asset(
    asset_id: str = "asset-1",
    name: str = "video",
    size: Optional[int] = 50_000_000,
    video_bitrate: Optional[int] = 1_000_000,
    width: int = 1920,
    height: int = 1080,
    audio_bitrate: Optional[int] = None,
    with_video: bool = True,
) -> Asset:
    tracks = []
    if with_video:
        tracks.append({"type": "video", "codec": "h264", "bitrate": video_bitrate, "width": width, "height": height})
    if audio_bitrate is not None:
        tracks.append({"type": "audio", "codec": "aac", "bitrate": audio_bitrate})
    data = {"id": asset_id, "name": name, "videoSpec": {"format": "mp4", "tracks": tracks}}
    if size is not None:
        data["size"] = size
    return Asset.model_validate(data)


def make_task(task_id: str, task_type: str, phase: str, progress=None, error_message=None, output=None) -> Task:
    status = {"phase": phase}
    if progress is not None:
        status["progress"] = progress
    if error_message is not None:
        status["errorMessage"] = error_message
    data = {"id": task_id, "type": task_type, "status": status}
    if output is not None:
        data["output"] = output
    return parse_task(data)


class FakeVodApi:
    """In-memory stand-in for VodApiClient with scripted task phases."""

    def __init__(self, asset: Asset, transcoded: Optional[Asset] = None):
        self.assets: Dict[str, Asset] = {asset.id: asset}
        if transcoded is not None:
            self.assets[transcoded.id] = transcoded
        self.source_asset_id = asset.id
        self.transcoded_id = transcoded.id if transcoded else "asset-2"
        self.scripts: Dict[str, List[Task]] = {
            "import-1": [make_task("import-1", "import", "running", 0.5), make_task("import-1", "import", "completed", 1)],
            "transcode-1": [make_task("transcode-1", "transcode", "completed", 1)],
            "export-1": [make_task("export-1", "export", "completed", 1, output={"export": {"ipfs": IPFS_OUTPUT}})],
        }
        self.calls: List[tuple] = []
        self.upload_handle = None
        self.uploaded = b""
        self.upload_error: Optional[Exception] = None

    def request_upload_url(self, name: str) -> UploadSlot:
        self.calls.append(("request_upload_url", name))
        return UploadSlot(
            url="https://upload.example/put/abc",
            asset=Asset(id=self.source_asset_id, name=name),
            task=ImportTask(id="import-1", status=TaskStatus(phase="pending")),
        )

    def upload_file(self, url, content, size=None, mime_type=None, on_progress=None):
        self.calls.append(("upload_file", url, size, mime_type))
        self.upload_handle = content
        if self.upload_error:
            raise self.upload_error
        self.uploaded = content.read()
        if on_progress:
            on_progress(1.0)

    def get_task(self, task_id: str) -> Task:
        self.calls.append(("get_task", task_id))
        script = self.scripts[task_id]
        return script.pop(0) if len(script) > 1 else script[0]

    def get_asset(self, asset_id: str) -> Asset:
        self.calls.append(("get_asset", asset_id))
        return self.assets[asset_id]

    def transcode_asset(self, asset_id, name, profile):
        self.calls.append(("transcode_asset", asset_id, name, profile))
        return Asset(id=self.transcoded_id, name=name), TranscodeTask(id="transcode-1")

    def export_asset(self, asset_id, nft_metadata=None):
        self.calls.append(("export_asset", asset_id, nft_metadata))
        return ExportTask(id="export-1")

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def asset_factory():
    return make_asset


@pytest.fixture
def task_factory():
    return make_task


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"x" * 1000)
    return path


@pytest.fixture
def nft_yaml(tmp_path):
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "video-nft.yaml"

    content = {
        'api': {
            'endpoint': 'https://api.example.com/',
            'timeout_seconds': 30,
        },
        'normalize': {
            'size_limit_bytes': 50_000_000,
            'min_bitrate_bps': 200_000,
        },
        'polling': {
            'interval_seconds': 0.5,
            'timeout_seconds': 120,
        },
        'mint': {
            'enabled': True,
            'chain_id': '0x13881',
        },
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file
