from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for payloads exchanged with the video API (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Track(ApiModel):
    type: str
    codec: Optional[str] = None
    bitrate: Optional[int] = None
    duration_sec: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    pixel_format: Optional[str] = None
    fps: Optional[float] = None
    channels: Optional[int] = None
    sample_rate: Optional[int] = None
    bit_depth: Optional[int] = None


class VideoSpec(ApiModel):
    format: Optional[str] = None
    duration: Optional[float] = None
    bitrate: Optional[int] = None
    tracks: List[Track] = Field(default_factory=list)


class AssetStatus(ApiModel):
    phase: str = "waiting"
    updated_at: Optional[int] = None
    error_message: Optional[str] = None


class Asset(ApiModel):
    id: str
    name: str = ""
    type: Optional[str] = None
    size: Optional[int] = None
    status: Optional[AssetStatus] = None
    video_spec: Optional[VideoSpec] = None
    playback_id: Optional[str] = None
    playback_url: Optional[str] = None
    download_url: Optional[str] = None
    source_asset_id: Optional[str] = None
    created_at: Optional[int] = None

    def _find_track(self, kind: str) -> Optional[Track]:
        if not self.video_spec:
            return None
        return next((t for t in self.video_spec.tracks if t.type == kind), None)

    @property
    def video_track(self) -> Optional[Track]:
        return self._find_track("video")

    @property
    def audio_track(self) -> Optional[Track]:
        return self._find_track("audio")

    @property
    def size_bytes(self) -> int:
        return self.size or 0


class TaskPhase(str, Enum):
    PENDING = "pending"
    WAITING = "waiting"
    RUNNING = "running"
    FAILED = "failed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskPhase.COMPLETED, TaskPhase.FAILED, TaskPhase.CANCELLED)


class TaskStatus(ApiModel):
    phase: TaskPhase = TaskPhase.PENDING
    progress: Optional[float] = None
    error_message: Optional[str] = None
    updated_at: Optional[int] = None


class IpfsAddresses(ApiModel):
    video_file_cid: str
    video_file_url: str
    video_file_gateway_url: str
    nft_metadata_cid: Optional[str] = None
    nft_metadata_url: Optional[str] = None
    nft_metadata_gateway_url: Optional[str] = None


class ImportOutput(ApiModel):
    asset_spec: Optional[Asset] = None


class ImportTaskOutput(ApiModel):
    import_: Optional[ImportOutput] = Field(default=None, alias="import")


class ExportOutput(ApiModel):
    ipfs: Optional[IpfsAddresses] = None


class ExportTaskOutput(ApiModel):
    export: Optional[ExportOutput] = None


class TranscodeOutput(ApiModel):
    asset: Optional[Dict[str, Any]] = None


class TranscodeTaskOutput(ApiModel):
    transcode: Optional[TranscodeOutput] = None


class Task(ApiModel):
    id: str
    type: Optional[str] = None
    created_at: Optional[int] = None
    input_asset_id: Optional[str] = None
    output_asset_id: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    status: TaskStatus = Field(default_factory=TaskStatus)
    output: Optional[Any] = None

    @property
    def phase(self) -> TaskPhase:
        return self.status.phase


class ImportTask(Task):
    type: Literal["import"] = "import"
    output: Optional[ImportTaskOutput] = None


class ExportTask(Task):
    type: Literal["export"] = "export"
    output: Optional[ExportTaskOutput] = None

    @property
    def ipfs(self) -> Optional[IpfsAddresses]:
        if self.output and self.output.export:
            return self.output.export.ipfs
        return None


class TranscodeTask(Task):
    type: Literal["transcode"] = "transcode"
    output: Optional[TranscodeTaskOutput] = None


AnyTask = Union[ImportTask, ExportTask, TranscodeTask, Task]

_TASK_TYPES = {
    "import": ImportTask,
    "export": ExportTask,
    "transcode": TranscodeTask,
}


def parse_task(data: Dict[str, Any]) -> AnyTask:
    """Builds the task variant matching the payload's ``type`` field."""
    model = _TASK_TYPES.get(data.get("type") or "", Task)
    return model.model_validate(data)


class TranscodeProfile(ApiModel):
    name: str
    width: int
    height: int
    bitrate: int
    fps: int = 0


class SizeConstraint(BaseModel):
    size_limit_bytes: int = Field(default=100_000_000, gt=0)
    min_bitrate_bps: int = Field(default=100_000, gt=0)


class NormalizationPlan(BaseModel):
    possible: bool
    profile: Optional[TranscodeProfile] = None


class UploadSlot(ApiModel):
    url: str
    asset: Asset
    task: ImportTask


class OpenSeaLinks(BaseModel):
    contract_url: str
    token_url: Optional[str] = None


class MintedNftInfo(BaseModel):
    contract_address: str
    transaction_hash: str
    token_id: Optional[int] = None
    opensea: Optional[OpenSeaLinks] = None


class NftResult(BaseModel):
    asset: Asset
    ipfs: IpfsAddresses
    minted: Optional[MintedNftInfo] = None
