from typing import Optional
from pydantic import BaseModel
from .models import Asset, IpfsAddresses, MintedNftInfo, TranscodeProfile

class Event(BaseModel):
    """Base class for all domain events."""
    pass

class StepStarted(Event):
    message: str

class TaskProgressUpdated(Event):
    stage: str
    progress: float  # 0..1

class AssetCreated(Event):
    asset: Asset

class NormalizationRequired(Event):
    asset: Asset
    profile: TranscodeProfile

class NormalizationSkipped(Event):
    asset: Asset
    reason: str
    possible: bool = True

class AssetNormalized(Event):
    source: Asset
    asset: Asset
    profile: TranscodeProfile

class ExportFinished(Event):
    asset_id: str
    ipfs: IpfsAddresses

class NftMinted(Event):
    info: MintedNftInfo

class MintSkipped(Event):
    token_uri: Optional[str] = None
