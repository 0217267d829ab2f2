import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Union

from videonft.config.models import AppConfig
from videonft.domain.errors import ChainError, TaskFailedError, ValidationError
from videonft.domain.events import (
    AssetCreated, AssetNormalized, ExportFinished, MintSkipped, NftMinted,
    NormalizationRequired, NormalizationSkipped, StepStarted, TaskProgressUpdated
)
from videonft.domain.models import (
    Asset, ExportTask, IpfsAddresses, MintedNftInfo, NftResult, NormalizationPlan
)
from videonft.infrastructure.api import VodApiClient
from videonft.infrastructure.event_bus import EventBus
from videonft.infrastructure.minter import Web3Minter
from videonft.infrastructure.uploader import FileSource, as_file_source
from videonft.pipeline.planner import plan_normalization
from videonft.pipeline.poller import ProgressObserver, wait_for_task

MetadataInput = Union[None, str, Dict[str, Any]]
ConfirmTranscode = Callable[[Asset, NormalizationPlan], bool]


def parse_nft_metadata(nft_metadata: MetadataInput) -> Optional[Dict[str, Any]]:
    if nft_metadata is None or isinstance(nft_metadata, dict):
        return nft_metadata
    try:
        parsed = json.loads(nft_metadata)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in nft-metadata: {e}") from e
    if not isinstance(parsed, dict):
        raise ValidationError("nft-metadata must be a JSON object")
    return parsed


class Orchestrator:
    """Runs upload -> (normalize) -> export -> (mint) for a single video.

    Stages run strictly in order and each one waits for its remote task to
    finish. Nothing is retried or rolled back: a failing stage raises and
    leaves the side effects of earlier stages in place.
    """

    def __init__(
        self,
        config: AppConfig,
        api: VodApiClient,
        event_bus: EventBus,
        minter: Optional[Web3Minter] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.api = api
        self.event_bus = event_bus
        self.minter = minter
        self._sleep = sleep
        self.logger = logging.getLogger(__name__)

    def _progress(self, stage: str, on_progress: Optional[ProgressObserver], offset: float = 0.0, scale: float = 1.0) -> ProgressObserver:
        def report(progress: float):
            value = offset + progress * scale
            self.event_bus.publish(TaskProgressUpdated(stage=stage, progress=value))
            if on_progress:
                on_progress(value)
        return report

    def _wait(self, task, on_progress: Optional[ProgressObserver]):
        return wait_for_task(
            task,
            self.api.get_task,
            on_progress=on_progress,
            poll_interval=self.config.polling.interval_seconds,
            timeout=self.config.polling.timeout_seconds,
            sleep=self._sleep,
        )

    # ------------------------------------------------------------------ #
    # Stages
    # ------------------------------------------------------------------ #

    def create_asset(self, name: str, source: Union[FileSource, str], on_progress: Optional[ProgressObserver] = None) -> Asset:
        """Uploads the file and returns the asset once the import task is done."""
        source = as_file_source(source)
        self.event_bus.publish(StepStarted(message="Uploading file..."))
        slot = self.api.request_upload_url(name)
        self.logger.info(f"Upload slot for '{name}': asset={slot.asset.id} task={slot.task.id}")

        with source.open() as (stream, size):
            self.api.upload_file(
                slot.url,
                stream,
                size=size,
                mime_type=source.mime_type,
                on_progress=self._progress("upload", on_progress, 0.0, 0.5),
            )

        self._wait(slot.task, self._progress("import", on_progress, 0.5, 0.5))
        asset = self.api.get_asset(slot.asset.id)
        self.logger.info(f"Asset {asset.id} imported: size={asset.size}")
        self.event_bus.publish(AssetCreated(asset=asset))
        return asset

    def check_nft_normalize(self, asset: Asset) -> NormalizationPlan:
        normalize = self.config.normalize
        return plan_normalization(asset, normalize.constraint, normalize.min_720p_bitrate_bps)

    def nft_normalize(
        self,
        asset: Asset,
        on_progress: Optional[ProgressObserver] = None,
        plan: Optional[NormalizationPlan] = None,
    ) -> Asset:
        """Transcodes ``asset`` to fit the size limit, or returns it unchanged when that is not needed or not possible."""
        plan = plan or self.check_nft_normalize(asset)
        if not plan.possible:
            self.logger.warning(f"Asset {asset.id} ({asset.size} bytes) cannot be shrunk below the size limit")
            self.event_bus.publish(NormalizationSkipped(asset=asset, reason="too-large", possible=False))
            return asset
        if plan.profile is None:
            self.event_bus.publish(NormalizationSkipped(asset=asset, reason="within-limit"))
            return asset

        profile = plan.profile
        self.event_bus.publish(StepStarted(
            message=f"Transcoding asset to {profile.name} at {round(profile.bitrate / 1024)} kbps bitrate"
        ))
        new_asset, task = self.api.transcode_asset(asset.id, f"{asset.name} ({profile.name})", profile)
        self._wait(task, self._progress("transcode", on_progress))
        normalized = self.api.get_asset(new_asset.id)
        self.logger.info(f"Asset {asset.id} transcoded into {normalized.id} ({profile.name}, {profile.bitrate} bps)")
        self.event_bus.publish(AssetNormalized(source=asset, asset=normalized, profile=profile))
        return normalized

    def export_to_ipfs(
        self,
        asset_id: str,
        nft_metadata: MetadataInput = None,
        on_progress: Optional[ProgressObserver] = None,
    ) -> IpfsAddresses:
        metadata = parse_nft_metadata(nft_metadata)
        self.event_bus.publish(StepStarted(message="Starting export..."))
        task = self.api.export_asset(asset_id, metadata)
        task = self._wait(task, self._progress("export", on_progress))
        ipfs = task.ipfs if isinstance(task, ExportTask) else None
        if ipfs is None:
            raise TaskFailedError(task.type or "export", "export task completed without IPFS output", task_id=task.id)
        self.event_bus.publish(ExportFinished(asset_id=asset_id, ipfs=ipfs))
        return ipfs

    def mint(self, token_uri: str, contract_address: Optional[str] = None, to: Optional[str] = None) -> MintedNftInfo:
        if self.minter is None:
            raise ChainError("No Ethereum provider configured")
        self.event_bus.publish(StepStarted(message="Minting NFT..."))
        tx_hash = self.minter.mint_nft(token_uri, contract_address, to)
        self.logger.info(f"Mint transaction sent: {tx_hash}")
        info = self.minter.get_minted_nft_info(tx_hash, timeout=self.config.mint.receipt_timeout_seconds)
        self.event_bus.publish(NftMinted(info=info))
        return info

    # ------------------------------------------------------------------ #
    # Full flow
    # ------------------------------------------------------------------ #

    def create_nft(
        self,
        name: str,
        source: Union[FileSource, str],
        skip_normalize: bool = False,
        nft_metadata: MetadataInput = None,
        mint: bool = False,
        contract_address: Optional[str] = None,
        to: Optional[str] = None,
        confirm_transcode: Optional[ConfirmTranscode] = None,
    ) -> NftResult:
        metadata = parse_nft_metadata(nft_metadata)
        asset = self.create_asset(name, source)

        if not skip_normalize:
            plan = self.check_nft_normalize(asset)
            if plan.possible and plan.profile is not None:
                self.event_bus.publish(NormalizationRequired(asset=asset, profile=plan.profile))
                if confirm_transcode is None or confirm_transcode(asset, plan):
                    asset = self.nft_normalize(asset, plan=plan)
                else:
                    self.event_bus.publish(NormalizationSkipped(asset=asset, reason="declined"))
            else:
                asset = self.nft_normalize(asset, plan=plan)

        ipfs = self.export_to_ipfs(asset.id, metadata)

        minted = None
        if mint:
            if not ipfs.nft_metadata_url:
                raise TaskFailedError("export", "export task did not produce an NFT metadata URL")
            minted = self.mint(ipfs.nft_metadata_url, contract_address, to)
        else:
            self.event_bus.publish(MintSkipped(token_uri=ipfs.nft_metadata_url))
        return NftResult(asset=asset, ipfs=ipfs, minted=minted)
