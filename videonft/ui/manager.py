import json
import logging
from typing import Optional
from rich.console import Console
from rich.markup import escape
from videonft.infrastructure.event_bus import EventBus
from videonft.ui.state import UIState
from videonft.domain.events import (
    AssetCreated, AssetNormalized, ExportFinished, MintSkipped, NftMinted,
    NormalizationRequired, NormalizationSkipped, StepStarted, TaskProgressUpdated
)

MINT_PAGE_URL = "https://livepeer.com/mint-nft"
FILE_LIMIT_INFO_URL = "http://bit.ly/opensea-file-limit"

class UIManager:
    """Subscribes to EventBus and prints numbered steps to the console."""

    def __init__(self, bus: EventBus, state: UIState, console: Optional[Console] = None):
        self.bus = bus
        self.state = state
        self.console = console or Console()
        self.logger = logging.getLogger(__name__)
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(StepStarted, self.on_step_started)
        self.bus.subscribe(TaskProgressUpdated, self.on_progress)
        self.bus.subscribe(AssetCreated, self.on_asset_created)
        self.bus.subscribe(NormalizationRequired, self.on_normalization_required)
        self.bus.subscribe(NormalizationSkipped, self.on_normalization_skipped)
        self.bus.subscribe(AssetNormalized, self.on_asset_normalized)
        self.bus.subscribe(ExportFinished, self.on_export_finished)
        self.bus.subscribe(NftMinted, self.on_nft_minted)
        self.bus.subscribe(MintSkipped, self.on_mint_skipped)

    def print_step(self, message: str):
        step = self.state.next_step(message)
        self.console.print(f"{step}. {message}", highlight=False, markup=False, soft_wrap=True)

    def warn(self, message: str):
        self.state.warnings.append(message)
        self.console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False, soft_wrap=True)

    def on_step_started(self, event: StepStarted):
        self.print_step(event.message)

    def on_progress(self, event: TaskProgressUpdated):
        if self.state.record_progress(event.stage, event.progress):
            self.console.print(f" - progress: {event.progress * 100:.0f}%", highlight=False, markup=False, soft_wrap=True)

    def on_asset_created(self, event: AssetCreated):
        self.state.asset = event.asset
        self.logger.debug(f"UI: asset {event.asset.id} created")

    def on_normalization_required(self, event: NormalizationRequired):
        self.console.print(
            f"File is too big for OpenSea 100MB limit (learn more at {FILE_LIMIT_INFO_URL}).",
            highlight=False,
            markup=False,
            soft_wrap=True,
        )

    def on_normalization_skipped(self, event: NormalizationSkipped):
        if not event.possible:
            self.warn(
                "Asset is larger than OpenSea file limit and can't be transcoded down since it's too large. "
                "It will still be stored in IPFS and referenced in the NFT metadata, so a proper application "
                f"is still able to play it back. For more information check {FILE_LIMIT_INFO_URL}"
            )

    def on_asset_normalized(self, event: AssetNormalized):
        self.state.asset = event.asset

    def on_export_finished(self, event: ExportFinished):
        self.state.ipfs = event.ipfs
        result = json.dumps(event.ipfs.model_dump(by_alias=True), indent=2)
        self.console.print(f"Export successful! Result: \n{result}", highlight=False, markup=False, soft_wrap=True)

    def on_nft_minted(self, event: NftMinted):
        self.state.minted = event.info
        info = event.info
        lines = [f"NFT minted! Contract: {info.contract_address}", f"Transaction: {info.transaction_hash}"]
        if info.token_id is not None:
            lines.append(f"Token ID: {info.token_id}")
        if info.opensea:
            lines.append(f"OpenSea: {info.opensea.token_url or info.opensea.contract_url}")
        self.print_step("\n".join(lines))

    def on_mint_skipped(self, event: MintSkipped):
        if event.token_uri:
            self.print_step(f"Mint your NFT at:\n{MINT_PAGE_URL}?tokenUri={event.token_uri}")
