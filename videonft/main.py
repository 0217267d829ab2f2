import json
import logging
import typer
from pathlib import Path
from typing import Optional

from videonft.config.loader import load_config
from videonft.config.models import AppConfig
from videonft.domain.errors import ValidationError, VideoNftError
from videonft.infrastructure.api import VodApiClient
from videonft.infrastructure.event_bus import EventBus
from videonft.infrastructure.logging import setup_logging
from videonft.infrastructure.minter import Web3Minter
from videonft.infrastructure.uploader import PathOnDisk
from videonft.pipeline.orchestrator import Orchestrator, parse_nft_metadata
from videonft.ui.manager import UIManager
from videonft.ui.state import UIState
from videonft.ui import prompts

EMPTY_METADATA = "{}"

app = typer.Typer(help="Video NFT - mint a video NFT in 1 command with Livepeer.")


def read_nft_metadata(value: str) -> Optional[str]:
    """Accepts inline JSON or a path to a JSON file; returns None for the empty default."""
    path = Path(value)
    try:
        if path.is_file():
            value = path.read_text()
    except OSError:
        pass  # too long to be a path, treat as inline JSON
    if value.strip() == EMPTY_METADATA:
        return None
    parse_nft_metadata(value)
    return value


def build_minter(config: AppConfig) -> Web3Minter:
    if not config.mint.rpc_url or config.mint.chain_id is None:
        raise ValidationError("Minting requires --rpc-url and --chain-id (or LP_RPC_URL / LP_CHAIN_ID)")
    return Web3Minter.from_rpc(config.mint.rpc_url, config.mint.chain_id, config.mint.private_key)


@app.command()
def mint(
    filename: Optional[Path] = typer.Argument(None, help="File to upload as an NFT"),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="LP_API_KEY", help="API key to use for Livepeer API"),
    asset_name: Optional[str] = typer.Option(None, "--asset-name", help="Name for the asset created in Livepeer.com API"),
    nft_metadata: str = typer.Option(EMPTY_METADATA, "--nft-metadata", help="Additional JSON metadata (inline or file path) to override the generated NFT metadata"),
    api_endpoint: Optional[str] = typer.Option(None, "--api-endpoint", envvar="LP_API_ENDPOINT", help="The endpoint to use for the Livepeer API"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    skip_normalize: bool = typer.Option(False, "--skip-normalize", help="Never transcode the asset to fit the marketplace size limit"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Transcode oversized assets without asking"),
    interactive: bool = typer.Option(True, "--interactive/--no-interactive", help="Prompt for missing values"),
    do_mint: Optional[bool] = typer.Option(None, "--mint/--no-mint", help="Mint the NFT after exporting to IPFS"),
    chain_id: Optional[str] = typer.Option(None, "--chain-id", envvar="LP_CHAIN_ID", help="Chain ID to mint on (e.g. 137 or 0x89)"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", envvar="LP_RPC_URL", help="JSON-RPC endpoint of the chain"),
    contract: Optional[str] = typer.Option(None, "--contract", help="NFT contract address (defaults to the built-in chain's)"),
    to: Optional[str] = typer.Option(None, "--to", help="Recipient of the NFT (defaults to the sender)"),
    private_key: Optional[str] = typer.Option(None, "--private-key", envvar="LP_PRIVATE_KEY", help="Key used to sign the mint transaction"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for video-nft.log"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """1-command mint a video NFT."""
    try:
        config = load_config(config_path)
        # CLI overrides
        if api_key: config.api.api_key = api_key
        if api_endpoint: config.api.endpoint = api_endpoint.rstrip("/")
        if skip_normalize: config.normalize.skip = True
        if do_mint is not None: config.mint.enabled = do_mint
        if chain_id: config.mint.chain_id = chain_id
        if rpc_url: config.mint.rpc_url = rpc_url
        if contract: config.mint.contract_address = contract
        if to: config.mint.to = to
        if private_key: config.mint.private_key = private_key
        if debug: config.debug = True

        logger = setup_logging(log_dir, debug=config.debug)
        logger.info(f"video-nft started: endpoint={config.api.endpoint}, mint={config.mint.enabled}")

        if filename is not None and not filename.is_file():
            raise ValidationError(f"File {filename} does not exist")
        metadata = read_nft_metadata(nft_metadata)
        if metadata is not None:
            typer.echo(f"Using metadata:\n{json.dumps(json.loads(metadata), indent=2)}")

        if not config.api.api_key:
            if not interactive:
                raise ValidationError("Missing API key: pass --api-key or set LP_API_KEY")
            config.api.api_key = prompts.prompt_api_key()
        if filename is None:
            if not interactive:
                raise ValidationError("Missing filename")
            filename = prompts.prompt_filename()
        if not asset_name:
            asset_name = prompts.prompt_asset_name(filename.name) if interactive else filename.name
        if metadata is None and interactive:
            metadata = prompts.prompt_nft_metadata(asset_name)

        minter = build_minter(config) if config.mint.enabled else None

        bus = EventBus()
        ui_state = UIState()
        UIManager(bus, ui_state)

        api = VodApiClient(
            api_key=config.api.api_key,
            endpoint=config.api.endpoint,
            timeout=config.api.timeout_seconds,
            upload_timeout=config.api.upload_timeout_seconds,
        )
        orchestrator = Orchestrator(config=config, api=api, event_bus=bus, minter=minter)

        confirm = None if (yes or not interactive) else prompts.confirm_transcode
        result = orchestrator.create_nft(
            asset_name,
            PathOnDisk(filename),
            skip_normalize=config.normalize.skip,
            nft_metadata=metadata,
            mint=config.mint.enabled,
            contract_address=config.mint.contract_address,
            to=config.mint.to,
            confirm_transcode=confirm,
        )
        logger.info(f"video-nft finished: asset={result.asset.id} tokenUri={result.ipfs.nft_metadata_url}")

    except (KeyboardInterrupt, typer.Abort):
        typer.echo("\nInterrupted by user")
        raise typer.Exit(code=130)

    except VideoNftError as e:
        logging.getLogger("videonft").debug("Pipeline failed", exc_info=True)
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except Exception as e:
        logging.getLogger("videonft").exception("Unexpected failure")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
