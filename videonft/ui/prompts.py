"""Interactive prompts for values missing from the command line."""
import json
import re
from pathlib import Path
from typing import Optional
import typer
from videonft.domain.models import Asset, NormalizationPlan

API_KEY_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
DEFAULT_NFT_IMAGE = "ipfs://bafkreidmlgpjoxgvefhid2xjyqjnpmjjmq47yyrcm6ifvoovclty7sm4wm"


def validate_api_key(value: str) -> str:
    value = value.strip()
    if not API_KEY_PATTERN.match(value):
        raise typer.BadParameter("Not a valid API key")
    return value


def validate_existing_file(value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_file():
        raise typer.BadParameter("File does not exist")
    return path


def validate_json_object(value: str) -> str:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON: {e}")
    if not isinstance(parsed, dict):
        raise typer.BadParameter("Invalid JSON: expected an object")
    return value


def prompt_api_key() -> str:
    api_key = typer.prompt(
        "Enter your Livepeer API key (learn more at http://bit.ly/lp-api-key)",
        hide_input=True,
        value_proc=validate_api_key,
    )
    typer.echo("Tip: You can set the LP_API_KEY environment variable to avoid this prompt.")
    return api_key


def prompt_filename() -> Path:
    path = typer.prompt("What file do you want to use?", value_proc=validate_existing_file)
    typer.echo("You can also send the filename as an argument to this command.")
    return path


def prompt_asset_name(default: str) -> str:
    return typer.prompt("What name do you want to give to your NFT?", default=default)


def default_nft_metadata(asset_name: str) -> str:
    return json.dumps(
        {
            "name": asset_name,
            "description": f"Livepeer video from asset {json.dumps(asset_name)}",
            "image": DEFAULT_NFT_IMAGE,
            "properties": {},
        },
        indent=2,
    )


def prompt_nft_metadata(asset_name: str) -> Optional[str]:
    """Offers to edit the NFT metadata in $EDITOR; None keeps the service defaults."""
    if not typer.confirm("Would you like to customize the NFT metadata?", default=False):
        return None
    typer.echo(" - The `animation_url` and `properties.video` fields will be populated with the exported video URL.")
    typer.echo(" - Set any field to `null` to delete it.")

    text = default_nft_metadata(asset_name)
    while True:
        edited = typer.edit(text, extension=".json")
        if edited is None:
            return None
        try:
            return validate_json_object(edited)
        except typer.BadParameter as e:
            typer.secho(str(e.message), fg=typer.colors.RED, err=True)
            text = edited


def confirm_transcode(asset: Asset, plan: NormalizationPlan) -> bool:
    typer.echo("What do you want to do?")
    typer.echo(" - Transcode it to a lower quality so OpenSea is able to preview")
    typer.echo(" - Mint it as is (should work in any other platform that uses the NFT file)")
    return typer.confirm(f"Transcode to {plan.profile.name}?", default=True)
