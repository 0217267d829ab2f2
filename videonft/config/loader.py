import os
from pathlib import Path
from typing import Any, Dict, Optional

import pydantic
import yaml
from dotenv import load_dotenv

from videonft.config.models import AppConfig
from videonft.domain.errors import ValidationError

DEFAULT_CONFIG_PATH = Path("conf/video-nft.yaml")

# environment variable -> (section, field)
ENV_OVERRIDES = {
    "LP_API_KEY": ("api", "api_key"),
    "LP_API_ENDPOINT": ("api", "endpoint"),
    "LP_RPC_URL": ("mint", "rpc_url"),
    "LP_CHAIN_ID": ("mint", "chain_id"),
    "LP_CONTRACT_ADDRESS": ("mint", "contract_address"),
    "LP_PRIVATE_KEY": ("mint", "private_key"),
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ValidationError(f"Failed to read config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping at the top level")
    return data


def load_config(config_path: Optional[Path] = None, use_env: bool = True) -> AppConfig:
    """Loads the YAML config (if present) and applies LP_* environment overrides."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    data = _read_yaml(path) if path.exists() else {}

    if use_env:
        load_dotenv()
        for var, (section, field) in ENV_OVERRIDES.items():
            value = os.environ.get(var)
            if value:
                data.setdefault(section, {})
                if data[section] is None:
                    data[section] = {}
                data[section][field] = value

    try:
        return AppConfig(**data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid configuration in {path}: {e}") from e
