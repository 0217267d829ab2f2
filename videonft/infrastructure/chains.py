"""Ethereum-compatible chains with a pre-deployed video NFT contract.

A built-in chain does not need a contract address on mint: the default
contract below is used. Custom chains work as well, but the caller has to
supply the contract address and gets no marketplace links.
"""
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field
from videonft.domain.errors import ValidationError

ChainId = Union[int, str]


class NativeCurrency(BaseModel):
    symbol: str
    decimals: int = 18


class ChainSpec(BaseModel):
    chain_id: str
    chain_name: str
    rpc_urls: List[str]
    native_currency: NativeCurrency
    block_explorer_urls: List[str] = Field(default_factory=list)
    icon_urls: List[str] = Field(default_factory=list)


class OpenSeaInfo(BaseModel):
    base_url: str
    chain_name: str

    def contract_url(self, contract_address: str) -> str:
        return f"{self.base_url}/assets?search%5Bquery%5D={contract_address}"

    def token_url(self, contract_address: str, token_id: int) -> str:
        return f"{self.base_url}/assets/{self.chain_name}/{contract_address}/{token_id}"


class BuiltinChainInfo(BaseModel):
    spec: ChainSpec
    default_contract: str
    opensea: Optional[OpenSeaInfo] = None


BUILTIN_CHAINS: Dict[str, BuiltinChainInfo] = {
    "0x89": BuiltinChainInfo(
        spec=ChainSpec(
            chain_id="0x89",
            chain_name="Polygon Mainnet",
            rpc_urls=["https://polygon-rpc.com/"],
            native_currency=NativeCurrency(symbol="MATIC"),
            block_explorer_urls=["https://polygonscan.com"],
            icon_urls=["https://cloudflare-ipfs.com/ipfs/bafkreiduv5pzw233clfjuahv5lkq2xvjomapou7yarik2lynu3bjm2xki4"],
        ),
        default_contract="0x69C53E7b8c41bF436EF5a2D81DB759Dc8bD83b5F",
        opensea=OpenSeaInfo(base_url="https://opensea.io", chain_name="matic"),
    ),
    "0x13881": BuiltinChainInfo(
        spec=ChainSpec(
            chain_id="0x13881",
            chain_name="Polygon Testnet",
            rpc_urls=["https://matic-mumbai.chainstacklabs.com"],
            native_currency=NativeCurrency(symbol="MATIC"),
            block_explorer_urls=["https://mumbai.polygonscan.com"],
        ),
        default_contract="0xA4E1d8FE768d471B048F9d73ff90ED8fcCC03643",
        opensea=OpenSeaInfo(base_url="https://testnets.opensea.io", chain_name="mumbai"),
    ),
}


def to_number_chain_id(chain_id: ChainId) -> int:
    """Accepts 137, "137" or "0x89" and returns 137."""
    if isinstance(chain_id, bool):
        raise ValidationError(f"Invalid chain ID: {chain_id!r}")
    if isinstance(chain_id, int):
        value = chain_id
    else:
        text = str(chain_id).strip().lower()
        try:
            value = int(text, 16) if text.startswith("0x") else int(text)
        except ValueError:
            raise ValidationError(f"Invalid chain ID: {chain_id!r}") from None
    if value <= 0:
        raise ValidationError(f"Invalid chain ID: {chain_id!r}")
    return value


def to_hex_chain_id(chain_id: ChainId) -> str:
    return hex(to_number_chain_id(chain_id))


def is_chain_builtin(chain_id: ChainId) -> bool:
    return to_hex_chain_id(chain_id) in BUILTIN_CHAINS


def list_builtin_chains() -> List[str]:
    return list(BUILTIN_CHAINS)


def get_builtin_chain(chain_id: Optional[ChainId]) -> Optional[BuiltinChainInfo]:
    if chain_id is None:
        return None
    return BUILTIN_CHAINS.get(to_hex_chain_id(chain_id))
