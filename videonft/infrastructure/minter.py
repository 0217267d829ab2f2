import logging
from typing import Any, Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception
from web3.logs import DISCARD

from videonft.domain.errors import ChainError, ValidationError
from videonft.domain.models import MintedNftInfo, OpenSeaLinks
from videonft.infrastructure.chains import ChainId, get_builtin_chain, to_hex_chain_id

# Interface the NFT contract must implement:
#   function mint(address owner, string tokenURI) returns (uint256)
#   event Mint(address indexed sender, address indexed owner, string tokenURI, uint256 tokenId)
VIDEO_NFT_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "sender", "type": "address"},
            {"indexed": True, "internalType": "address", "name": "owner", "type": "address"},
            {"indexed": False, "internalType": "string", "name": "tokenURI", "type": "string"},
            {"indexed": False, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
        ],
        "name": "Mint",
        "type": "event",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "owner", "type": "address"},
            {"internalType": "string", "name": "tokenURI", "type": "string"},
        ],
        "name": "mint",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class Web3Minter:
    """Mints video NFTs on an Ethereum-compatible chain through web3.py.

    ``chain_id`` is the chain the minter was created for; minting fails if
    the provider turns out to be connected to a different one. Create a new
    minter when switching chains.
    """

    def __init__(self, web3: Web3, chain_id: ChainId, account: Optional[Any] = None):
        self.web3 = web3
        self.chain_id = to_hex_chain_id(chain_id)
        self.account = account
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_rpc(cls, rpc_url: str, chain_id: ChainId, private_key: Optional[str] = None, timeout: float = 60.0) -> "Web3Minter":
        web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        account = None
        if private_key:
            try:
                account = Account.from_key(private_key)
            except (ValueError, TypeError) as e:
                raise ValidationError(f"Invalid private key: {e}") from None
        return cls(web3, chain_id, account)

    def _contract(self, address: str):
        try:
            checksum = Web3.to_checksum_address(address)
        except ValueError as e:
            raise ChainError(f"Invalid contract address {address}: {e}") from e
        return self.web3.eth.contract(address=checksum, abi=VIDEO_NFT_ABI)

    def _check_chain(self):
        try:
            current = to_hex_chain_id(self.web3.eth.chain_id)
        except (Web3Exception, OSError, ValueError) as e:
            raise ChainError(f"Failed to query chain ID: {e}") from e
        if current != self.chain_id:
            raise ChainError(f"Inconsistent chain ID: created for {self.chain_id} but found {current}")

    def _sender(self) -> str:
        if self.account is not None:
            return self.account.address
        default = self.web3.eth.default_account
        if default:
            return default
        try:
            accounts = self.web3.eth.accounts
        except (Web3Exception, OSError, ValueError):
            accounts = []
        if not accounts:
            raise ChainError("No signer configured: provide a private key or an unlocked node account")
        return accounts[0]

    def resolve_contract_address(self, contract_address: Optional[str] = None) -> str:
        if contract_address:
            return contract_address
        chain = get_builtin_chain(self.chain_id)
        if chain is None:
            raise ChainError(f"No contract address provided and chain {self.chain_id} is not built-in")
        return chain.default_contract

    def mint_nft(self, token_uri: str, contract_address: Optional[str] = None, to: Optional[str] = None) -> str:
        """Sends the ``mint`` transaction and returns its hash (not yet confirmed)."""
        address = self.resolve_contract_address(contract_address)
        self._check_chain()
        contract = self._contract(address)
        sender = self._sender()
        owner = to or sender

        self.logger.info(f"Minting NFT on {self.chain_id} contract={address} owner={owner} tokenUri={token_uri}")
        mint_call = contract.functions.mint(owner, token_uri)
        try:
            if self.account is None:
                tx_hash = mint_call.transact({"from": sender})
            else:
                tx = mint_call.build_transaction({
                    "from": sender,
                    "chainId": int(self.chain_id, 16),
                    "nonce": self.web3.eth.get_transaction_count(sender),
                })
                signed = self.account.sign_transaction(tx)
                raw = getattr(signed, "raw_transaction", None) or signed.rawTransaction
                tx_hash = self.web3.eth.send_raw_transaction(raw)
        except (Web3Exception, ValueError) as e:
            raise ChainError(f"Mint transaction rejected: {e}") from e
        return Web3.to_hex(tx_hash)

    def get_minted_nft_info(self, tx_hash: str, timeout: float = 300.0) -> MintedNftInfo:
        """Waits for the mint transaction and extracts the token ID from its ``Mint`` event."""
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as e:
            raise ChainError(f"Transaction {tx_hash} not confirmed after {timeout:.0f}s") from e
        except (Web3Exception, ValueError) as e:
            raise ChainError(f"Failed to fetch receipt for {tx_hash}: {e}") from e

        if receipt["status"] == 0:
            raise ChainError(f"Mint transaction {tx_hash} reverted")

        contract_address = receipt["to"]
        events = self._contract(contract_address).events.Mint().process_receipt(receipt, errors=DISCARD)
        token_id = int(events[0]["args"]["tokenId"]) if events else None

        info = MintedNftInfo(contract_address=contract_address, transaction_hash=tx_hash, token_id=token_id)
        chain = get_builtin_chain(self.chain_id)
        if chain and chain.opensea:
            info.opensea = OpenSeaLinks(
                contract_url=chain.opensea.contract_url(contract_address),
                token_url=chain.opensea.token_url(contract_address, token_id) if token_id is not None else None,
            )
        return info
