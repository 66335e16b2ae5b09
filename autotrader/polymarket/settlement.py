"""
On-chain Settlement Layer (Polygon)

- deposit: USDC.e transfer from the signing wallet to the venue funder wallet
- redeem: ConditionalTokens.redeemPositions for standard markets
- redeem_neg_risk: NegRiskAdapter.redeemPositions for neg-risk markets

Every call waits for the receipt and raises SettlementError unless the
transaction succeeded.
"""

from decimal import Decimal
from typing import List, Optional, Sequence
import asyncio
import logging

from web3 import Web3

from autotrader.trading.config import VenueSettings
from autotrader.trading.models import USDC_DECIMALS, to_base_units

logger = logging.getLogger(__name__)

CTF_ADDRESS = "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045"
NEG_RISK_ADAPTER_ADDRESS = "0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296"
USDC_ADDRESS = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"  # USDC.e
PARENT_COLLECTION_ID = b"\x00" * 32
RECEIPT_TIMEOUT = 120

ERC20_ABI = [
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

CTF_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "collateralToken", "type": "address"},
            {"internalType": "bytes32", "name": "parentCollectionId", "type": "bytes32"},
            {"internalType": "bytes32", "name": "conditionId", "type": "bytes32"},
            {"internalType": "uint256[]", "name": "indexSets", "type": "uint256[]"}
        ],
        "name": "redeemPositions",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

NEG_RISK_ADAPTER_ABI = [
    {
        "inputs": [
            {"internalType": "bytes32", "name": "conditionId", "type": "bytes32"},
            {"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}
        ],
        "name": "redeemPositions",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]


class SettlementError(Exception):
    """Raised when an on-chain settlement call fails."""
    pass


class SettlementClient:
    """Signs and sends settlement transactions from the configured wallet."""

    def __init__(self, w3: Web3, private_key: str, deposit_address: Optional[str] = None):
        self._w3 = w3
        self._account = w3.eth.account.from_key(private_key)
        self.address = self._account.address
        self.deposit_address = Web3.to_checksum_address(deposit_address) if deposit_address else None
        self._usdc = w3.eth.contract(address=Web3.to_checksum_address(USDC_ADDRESS), abi=ERC20_ABI)
        self._ctf = w3.eth.contract(address=Web3.to_checksum_address(CTF_ADDRESS), abi=CTF_ABI)
        self._neg_risk = w3.eth.contract(
            address=Web3.to_checksum_address(NEG_RISK_ADAPTER_ADDRESS), abi=NEG_RISK_ADAPTER_ABI
        )

    @classmethod
    def from_settings(cls, settings: VenueSettings) -> "SettlementClient":
        w3 = Web3(Web3.HTTPProvider(settings.rpc_url))
        return cls(w3, settings.private_key, deposit_address=settings.proxy_address)

    def _send(self, fn, label: str) -> str:
        """Build, sign and send a contract call, then wait for the receipt."""
        try:
            tx = fn.build_transaction({
                "chainId": self._w3.eth.chain_id,
                "from": self.address,
                "nonce": self._w3.eth.get_transaction_count(self.address),
            })
            signed_tx = self._account.sign_transaction(tx)
            tx_hash = self._w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            logger.info(f"{label} tx sent: {tx_hash.hex()}")
            receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
        except Exception as e:
            raise SettlementError(f"{label} failed: {e}") from e

        if receipt["status"] != 1:
            raise SettlementError(f"{label} reverted: {tx_hash.hex()}")

        logger.info(f"{label} confirmed in block {receipt['blockNumber']}")
        return tx_hash.hex()

    def wallet_usdc_balance(self) -> Decimal:
        raw = self._usdc.functions.balanceOf(self.address).call()
        return Decimal(raw) / (Decimal(10) ** USDC_DECIMALS)

    def deposit_sync(self, amount: Decimal) -> str:
        if self.deposit_address is None:
            raise SettlementError("No deposit address configured")
        if self.deposit_address == self.address:
            raise SettlementError("Deposit address is the signing wallet; nothing to move")

        available = self.wallet_usdc_balance()
        if available < amount:
            raise SettlementError(f"Insufficient wallet USDC for deposit: ${available} < ${amount}")

        fn = self._usdc.functions.transfer(self.deposit_address, to_base_units(amount))
        return self._send(fn, f"Deposit ${amount}")

    def redeem_sync(self, condition_id: str, index_sets: Sequence[int]) -> str:
        fn = self._ctf.functions.redeemPositions(
            Web3.to_checksum_address(USDC_ADDRESS),
            PARENT_COLLECTION_ID,
            Web3.to_bytes(hexstr=condition_id),
            list(index_sets),
        )
        return self._send(fn, f"Redeem {condition_id[:12]}")

    def redeem_neg_risk_sync(self, condition_id: str, amounts: Sequence[int]) -> str:
        fn = self._neg_risk.functions.redeemPositions(
            Web3.to_bytes(hexstr=condition_id),
            list(amounts),
        )
        return self._send(fn, f"Neg-risk redeem {condition_id[:12]}")

    async def deposit(self, amount: Decimal) -> str:
        """Move collateral into the venue funder wallet. Returns the tx hash."""
        return await asyncio.to_thread(self.deposit_sync, amount)

    async def redeem(self, condition_id: str, index_sets: List[int]) -> str:
        return await asyncio.to_thread(self.redeem_sync, condition_id, index_sets)

    async def redeem_neg_risk(self, condition_id: str, amounts: List[int]) -> str:
        return await asyncio.to_thread(self.redeem_neg_risk_sync, condition_id, amounts)
