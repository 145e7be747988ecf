# =============================================================================
# core/ledger.py  —  Hedera Ledger Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps one long-lived hiero SDK Client (operator account + key) and offers
#   the account and HTS token operations the tools expose:
#     - get_balance / get_account_info   (queries)
#     - transfer_hbar                    (crypto transfer)
#     - create_token / mint_token / burn_token / transfer_token   (HTS)
#     - get_token_info / create_nft / mint_nft                    (HTS)
#
# EVERY METHOD FOLLOWS THE SAME THREE STEPS:
#   1. Build the SDK request from the plain arguments
#   2. Execute it and wait for the receipt
#   3. Reshape the receipt into a plain dict
#   A receipt whose status is not SUCCESS raises DownstreamFailure carrying
#   the status name.
#
# THREADING:
#   The SDK is blocking.  Callers on the event loop use asyncio.to_thread().
# =============================================================================

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from hiero_sdk_python import (
    AccountId,
    Client,
    CryptoGetAccountBalanceQuery,
    Network,
    PrivateKey,
    ResponseCode,
    SupplyType,
    TokenBurnTransaction,
    TokenCreateTransaction,
    TokenId,
    TokenInfoQuery,
    TokenMintTransaction,
    TokenType,
    TransferTransaction,
)

from core.config import Settings
from core.errors import ConfigError, DownstreamFailure, InvalidArguments
from core.models import utc_timestamp

logger = logging.getLogger(__name__)

TINYBARS_PER_HBAR = 100_000_000
DEFAULT_TRANSFER_MEMO = "HBAR transfer via Hedera DeFi MCP"
MAX_NFT_METADATA_BYTES = 100


def hbar_to_tinybars(amount: str) -> int:
    """Convert a decimal HBAR string ("1.5") to tinybars (150000000)."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidArguments(f"Invalid HBAR amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise InvalidArguments(f"HBAR amount must be positive: {amount!r}")
    tinybars = value * TINYBARS_PER_HBAR
    if tinybars != tinybars.to_integral_value():
        raise InvalidArguments(f"HBAR amount has more than 8 decimals: {amount!r}")
    return int(tinybars)


def tinybars_to_hbar(tinybars: int) -> str:
    value = Decimal(tinybars) / TINYBARS_PER_HBAR
    return format(value.normalize(), "f") if value else "0"


def parse_token_units(amount: str, allow_zero: bool = False) -> int:
    """Parse a whole number of token base units."""
    try:
        value = int(str(amount).strip())
    except ValueError:
        raise InvalidArguments(f"Invalid token amount: {amount!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidArguments(f"Token amount must be positive: {amount!r}")
    return value


def _status_name(status: Any) -> str:
    try:
        return ResponseCode(status).name
    except ValueError:
        return str(status)


def _ensure_success(receipt: Any, what: str) -> None:
    if receipt.status != ResponseCode.SUCCESS:
        raise DownstreamFailure(f"{what} failed with status: {_status_name(receipt.status)}")


class HederaLedger:
    """Operator-bound client for the Hedera network."""

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self.network = settings.network
        self.operator_id = AccountId.from_string(settings.operator_id)
        try:
            self.operator_key = PrivateKey.from_string(settings.operator_key)
        except Exception as exc:
            raise ConfigError([f"HEDERA_OPERATOR_KEY: not a valid private key ({exc})"]) from exc
        if client is None:
            client = Client(Network(settings.network))
            client.set_operator(self.operator_id, self.operator_key)
            logger.info("Hedera client initialized network=%s", settings.network)
        self.client = client

    def close(self) -> None:
        self.client.close()

    def _submit(self, transaction: Any, what: str) -> tuple[Any, str]:
        transaction.freeze_with(self.client)
        transaction.sign(self.operator_key)
        transaction_id = str(transaction.transaction_id)
        receipt = transaction.execute(self.client)
        _ensure_success(receipt, what)
        return receipt, transaction_id

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def _query_balance(self, account_id: str) -> Any:
        account = AccountId.from_string(account_id)
        return CryptoGetAccountBalanceQuery().set_account_id(account).execute(self.client)

    def get_balance(self, account_id: str) -> dict[str, Any]:
        """HBAR balance of an account.

        The ``accountId`` in the result is the caller's string, unchanged.
        """
        balance = self._query_balance(account_id)
        tinybars = balance.hbars.to_tinybars()
        token_balances = balance.token_balances or {}
        return {
            "accountId": account_id,
            "balance": tinybars_to_hbar(tinybars),
            "balanceInTinybars": str(tinybars),
            "tokens": len(token_balances),
            "timestamp": utc_timestamp(),
        }

    def get_account_info(self, account_id: str) -> dict[str, Any]:
        balance = self._query_balance(account_id)
        tinybars = balance.hbars.to_tinybars()
        token_balances = balance.token_balances or {}
        return {
            "accountId": account_id,
            "balance": tinybars_to_hbar(tinybars),
            "balanceInTinybars": str(tinybars),
            "tokens": [
                {"tokenId": str(token_id), "balance": str(amount)}
                for token_id, amount in token_balances.items()
            ],
            "timestamp": utc_timestamp(),
        }

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------
    def transfer_hbar(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: str,
        memo: Optional[str] = None,
    ) -> dict[str, Any]:
        tinybars = hbar_to_tinybars(amount)
        transaction = (
            TransferTransaction()
            .add_hbar_transfer(AccountId.from_string(from_account_id), -tinybars)
            .add_hbar_transfer(AccountId.from_string(to_account_id), tinybars)
            .set_transaction_memo(memo or DEFAULT_TRANSFER_MEMO)
        )
        receipt, transaction_id = self._submit(transaction, "Transaction")
        return {
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "fromAccountId": from_account_id,
            "toAccountId": to_account_id,
            "amount": tinybars_to_hbar(tinybars),
            "memo": memo,
            "timestamp": utc_timestamp(),
        }

    # -------------------------------------------------------------------------
    # Hedera Token Service
    # -------------------------------------------------------------------------
    def create_token(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_supply: str,
        treasury: str,
    ) -> dict[str, Any]:
        if decimals < 0:
            raise InvalidArguments("decimals must not be negative")
        supply = parse_token_units(initial_supply, allow_zero=True)
        transaction = (
            TokenCreateTransaction()
            .set_token_name(name)
            .set_token_symbol(symbol)
            .set_decimals(decimals)
            .set_initial_supply(supply)
            .set_treasury_account_id(AccountId.from_string(treasury))
            .set_admin_key(self.operator_key)
            .set_supply_key(self.operator_key)
        )
        receipt, transaction_id = self._submit(transaction, "Token creation")
        if receipt.token_id is None:
            raise DownstreamFailure("Token ID not found in receipt")
        return {
            "tokenId": str(receipt.token_id),
            "name": name,
            "symbol": symbol,
            "decimals": decimals,
            "initialSupply": str(supply),
            "treasury": treasury,
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "timestamp": utc_timestamp(),
        }

    def mint_token(self, token_id: str, amount: str, recipient: str) -> dict[str, Any]:
        units = parse_token_units(amount)
        transaction = (
            TokenMintTransaction()
            .set_token_id(TokenId.from_string(token_id))
            .set_amount(units)
        )
        receipt, transaction_id = self._submit(transaction, "Token minting")
        return {
            "tokenId": token_id,
            "amount": str(units),
            # Minted units land in the treasury; recipient is informational.
            "recipient": recipient,
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "timestamp": utc_timestamp(),
        }

    def burn_token(self, token_id: str, amount: str) -> dict[str, Any]:
        units = parse_token_units(amount)
        transaction = (
            TokenBurnTransaction()
            .set_token_id(TokenId.from_string(token_id))
            .set_amount(units)
        )
        receipt, transaction_id = self._submit(transaction, "Token burning")
        return {
            "tokenId": token_id,
            "amount": str(units),
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "timestamp": utc_timestamp(),
        }

    def transfer_token(
        self,
        token_id: str,
        from_account_id: str,
        to_account_id: str,
        amount: str,
    ) -> dict[str, Any]:
        units = parse_token_units(amount)
        token = TokenId.from_string(token_id)
        transaction = (
            TransferTransaction()
            .add_token_transfer(token, AccountId.from_string(from_account_id), -units)
            .add_token_transfer(token, AccountId.from_string(to_account_id), units)
        )
        receipt, transaction_id = self._submit(transaction, "Token transfer")
        return {
            "tokenId": token_id,
            "fromAccountId": from_account_id,
            "toAccountId": to_account_id,
            "amount": str(units),
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "timestamp": utc_timestamp(),
        }

    def get_token_info(self, token_id: str) -> dict[str, Any]:
        """Metadata of an HTS token; keys are reported as present or not."""
        info = TokenInfoQuery().set_token_id(TokenId.from_string(token_id)).execute(self.client)

        def key_state(key: Any) -> str:
            return "Present" if key else "None"

        return {
            "tokenId": str(info.token_id),
            "name": info.name,
            "symbol": info.symbol,
            "decimals": info.decimals,
            "totalSupply": str(info.total_supply or 0),
            "treasury": str(info.treasury) if info.treasury else None,
            "adminKey": key_state(info.admin_key),
            "kycKey": key_state(info.kyc_key),
            "freezeKey": key_state(info.freeze_key),
            "supplyKey": key_state(info.supply_key),
            "wipeKey": key_state(info.wipe_key),
            "pauseKey": key_state(info.pause_key),
            "memo": info.memo or "",
            "timestamp": utc_timestamp(),
        }

    # -------------------------------------------------------------------------
    # Non-fungible tokens
    # -------------------------------------------------------------------------
    def create_nft(self, name: str, symbol: str, treasury: str) -> dict[str, Any]:
        transaction = (
            TokenCreateTransaction()
            .set_token_name(name)
            .set_token_symbol(symbol)
            .set_token_type(TokenType.NON_FUNGIBLE_UNIQUE)
            .set_supply_type(SupplyType.INFINITE)
            .set_decimals(0)
            .set_initial_supply(0)
            .set_treasury_account_id(AccountId.from_string(treasury))
            .set_admin_key(self.operator_key)
            .set_supply_key(self.operator_key)
        )
        receipt, transaction_id = self._submit(transaction, "NFT token creation")
        if receipt.token_id is None:
            raise DownstreamFailure("Token ID not found in receipt")
        return {
            "tokenId": str(receipt.token_id),
            "name": name,
            "symbol": symbol,
            "treasury": treasury,
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "timestamp": utc_timestamp(),
        }

    def mint_nft(self, token_id: str, metadata: str) -> dict[str, Any]:
        """Mint one NFT carrying ``metadata`` (UTF-8, at most 100 bytes)."""
        payload = metadata.encode("utf-8")
        if not payload or len(payload) > MAX_NFT_METADATA_BYTES:
            raise InvalidArguments(f"metadata must be 1 to {MAX_NFT_METADATA_BYTES} bytes")
        transaction = (
            TokenMintTransaction()
            .set_token_id(TokenId.from_string(token_id))
            .set_metadata([payload])
        )
        receipt, transaction_id = self._submit(transaction, "NFT minting")
        return {
            "tokenId": token_id,
            "serialNumbers": [str(n) for n in (receipt.serial_numbers or [])],
            "metadata": metadata,
            "transactionId": transaction_id,
            "status": _status_name(receipt.status),
            "timestamp": utc_timestamp(),
        }
