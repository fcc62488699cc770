"""Ledger collaborator: everything the vesting client reads from the chain."""

import logging
from typing import List, Optional, Protocol, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import DataSliceOpts
from solders.hash import Hash
from solders.pubkey import Pubkey

from token_vesting_svm.codec import decode_u64
from token_vesting_svm.errors import AccountLookupFailed, MalformedBuffer

logger = logging.getLogger(__name__)

# SPL token account layout: mint (32) | owner (32) | amount (u64) | ...
TOKEN_ACCOUNT_AMOUNT_OFFSET = 64


class LedgerClient(Protocol):
    def get_account_bytes(self, address: Pubkey) -> Optional[bytes]:
        ...

    def get_multiple_account_bytes(self, addresses: Sequence[Pubkey]) -> List[Optional[bytes]]:
        ...

    def get_recent_block_reference(self) -> Hash:
        ...

    def get_mint_decimals(self, mint: Pubkey) -> int:
        ...

    def get_token_account_balance(self, account: Pubkey) -> Optional[int]:
        ...

    def get_program_account_addresses(self, program_id: Pubkey) -> List[Pubkey]:
        ...


def token_account_amount(data: bytes) -> int:
    """Amount field of a raw SPL token account."""
    amount, _ = decode_u64(data, TOKEN_ACCOUNT_AMOUNT_OFFSET)
    return amount


class RpcLedgerClient:
    """LedgerClient backed by a solana-py JSON-RPC client."""

    # getMultipleAccounts accepts at most 100 keys per request
    MAX_MULTIPLE_ACCOUNTS = 100

    def __init__(self, client: Client, commitment: Commitment = Confirmed):
        self.client = client
        self.commitment = commitment

    @classmethod
    def from_endpoint(cls, endpoint: str, commitment: Commitment = Confirmed) -> "RpcLedgerClient":
        return cls(Client(endpoint, commitment=commitment), commitment)

    def get_account_bytes(self, address: Pubkey) -> Optional[bytes]:
        logger.debug("Fetching account %s", address)
        try:
            resp = self.client.get_account_info(address, commitment=self.commitment)
        except (SolanaRpcException, RPCException) as exc:
            raise AccountLookupFailed(f"Failed to fetch account {address}: {exc}") from exc
        if resp.value is None:
            return None
        return bytes(resp.value.data)

    def get_multiple_account_bytes(self, addresses: Sequence[Pubkey]) -> List[Optional[bytes]]:
        results: List[Optional[bytes]] = []
        for start in range(0, len(addresses), self.MAX_MULTIPLE_ACCOUNTS):
            chunk = list(addresses[start:start + self.MAX_MULTIPLE_ACCOUNTS])
            logger.debug("Fetching %d accounts", len(chunk))
            try:
                resp = self.client.get_multiple_accounts(chunk, commitment=self.commitment)
            except (SolanaRpcException, RPCException) as exc:
                raise AccountLookupFailed(f"Failed to fetch {len(chunk)} accounts: {exc}") from exc
            results.extend(None if account is None else bytes(account.data) for account in resp.value)
        return results

    def get_recent_block_reference(self) -> Hash:
        try:
            resp = self.client.get_latest_blockhash(commitment=self.commitment)
        except (SolanaRpcException, RPCException) as exc:
            raise AccountLookupFailed(f"Failed to fetch latest blockhash: {exc}") from exc
        return resp.value.blockhash

    def get_mint_decimals(self, mint: Pubkey) -> int:
        try:
            resp = self.client.get_token_supply(mint, commitment=self.commitment)
        except (SolanaRpcException, RPCException) as exc:
            raise AccountLookupFailed(f"Mint {mint} not found: {exc}") from exc
        return resp.value.decimals

    def get_token_account_balance(self, account: Pubkey) -> Optional[int]:
        data = self.get_account_bytes(account)
        if data is None:
            return None
        try:
            return token_account_amount(data)
        except MalformedBuffer as exc:
            raise AccountLookupFailed(f"{account} is not a token account") from exc

    def get_program_account_addresses(self, program_id: Pubkey) -> List[Pubkey]:
        """Addresses of every account owned by `program_id`, without their data."""
        try:
            resp = self.client.get_program_accounts(
                program_id,
                commitment=self.commitment,
                encoding="base64",
                data_slice=DataSliceOpts(offset=0, length=0),
            )
        except (SolanaRpcException, RPCException) as exc:
            raise AccountLookupFailed(f"Failed to list accounts of {program_id}: {exc}") from exc
        return [keyed.pubkey for keyed in resp.value]
