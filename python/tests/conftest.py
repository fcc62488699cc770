import pytest
import borsh_construct as borsh
from construct import Bytes as ConstructBytes

from solders.hash import Hash
from solders.pubkey import Pubkey

from token_vesting_svm.state import ContractInfo

# --- Borsh Schemas ---
contract_header_struct = borsh.CStruct(
    "is_initialized" / borsh.U8,
    "destination_address" / ConstructBytes(32),
    "mint_address" / ConstructBytes(32),
    "creation_time" / borsh.U64
)


def encode_contract(info: ContractInfo) -> bytes:
    """Serialize a ContractInfo the way the vesting program lays out its account."""
    header = contract_header_struct.build({
        "is_initialized": 1 if info.is_initialized else 0,
        "destination_address": bytes(info.destination_address),
        "mint_address": bytes(info.mint_address),
        "creation_time": info.creation_time
    })
    return header + b"".join(s.to_bytes() for s in info.schedules)


def token_account_bytes(mint: Pubkey, owner: Pubkey, amount: int) -> bytes:
    """Minimal SPL token account: mint, owner, amount, then zeroed state."""
    return bytes(mint) + bytes(owner) + amount.to_bytes(8, "little") + bytes(165 - 72)


class FakeLedger:
    """In-memory LedgerClient that records every call."""

    def __init__(self):
        self.accounts = {}
        self.decimals = {}
        self.program_accounts = []
        self.blockhash = Hash.default()
        self.calls = []

    def get_account_bytes(self, address):
        self.calls.append(("get_account_bytes", address))
        return self.accounts.get(address)

    def get_multiple_account_bytes(self, addresses):
        self.calls.append(("get_multiple_account_bytes", list(addresses)))
        return [self.accounts.get(address) for address in addresses]

    def get_recent_block_reference(self):
        self.calls.append(("get_recent_block_reference",))
        return self.blockhash

    def get_mint_decimals(self, mint):
        self.calls.append(("get_mint_decimals", mint))
        return self.decimals[mint]

    def get_token_account_balance(self, account):
        self.calls.append(("get_token_account_balance", account))
        data = self.accounts.get(account)
        if data is None:
            return None
        return int.from_bytes(data[64:72], "little")

    def get_program_account_addresses(self, program_id):
        self.calls.append(("get_program_account_addresses", program_id))
        return list(self.program_accounts)


# --- Pytest Fixtures ---

@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def contract_bytes():
    return encode_contract


@pytest.fixture
def token_account():
    return token_account_bytes


@pytest.fixture(scope="module")
def mint() -> Pubkey:
    return Pubkey.new_unique()
