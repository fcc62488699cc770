import pytest

from solders.pubkey import Pubkey

from token_vesting_svm.errors import ContractNotInitialized, MalformedBuffer
from token_vesting_svm.state import (
    HEADER_SIZE,
    ContractInfo,
    Schedule,
    contract_size,
    decode_contract_info,
    decode_schedule,
    encode_schedule,
    parse_contract_info,
)


@pytest.fixture(scope="module")
def contract() -> ContractInfo:
    return ContractInfo(
        is_initialized=True,
        destination_address=Pubkey.new_unique(),
        mint_address=Pubkey.new_unique(),
        creation_time=1_700_000_000,
        schedules=[
            Schedule(release_time=1_800_000_000, amount=100),
            Schedule(release_time=1_700_500_000, amount=2**64 - 1),
            Schedule(release_time=1_900_000_000, amount=0),
        ],
    )


@pytest.mark.parametrize("schedule", [
    Schedule(release_time=0, amount=0),
    Schedule(release_time=1_735_689_600, amount=1_000_000_000),
    Schedule(release_time=2**64 - 1, amount=2**64 - 1),
])
def test_schedule_round_trip(schedule: Schedule):
    assert decode_schedule(encode_schedule(schedule)) == (schedule, 16)


def test_contract_round_trip_preserves_schedule_order(contract: ContractInfo, contract_bytes):
    data = contract_bytes(contract)
    assert len(data) == contract_size(3)
    assert decode_contract_info(data) == contract


def test_contract_without_schedules(contract: ContractInfo, contract_bytes):
    empty = ContractInfo(True, contract.destination_address, contract.mint_address, 5, [])
    assert decode_contract_info(contract_bytes(empty)) == empty


def test_header_layout(contract: ContractInfo, contract_bytes):
    data = contract_bytes(contract)
    assert data[0] == 1
    assert data[1:33] == bytes(contract.destination_address)
    assert data[33:65] == bytes(contract.mint_address)
    assert int.from_bytes(data[65:73], "little") == contract.creation_time
    assert HEADER_SIZE == 73


def test_short_buffer_is_absent(contract: ContractInfo, contract_bytes):
    data = contract_bytes(contract)
    assert decode_contract_info(data[:HEADER_SIZE - 1]) is None
    assert decode_contract_info(b"") is None
    with pytest.raises(MalformedBuffer):
        parse_contract_info(data[:10])


def test_misaligned_trailing_bytes_are_absent(contract: ContractInfo, contract_bytes):
    data = contract_bytes(contract) + b"\x00\x00\x00"
    assert decode_contract_info(data) is None
    with pytest.raises(MalformedBuffer):
        parse_contract_info(data)


def test_uninitialized_is_absent(contract: ContractInfo, contract_bytes):
    data = b"\x00" + contract_bytes(contract)[1:]
    assert decode_contract_info(data) is None
    with pytest.raises(ContractNotInitialized):
        parse_contract_info(data)


def test_missing_account_is_absent():
    assert decode_contract_info(None) is None


def test_pending_schedules_and_total(contract: ContractInfo):
    pending = contract.pending_schedules(now=1_800_000_000)
    assert pending == [Schedule(release_time=1_900_000_000, amount=0)]
    assert contract.total_amount == 100 + 2**64 - 1
