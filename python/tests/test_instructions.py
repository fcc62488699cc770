import pytest

from solders.pubkey import Pubkey

from token_vesting_svm.constants import (
    FEE_WALLET,
    SYSTEM_PROGRAM_ID,
    SYSVAR_CLOCK_PUBKEY,
    SYSVAR_RENT_PUBKEY,
    TOKEN_PROGRAM_ID,
    TOKEN_VESTING_PROGRAM_ID,
)
from token_vesting_svm.errors import InstructionTooLarge, InvalidArguments
from token_vesting_svm.instructions import (
    VestingInstruction,
    build_change_destination,
    build_create,
    build_init,
    build_unlock,
)
from token_vesting_svm.state import Schedule

EXTENDED_SEED = bytes(range(1, 32)) + b"\x07"


def metas(instruction):
    return [(m.pubkey, m.is_signer, m.is_writable) for m in instruction.accounts]


@pytest.fixture(scope="module")
def keys():
    return {name: Pubkey.new_unique() for name in (
        "payer", "vesting", "vesting_token", "source_owner", "source_token",
        "destination_token", "mint", "new_destination", "current_owner",
    )}


def test_init_layout(keys):
    ix = build_init(keys["payer"], keys["vesting"], EXTENDED_SEED, 3)

    assert ix.program_id == TOKEN_VESTING_PROGRAM_ID
    assert bytes(ix.data) == b"\x00" + EXTENDED_SEED + b"\x03\x00\x00\x00"
    assert len(ix.data) == 37
    assert metas(ix) == [
        (SYSTEM_PROGRAM_ID, False, False),
        (SYSVAR_RENT_PUBKEY, False, False),
        (keys["payer"], True, True),
        (keys["vesting"], False, True),
    ]


def test_create_layout(keys):
    schedules = [Schedule(1_800_000_000, 10), Schedule(1_700_000_000, 20)]
    ix = build_create(
        keys["vesting"],
        keys["vesting_token"],
        keys["source_owner"],
        keys["source_token"],
        keys["destination_token"],
        keys["mint"],
        schedules,
        EXTENDED_SEED,
    )

    data = bytes(ix.data)
    assert data[0] == VestingInstruction.CREATE == 1
    assert data[1:33] == EXTENDED_SEED
    assert data[33:65] == bytes(keys["mint"])
    assert data[65:97] == bytes(keys["destination_token"])
    assert data[97:113] == (1_800_000_000).to_bytes(8, "little") + (10).to_bytes(8, "little")
    assert data[113:] == (1_700_000_000).to_bytes(8, "little") + (20).to_bytes(8, "little")
    assert metas(ix) == [
        (SYSTEM_PROGRAM_ID, False, False),
        (TOKEN_PROGRAM_ID, False, False),
        (FEE_WALLET, False, True),
        (keys["vesting"], False, True),
        (keys["vesting_token"], False, True),
        (keys["source_owner"], True, False),
        (keys["source_token"], False, True),
    ]


def test_create_requires_schedules(keys):
    with pytest.raises(InvalidArguments):
        build_create(
            keys["vesting"], keys["vesting_token"], keys["source_owner"], keys["source_token"],
            keys["destination_token"], keys["mint"], [], EXTENDED_SEED,
        )


def test_create_too_many_schedules(keys):
    schedules = [Schedule(1_700_000_000 + i, 1) for i in range(100)]
    with pytest.raises(InstructionTooLarge):
        build_create(
            keys["vesting"], keys["vesting_token"], keys["source_owner"], keys["source_token"],
            keys["destination_token"], keys["mint"], schedules, EXTENDED_SEED,
        )


def test_unlock_layout(keys):
    ix = build_unlock(keys["vesting"], keys["vesting_token"], keys["destination_token"], EXTENDED_SEED)

    assert bytes(ix.data) == b"\x02" + EXTENDED_SEED
    assert metas(ix) == [
        (TOKEN_PROGRAM_ID, False, False),
        (SYSVAR_CLOCK_PUBKEY, False, False),
        (keys["vesting"], False, True),
        (keys["vesting_token"], False, True),
        (keys["destination_token"], False, True),
    ]


def test_change_destination_layout(keys):
    ix = build_change_destination(
        keys["vesting"],
        keys["current_owner"],
        keys["destination_token"],
        keys["new_destination"],
        EXTENDED_SEED,
    )

    assert bytes(ix.data) == b"\x03" + EXTENDED_SEED
    assert metas(ix) == [
        (keys["vesting"], False, True),
        (keys["destination_token"], False, False),
        (keys["current_owner"], True, False),
        (keys["new_destination"], False, False),
    ]


def test_custom_program_id(keys):
    program_id = Pubkey.new_unique()
    ix = build_unlock(keys["vesting"], keys["vesting_token"], keys["destination_token"], EXTENDED_SEED, program_id)
    assert ix.program_id == program_id


@pytest.mark.parametrize("seed", [b"", bytes(33)])
def test_extended_seed_length_checked(keys, seed):
    with pytest.raises(InvalidArguments):
        build_unlock(keys["vesting"], keys["vesting_token"], keys["destination_token"], seed)


def test_schedule_count_out_of_range(keys):
    with pytest.raises(InvalidArguments):
        build_init(keys["payer"], keys["vesting"], EXTENDED_SEED, 2**32)
