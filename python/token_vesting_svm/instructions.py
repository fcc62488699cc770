"""Instruction builders for the token vesting program.

Data layouts and account orders are fixed by the deployed program. Every
payload starts with a one byte discriminant followed by the extended seed.
"""

from enum import IntEnum
from typing import List, Sequence

import borsh_construct as borsh
from construct import Bytes as ConstructBytes
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from token_vesting_svm.codec import encode_u32
from token_vesting_svm.constants import (
    FEE_WALLET,
    MAX_SEED_LENGTH,
    PACKET_DATA_SIZE,
    SYSTEM_PROGRAM_ID,
    SYSVAR_CLOCK_PUBKEY,
    SYSVAR_RENT_PUBKEY,
    TOKEN_PROGRAM_ID,
    TOKEN_VESTING_PROGRAM_ID,
)
from token_vesting_svm.errors import InstructionTooLarge, InvalidArguments
from token_vesting_svm.state import Schedule


class VestingInstruction(IntEnum):
    INIT = 0
    CREATE = 1
    UNLOCK = 2
    CHANGE_DESTINATION = 3


def _seeded_header(seed_length: int) -> borsh.CStruct:
    return borsh.CStruct(
        "instruction" / borsh.U8,
        "seeds" / ConstructBytes(seed_length)
    )


def _encode_header(instruction: VestingInstruction, extended_seed: bytes) -> bytes:
    extended_seed = bytes(extended_seed)
    if not extended_seed or len(extended_seed) > MAX_SEED_LENGTH + 1:
        raise InvalidArguments(
            f"Extended seed must be 1 to {MAX_SEED_LENGTH + 1} bytes, got {len(extended_seed)}"
        )
    return _seeded_header(len(extended_seed)).build({
        "instruction": int(instruction),
        "seeds": extended_seed
    })


def _check_size(data: bytes) -> bytes:
    if len(data) > PACKET_DATA_SIZE:
        raise InstructionTooLarge(
            f"Instruction data is {len(data)} bytes, a transaction holds at most {PACKET_DATA_SIZE}"
        )
    return data


def build_init(
    payer: Pubkey,
    vesting_account: Pubkey,
    extended_seed: bytes,
    schedule_count: int,
    program_id: Pubkey = TOKEN_VESTING_PROGRAM_ID,
) -> Instruction:
    """Allocate the vesting account with room for `schedule_count` schedules."""
    data = _encode_header(VestingInstruction.INIT, extended_seed) + encode_u32(schedule_count)

    accounts = [
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_RENT_PUBKEY, is_signer=False, is_writable=False),
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=vesting_account, is_signer=False, is_writable=True)
    ]

    return Instruction(
        program_id=program_id,
        data=_check_size(data),
        accounts=accounts
    )


def build_create(
    vesting_account: Pubkey,
    vesting_token_account: Pubkey,
    source_owner: Pubkey,
    source_token_account: Pubkey,
    destination_token_account: Pubkey,
    mint: Pubkey,
    schedules: Sequence[Schedule],
    extended_seed: bytes,
    fee_wallet: Pubkey = FEE_WALLET,
    program_id: Pubkey = TOKEN_VESTING_PROGRAM_ID,
) -> Instruction:
    """Fund the vesting token account and record the schedules."""
    if not schedules:
        raise InvalidArguments("At least one schedule is required")

    buffers: List[bytes] = [
        _encode_header(VestingInstruction.CREATE, extended_seed),
        bytes(mint),
        bytes(destination_token_account),
    ]
    buffers.extend(schedule.to_bytes() for schedule in schedules)
    data = b"".join(buffers)

    accounts = [
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=fee_wallet, is_signer=False, is_writable=True),
        AccountMeta(pubkey=vesting_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=vesting_token_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=source_owner, is_signer=True, is_writable=False),
        AccountMeta(pubkey=source_token_account, is_signer=False, is_writable=True)
    ]

    return Instruction(
        program_id=program_id,
        data=_check_size(data),
        accounts=accounts
    )


def build_unlock(
    vesting_account: Pubkey,
    vesting_token_account: Pubkey,
    destination_token_account: Pubkey,
    extended_seed: bytes,
    program_id: Pubkey = TOKEN_VESTING_PROGRAM_ID,
) -> Instruction:
    """Release every schedule whose time has passed to the destination account."""
    data = _encode_header(VestingInstruction.UNLOCK, extended_seed)

    accounts = [
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSVAR_CLOCK_PUBKEY, is_signer=False, is_writable=False),
        AccountMeta(pubkey=vesting_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=vesting_token_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=destination_token_account, is_signer=False, is_writable=True)
    ]

    return Instruction(
        program_id=program_id,
        data=_check_size(data),
        accounts=accounts
    )


def build_change_destination(
    vesting_account: Pubkey,
    current_destination_owner: Pubkey,
    current_destination_account: Pubkey,
    new_destination_account: Pubkey,
    extended_seed: bytes,
    program_id: Pubkey = TOKEN_VESTING_PROGRAM_ID,
) -> Instruction:
    """Point future unlocks at a new token account. The current owner signs."""
    data = _encode_header(VestingInstruction.CHANGE_DESTINATION, extended_seed)

    accounts = [
        AccountMeta(pubkey=vesting_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=current_destination_account, is_signer=False, is_writable=False),
        AccountMeta(pubkey=current_destination_owner, is_signer=True, is_writable=False),
        AccountMeta(pubkey=new_destination_account, is_signer=False, is_writable=False)
    ]

    return Instruction(
        program_id=program_id,
        data=_check_size(data),
        accounts=accounts
    )
