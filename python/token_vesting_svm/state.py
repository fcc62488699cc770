"""On-chain account state of the token vesting program.

A vesting account is a fixed header followed by a run of 16-byte schedule
blocks:

- byte 0: is_initialized (u8)
- bytes 1-32: destination token account
- bytes 33-64: mint
- bytes 65-72: creation time (u64, unix seconds)
- bytes 73..: schedules, each release_time (u64) + amount (u64)

The buffer is sized at creation time for exactly the number of schedules,
so anything that is not header + N * 16 bytes is malformed.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import borsh_construct as borsh
from construct import Bytes as ConstructBytes
from solders.pubkey import Pubkey

from token_vesting_svm.codec import SCHEDULE_SIZE, pack_schedule, unpack_schedule
from token_vesting_svm.errors import ContractNotInitialized, MalformedBuffer

header_struct = borsh.CStruct(
    "is_initialized" / borsh.U8,
    "destination_address" / ConstructBytes(32),
    "mint_address" / ConstructBytes(32),
    "creation_time" / borsh.U64
)

HEADER_SIZE = 1 + 32 + 32 + 8


@dataclass(frozen=True)
class Schedule:
    """One release event: unix timestamp in seconds and amount in base units."""
    release_time: int
    amount: int

    def to_bytes(self) -> bytes:
        return pack_schedule(self.release_time, self.amount)


def encode_schedule(schedule: Schedule) -> bytes:
    return schedule.to_bytes()


def decode_schedule(buffer: bytes, offset: int = 0) -> Tuple[Schedule, int]:
    release_time, amount, next_offset = unpack_schedule(buffer, offset)
    return Schedule(release_time=release_time, amount=amount), next_offset


@dataclass
class ContractInfo:
    """Decoded vesting account."""
    is_initialized: bool
    destination_address: Pubkey
    mint_address: Pubkey
    creation_time: int
    schedules: List[Schedule] = field(default_factory=list)

    @property
    def total_amount(self) -> int:
        return sum(s.amount for s in self.schedules)

    def pending_schedules(self, now: int) -> List[Schedule]:
        """Schedules that have not been released yet at unix time `now`."""
        return [s for s in self.schedules if s.release_time > now]


def contract_size(schedule_count: int) -> int:
    """Account size the program allocates for `schedule_count` schedules."""
    return HEADER_SIZE + schedule_count * SCHEDULE_SIZE


def parse_contract_info(data: bytes) -> ContractInfo:
    """
    Decode a vesting account, raising on any structural problem.

    Raises MalformedBuffer when the length is not header + N * 16 bytes and
    ContractNotInitialized when the initialized flag is zero.
    """
    data = bytes(data)
    if len(data) < HEADER_SIZE:
        raise MalformedBuffer(
            f"Vesting account holds {len(data)} bytes, header needs {HEADER_SIZE}"
        )

    remainder = len(data) - HEADER_SIZE
    if remainder % SCHEDULE_SIZE:
        raise MalformedBuffer(
            f"{remainder} bytes after the header is not a multiple of {SCHEDULE_SIZE}"
        )

    header = header_struct.parse(data[:HEADER_SIZE])
    if header.is_initialized == 0:
        raise ContractNotInitialized()

    schedules = []
    offset = HEADER_SIZE
    while offset < len(data):
        schedule, offset = decode_schedule(data, offset)
        schedules.append(schedule)

    return ContractInfo(
        is_initialized=True,
        destination_address=Pubkey.from_bytes(header.destination_address),
        mint_address=Pubkey.from_bytes(header.mint_address),
        creation_time=header.creation_time,
        schedules=schedules,
    )


def decode_contract_info(data: Optional[bytes]) -> Optional[ContractInfo]:
    """Decode a vesting account, returning None when it is absent, malformed or uninitialized."""
    if data is None:
        return None
    try:
        return parse_contract_info(data)
    except (MalformedBuffer, ContractNotInitialized):
        return None
