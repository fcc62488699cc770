"""Fixed-width little-endian codecs shared by instructions and account state."""

from typing import Tuple

import borsh_construct as borsh

from token_vesting_svm.errors import InvalidArguments, MalformedBuffer

U32_SIZE = 4
U64_SIZE = 8

schedule_struct = borsh.CStruct(
    "release_time" / borsh.U64,
    "amount" / borsh.U64
)

SCHEDULE_SIZE = 2 * U64_SIZE


def _check_range(value: int, bits: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArguments(f"Expected an integer, got {type(value).__name__}")
    if value < 0 or value >= 1 << bits:
        raise InvalidArguments(f"{value} does not fit in an unsigned {bits}-bit field")


def _require(buffer: bytes, offset: int, size: int) -> None:
    if offset < 0 or len(buffer) - offset < size:
        raise MalformedBuffer(
            f"Need {size} bytes at offset {offset}, buffer holds {len(buffer)}"
        )


def encode_u32(value: int) -> bytes:
    _check_range(value, 32)
    return borsh.U32.build(value)


def encode_u64(value: int) -> bytes:
    _check_range(value, 64)
    return borsh.U64.build(value)


def decode_u32(buffer: bytes, offset: int = 0) -> Tuple[int, int]:
    """Read a u32 at offset, returning (value, next_offset)."""
    _require(buffer, offset, U32_SIZE)
    return borsh.U32.parse(bytes(buffer[offset:offset + U32_SIZE])), offset + U32_SIZE


def decode_u64(buffer: bytes, offset: int = 0) -> Tuple[int, int]:
    """Read a u64 at offset, returning (value, next_offset)."""
    _require(buffer, offset, U64_SIZE)
    return borsh.U64.parse(bytes(buffer[offset:offset + U64_SIZE])), offset + U64_SIZE


def pack_schedule(release_time: int, amount: int) -> bytes:
    _check_range(release_time, 64)
    _check_range(amount, 64)
    return schedule_struct.build({
        "release_time": release_time,
        "amount": amount
    })


def unpack_schedule(buffer: bytes, offset: int = 0) -> Tuple[int, int, int]:
    """Read one schedule block, returning (release_time, amount, next_offset)."""
    _require(buffer, offset, SCHEDULE_SIZE)
    parsed = schedule_struct.parse(bytes(buffer[offset:offset + SCHEDULE_SIZE]))
    return parsed.release_time, parsed.amount, offset + SCHEDULE_SIZE
