from typing import Callable, NamedTuple, Sequence, Tuple, Union

from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from token_vesting_svm.constants import MAX_SEED_LENGTH, TOKEN_PROGRAM_ID, TOKEN_VESTING_PROGRAM_ID
from token_vesting_svm.errors import AddressDerivationExhausted, InvalidAddressFormat, InvalidArguments

DeriveProgramAddress = Callable[[Sequence[bytes], Pubkey], Tuple[Pubkey, int]]

SeedLike = Union[str, bytes, bytearray]


class VestingAddress(NamedTuple):
    vesting_account: Pubkey
    extended_seed: bytes
    bump: int


def parse_address(value: Union[str, Pubkey]) -> Pubkey:
    """Parse a base58 address, raising InvalidAddressFormat on bad input."""
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value.strip())
    except (ValueError, AttributeError) as exc:
        raise InvalidAddressFormat(f"Invalid address: {value!r}") from exc


def seed_bytes(seed: SeedLike) -> bytes:
    """Seeds typed by users are strings; the program sees their UTF-8 bytes."""
    if isinstance(seed, str):
        return seed.encode("utf-8")
    return bytes(seed)


def derive_vesting_address(
    seed: SeedLike,
    program_id: Pubkey = TOKEN_VESTING_PROGRAM_ID,
    derive: DeriveProgramAddress = Pubkey.find_program_address,
) -> VestingAddress:
    """
    Find the vesting account for a seed and the seed the program expects in instructions.

    The seed is cut to its first 31 bytes before derivation, and the bump found
    by the derivation is appended to form the extended seed. The program
    re-derives the account from the extended seed, so every instruction for a
    contract must carry it instead of the raw seed.
    """
    truncated = seed_bytes(seed)[:MAX_SEED_LENGTH]
    if not truncated:
        raise InvalidArguments("Vesting seed must not be empty")

    try:
        vesting_account, bump = derive([truncated], program_id)
    except (ValueError, RuntimeError) as exc:
        raise AddressDerivationExhausted(
            f"No valid bump seed for vesting seed {truncated!r}"
        ) from exc

    return VestingAddress(vesting_account, truncated + bytes([bump]), bump)


def derive_associated_token_address(
    mint: Pubkey,
    owner: Pubkey,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Pubkey:
    # Owners may be program addresses themselves, no on-curve check here
    return get_associated_token_address(owner, mint, token_program_id)


def derive_vesting_token_account(mint: Pubkey, vesting_account: Pubkey) -> Pubkey:
    """Token account owned by the vesting account that holds the locked balance."""
    return derive_associated_token_address(mint, vesting_account)
