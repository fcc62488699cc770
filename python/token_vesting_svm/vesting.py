"""Lock, unlock and change-destination workflows for the token vesting program.

VestingClient reads fresh chain state through a LedgerClient, checks
preconditions, and returns ready-to-sign instruction lists. Nothing is
submitted until `submit` is called with a plan.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.signature import Signature
from spl.token.instructions import create_associated_token_account

from token_vesting_svm.addresses import (
    SeedLike,
    derive_associated_token_address,
    derive_vesting_address,
    derive_vesting_token_account,
)
from token_vesting_svm.constants import FEE_WALLET, TOKEN_PROGRAM_ID, TOKEN_VESTING_PROGRAM_ID
from token_vesting_svm.errors import (
    ContractAlreadyExists,
    ContractNotFound,
    ContractNotInitialized,
    InsufficientBalance,
    InvalidArguments,
)
from token_vesting_svm.instructions import build_change_destination, build_create, build_init, build_unlock
from token_vesting_svm.ledger import LedgerClient
from token_vesting_svm.signers import SigningAgent
from token_vesting_svm.state import ContractInfo, Schedule, decode_contract_info, parse_contract_info

logger = logging.getLogger(__name__)


def generate_seed() -> str:
    """Fresh contract seed. 32 hex characters, of which the first 31 reach the program."""
    return secrets.token_hex(16)


def build_schedules(
    release_times: Sequence[Union[datetime, int]],
    amount_per_schedule: Union[Decimal, int, str],
    decimals: int,
) -> List[Schedule]:
    """One schedule per release time, each releasing `amount_per_schedule` whole tokens."""
    if not release_times:
        raise InvalidArguments("Please select at least one release date")

    try:
        amount = Decimal(str(amount_per_schedule))
    except InvalidOperation as exc:
        raise InvalidArguments(f"Invalid token amount: {amount_per_schedule!r}") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidArguments("Invalid token amount. It should be greater than 0.")

    base_units = amount.scaleb(decimals)
    if base_units != base_units.to_integral_value():
        raise InvalidArguments(
            f"{amount_per_schedule} has more precision than the mint's {decimals} decimals"
        )

    schedules = []
    for release in release_times:
        seconds = int(release.timestamp()) if isinstance(release, datetime) else int(release)
        schedules.append(Schedule(release_time=seconds, amount=int(base_units)))
    return schedules


@dataclass
class LockPlan:
    seed: str
    extended_seed: bytes
    payer: Pubkey
    vesting_account: Pubkey
    vesting_token_account: Pubkey
    source_token_account: Pubkey
    destination_token_account: Pubkey
    schedules: List[Schedule]
    instructions: List[Instruction] = field(default_factory=list)


@dataclass
class UnlockPlan:
    vesting_account: Pubkey
    vesting_token_account: Pubkey
    contract_info: ContractInfo
    instructions: List[Instruction] = field(default_factory=list)
    payer: Optional[Pubkey] = None


@dataclass
class ChangeDestinationPlan:
    vesting_account: Pubkey
    new_destination_account: Pubkey
    contract_info: ContractInfo
    instructions: List[Instruction] = field(default_factory=list)
    payer: Optional[Pubkey] = None


Plan = Union[LockPlan, UnlockPlan, ChangeDestinationPlan]


class VestingContract(NamedTuple):
    vesting_account: Pubkey
    info: ContractInfo


class VestingClient:
    def __init__(
        self,
        ledger: LedgerClient,
        signer: Optional[SigningAgent] = None,
        program_id: Pubkey = TOKEN_VESTING_PROGRAM_ID,
        fee_wallet: Pubkey = FEE_WALLET,
        seed_factory: Callable[[], str] = generate_seed,
    ):
        self.ledger = ledger
        self.signer = signer
        self.program_id = program_id
        self.fee_wallet = fee_wallet
        self.seed_factory = seed_factory

    def lock(
        self,
        mint: Pubkey,
        source_owner: Pubkey,
        destination_owner: Pubkey,
        schedules: Sequence[Schedule],
        payer: Optional[Pubkey] = None,
    ) -> LockPlan:
        """
        Build the instructions that lock tokens from `source_owner` into a new contract.

        The sequence is: create the destination token account if it is missing,
        Init the vesting account, create the vesting token account, then Create
        the contract, which moves the full amount out of the source account.

        A `payer` other than `source_owner` makes the transaction need both
        signatures; `submit` refuses such a plan since the signing agent signs
        for a single key.
        """
        if not schedules:
            raise InvalidArguments("At least one schedule is required")
        if payer is None:
            payer = source_owner

        source_token_account = derive_associated_token_address(mint, source_owner)
        destination_token_account = derive_associated_token_address(mint, destination_owner)

        required = sum(s.amount for s in schedules)
        balance = self.ledger.get_token_account_balance(source_token_account)
        if balance is None or balance < required:
            raise InsufficientBalance(source_token_account, balance or 0, required)

        instructions: List[Instruction] = []
        if self.ledger.get_account_bytes(destination_token_account) is None:
            logger.debug("Destination token account %s missing, creating it", destination_token_account)
            instructions.append(
                create_associated_token_account(payer, destination_owner, mint, TOKEN_PROGRAM_ID)
            )

        seed = self.seed_factory()
        vesting_account, extended_seed, _ = derive_vesting_address(seed, self.program_id)
        if self.ledger.get_account_bytes(vesting_account) is not None:
            raise ContractAlreadyExists(vesting_account)
        vesting_token_account = derive_vesting_token_account(mint, vesting_account)
        logger.debug("Vesting account %s, token account %s", vesting_account, vesting_token_account)

        instructions.extend([
            build_init(payer, vesting_account, extended_seed, len(schedules), self.program_id),
            create_associated_token_account(payer, vesting_account, mint, TOKEN_PROGRAM_ID),
            build_create(
                vesting_account,
                vesting_token_account,
                source_owner,
                source_token_account,
                destination_token_account,
                mint,
                schedules,
                extended_seed,
                self.fee_wallet,
                self.program_id,
            ),
        ])

        logger.info(
            "Prepared lock of %d base units in %d schedules at %s",
            required, len(schedules), vesting_account
        )
        return LockPlan(
            seed=seed,
            extended_seed=extended_seed,
            payer=payer,
            vesting_account=vesting_account,
            vesting_token_account=vesting_token_account,
            source_token_account=source_token_account,
            destination_token_account=destination_token_account,
            schedules=list(schedules),
            instructions=instructions,
        )

    def lock_by_dates(
        self,
        mint: Pubkey,
        source_owner: Pubkey,
        destination_owner: Pubkey,
        release_times: Sequence[Union[datetime, int]],
        amount_per_schedule: Union[Decimal, int, str],
        payer: Optional[Pubkey] = None,
    ) -> LockPlan:
        """Lock `amount_per_schedule` whole tokens at each release time."""
        decimals = self.ledger.get_mint_decimals(mint)
        schedules = build_schedules(release_times, amount_per_schedule, decimals)
        return self.lock(mint, source_owner, destination_owner, schedules, payer)

    def get_contract_info(self, vesting_account: Pubkey) -> ContractInfo:
        """Read and decode a vesting account, failing if it is missing or uninitialized."""
        data = self.ledger.get_account_bytes(vesting_account)
        if data is None:
            raise ContractNotFound(vesting_account)
        try:
            return parse_contract_info(data)
        except ContractNotInitialized:
            raise ContractNotInitialized(vesting_account) from None

    def unlock(self, seed: SeedLike, mint: Pubkey) -> UnlockPlan:
        """Build the instruction releasing every due schedule of the contract behind `seed`."""
        vesting_account, extended_seed, _ = derive_vesting_address(seed, self.program_id)
        vesting_token_account = derive_vesting_token_account(mint, vesting_account)

        contract_info = self.get_contract_info(vesting_account)
        if contract_info.mint_address != mint:
            raise InvalidArguments(
                f"Contract {vesting_account} vests {contract_info.mint_address}, not {mint}"
            )

        instruction = build_unlock(
            vesting_account,
            vesting_token_account,
            contract_info.destination_address,
            extended_seed,
            self.program_id,
        )
        logger.info("Prepared unlock of %s", vesting_account)
        return UnlockPlan(
            vesting_account=vesting_account,
            vesting_token_account=vesting_token_account,
            contract_info=contract_info,
            instructions=[instruction],
        )

    def change_destination(
        self,
        seed: SeedLike,
        current_owner: Pubkey,
        current_destination_account: Optional[Pubkey] = None,
        new_destination_owner: Optional[Pubkey] = None,
        new_destination_account: Optional[Pubkey] = None,
    ) -> ChangeDestinationPlan:
        """
        Build the instruction moving future unlocks to a new token account.

        Either `new_destination_account` or `new_destination_owner` must be given;
        with only an owner, its associated token account for the contract's mint
        is used. `current_owner` must sign the resulting transaction.
        """
        if new_destination_account is None and new_destination_owner is None:
            raise InvalidArguments(
                "At least one of new_destination_account and new_destination_owner must be provided"
            )

        vesting_account, extended_seed, _ = derive_vesting_address(seed, self.program_id)
        contract_info = self.get_contract_info(vesting_account)

        if current_destination_account is None:
            current_destination_account = contract_info.destination_address
        elif current_destination_account != contract_info.destination_address:
            raise InvalidArguments(
                f"Contract {vesting_account} pays {contract_info.destination_address}, "
                f"not {current_destination_account}"
            )

        if new_destination_account is None:
            new_destination_account = derive_associated_token_address(
                contract_info.mint_address, new_destination_owner
            )

        instruction = build_change_destination(
            vesting_account,
            current_owner,
            current_destination_account,
            new_destination_account,
            extended_seed,
            self.program_id,
        )
        logger.info("Prepared destination change of %s to %s", vesting_account, new_destination_account)
        return ChangeDestinationPlan(
            vesting_account=vesting_account,
            new_destination_account=new_destination_account,
            contract_info=contract_info,
            instructions=[instruction],
            payer=current_owner,
        )

    def list_contracts(self, vesting_accounts: Sequence[Pubkey]) -> List[VestingContract]:
        """Decode the given vesting accounts, oldest first. Absent or invalid ones are skipped."""
        contracts = []
        datas = self.ledger.get_multiple_account_bytes(vesting_accounts)
        for vesting_account, data in zip(vesting_accounts, datas):
            info = decode_contract_info(data)
            if info is not None:
                contracts.append(VestingContract(vesting_account, info))
        contracts.sort(key=lambda contract: contract.info.creation_time)
        return contracts

    def recent_contracts(self) -> List[VestingContract]:
        """Every contract owned by the vesting program, oldest first."""
        return self.list_contracts(self.ledger.get_program_account_addresses(self.program_id))

    def submit(self, plan: Plan, payer: Optional[Pubkey] = None) -> Signature:
        """Sign and send a plan's instructions through the signing agent."""
        if self.signer is None:
            raise InvalidArguments("No signing agent configured")

        signer_key = self.signer.connect()
        if payer is None:
            payer = plan.payer if plan.payer is not None else signer_key

        missing = [
            str(meta.pubkey)
            for instruction in plan.instructions
            for meta in instruction.accounts
            if meta.is_signer and meta.pubkey != payer
        ]
        if missing:
            raise InvalidArguments(
                f"Transaction also needs signatures from {', '.join(sorted(set(missing)))}, "
                f"the signing agent only signs for {payer}"
            )

        block_ref = self.ledger.get_recent_block_reference()
        signature = self.signer.sign_and_submit(payer, plan.instructions, block_ref)
        logger.info("Transaction signature: %s", signature)
        return signature
