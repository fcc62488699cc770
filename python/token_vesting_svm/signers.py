"""Signing agent collaborator: holds keys and submits transactions."""

import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Sequence

from solana.rpc.api import Client
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from token_vesting_svm.errors import InvalidArguments

logger = logging.getLogger(__name__)


class SigningAgent(Protocol):
    def connect(self) -> Pubkey:
        ...

    def disconnect(self) -> None:
        ...

    def sign_and_submit(
        self,
        payer: Pubkey,
        instructions: Sequence[Instruction],
        block_ref: Hash,
    ) -> Signature:
        ...


class KeypairSigner:
    """SigningAgent that signs with a local keypair and sends through an RPC client."""

    def __init__(self, client: Client, keypair: Keypair):
        self.client = client
        self.keypair = keypair
        self.connected = False

    @classmethod
    def from_file(cls, client: Client, path: str) -> "KeypairSigner":
        keypair_path = Path(os.path.expanduser(path))
        if not keypair_path.exists():
            raise FileNotFoundError(f"Keypair not found at {keypair_path}")
        return cls(client, Keypair.from_json(keypair_path.read_text()))

    def connect(self) -> Pubkey:
        self.connected = True
        return self.keypair.pubkey()

    def disconnect(self) -> None:
        self.connected = False

    @property
    def public_key(self) -> Optional[Pubkey]:
        return self.keypair.pubkey() if self.connected else None

    def sign_and_submit(
        self,
        payer: Pubkey,
        instructions: Sequence[Instruction],
        block_ref: Hash,
    ) -> Signature:
        """Compile a v0 message, sign it with the keypair and send it."""
        if not self.connected:
            raise InvalidArguments("Signer is not connected")
        if payer != self.keypair.pubkey():
            raise InvalidArguments(f"Payer {payer} is not the signer {self.keypair.pubkey()}")

        message = MessageV0.try_compile(
            payer=payer,
            instructions=list(instructions),
            address_lookup_table_accounts=[],
            recent_blockhash=block_ref,
        )

        transaction = VersionedTransaction(message, [self.keypair])
        result = self.client.send_transaction(transaction)

        logger.info("Submitted transaction %s", result.value)
        return result.value
