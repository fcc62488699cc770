from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import CLOCK as SYSVAR_CLOCK_PUBKEY
from solders.sysvar import RENT as SYSVAR_RENT_PUBKEY
from spl.token.constants import TOKEN_PROGRAM_ID

# Deployed token vesting program and the wallet it collects fees into
TOKEN_VESTING_PROGRAM_ID = Pubkey.from_string("7goRg4PCntCSBsAKKTvajQ4aJoXqT8ZF7ciKMmxBQ4zD")
FEE_WALLET = Pubkey.from_string("8qQKCLffmpp9415i4g6WdibjA146UMFk4MndxfWuGVZc")

# Seeds handed to find_program_address are capped at 32 bytes; one is kept for the bump
MAX_SEED_LENGTH = 31

# Maximum serialized transaction size, instruction data can never exceed it
PACKET_DATA_SIZE = 1232
