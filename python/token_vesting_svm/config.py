import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_RPC_URL = "https://api.devnet.solana.com"
DEFAULT_CLUSTER = "devnet"
DEFAULT_KEYPAIR_PATH = "~/.config/solana/id.json"
DEFAULT_COMMITMENT = "confirmed"


@dataclass(frozen=True)
class Settings:
    rpc_url: str = DEFAULT_RPC_URL
    cluster: str = DEFAULT_CLUSTER
    keypair_path: str = DEFAULT_KEYPAIR_PATH
    commitment: str = DEFAULT_COMMITMENT


def load_settings() -> Settings:
    """Read settings from the environment, after loading a .env file if present."""
    load_dotenv()
    return Settings(
        rpc_url=os.getenv("SOLANA_RPC_URL", DEFAULT_RPC_URL),
        cluster=os.getenv("SOLANA_CLUSTER", DEFAULT_CLUSTER),
        keypair_path=os.getenv("VESTING_KEYPAIR_PATH", DEFAULT_KEYPAIR_PATH),
        commitment=os.getenv("SOLANA_COMMITMENT", DEFAULT_COMMITMENT),
    )
