from urllib.parse import urlencode

EXPLORER_URL = "https://explorer.solana.com"
LOCALNET_RPC_URL = "http://localhost:8899"

LINK_PATHS = {
    "address": "address",
    "transaction": "tx",
    "tx": "tx",
    "block": "block",
}


def explorer_link(kind: str, identifier: str, cluster: str = "mainnet-beta") -> str:
    """Link to an address, transaction or block on the Solana explorer."""
    if kind not in LINK_PATHS:
        raise ValueError(f"Unknown explorer link type: {kind}")

    params = {}
    if cluster == "localnet":
        # localnet is not a named cluster on the explorer
        params = {"cluster": "custom", "customUrl": LOCALNET_RPC_URL}
    elif cluster != "mainnet-beta":
        params = {"cluster": cluster}

    url = f"{EXPLORER_URL}/{LINK_PATHS[kind]}/{identifier}"
    if params:
        url += "?" + urlencode(params)
    return url
