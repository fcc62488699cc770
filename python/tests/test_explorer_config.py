import pytest

from token_vesting_svm.config import DEFAULT_RPC_URL, load_settings
from token_vesting_svm.explorer import explorer_link


def test_mainnet_links_have_no_cluster():
    assert explorer_link("address", "abc") == "https://explorer.solana.com/address/abc"


def test_cluster_links():
    assert explorer_link("tx", "sig", "devnet") == "https://explorer.solana.com/tx/sig?cluster=devnet"
    assert explorer_link("transaction", "sig", "testnet") == "https://explorer.solana.com/tx/sig?cluster=testnet"
    assert explorer_link("block", "12", "localnet") == (
        "https://explorer.solana.com/block/12?cluster=custom&customUrl=http%3A%2F%2Flocalhost%3A8899"
    )


def test_unknown_link_type():
    with pytest.raises(ValueError):
        explorer_link("account", "abc")


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SOLANA_RPC_URL", raising=False)
    monkeypatch.setenv("SOLANA_CLUSTER", "localnet")

    settings = load_settings()

    assert settings.rpc_url == DEFAULT_RPC_URL
    assert settings.cluster == "localnet"
