import pytest

from config import Base, Settings, explorer_tx_url, load_settings
from utils.errors import ConfigurationError


def test_defaults_from_empty_environment():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.sponsored is False
    assert (settings.rpc_timeout, settings.bundler_timeout, settings.receipt_timeout) == (15.0, 30.0, 120.0)


def test_reads_secrets_and_tunables():
    settings = load_settings({
        "PRIVATE_KEY": " 0xabc ",
        "PIMLICO_API_KEY": "pim_x",
        "PIMLICO_SPONSORSHIP": "true",
        "RPC_TIMEOUT": "5",
    })
    assert settings.private_key == "0xabc"
    assert settings.pimlico_api_key == "pim_x"
    assert settings.sponsored is True
    assert settings.rpc_timeout == 5.0


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_bad_timeout_is_a_configuration_error(value):
    with pytest.raises(ConfigurationError):
        load_settings({"BUNDLER_TIMEOUT": value})


def test_require_secrets_names_missing_variable():
    with pytest.raises(ConfigurationError, match="PRIVATE_KEY"):
        Settings(pimlico_api_key="pim_x").require_secrets()
    with pytest.raises(ConfigurationError, match="PIMLICO_API_KEY"):
        Settings(private_key="0xabc").require_secrets()


def test_base_network_parameters():
    assert Base.CHAIN_ID == 8453
    assert explorer_tx_url("0xabc") == "https://basescan.org/tx/0xabc"
