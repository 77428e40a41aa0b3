from unittest.mock import MagicMock

import pytest
from web3 import Web3

from conftest import RECIPIENT_1
from utils.errors import InvalidAddress, QueryFailed
from utils.helper import Web3Helper
from utils.tokens import all_tokens, lookup


def _helper(balances):
    """balances: symbol -> int or Exception, served by the mocked balanceOf calls."""
    w3 = MagicMock()
    w3.to_checksum_address = Web3.to_checksum_address
    w3.eth.get_balance.return_value = 1_250_000_000_000_000_000
    by_address = {Web3.to_checksum_address(t.address): balances[t.symbol] for t in all_tokens()}

    def contract(address, abi):
        c = MagicMock()
        outcome = by_address[address]
        if isinstance(outcome, Exception):
            c.functions.balanceOf.return_value.call.side_effect = outcome
        else:
            c.functions.balanceOf.return_value.call.return_value = outcome
        return c

    w3.eth.contract.side_effect = contract
    return Web3Helper(w3=w3)


def test_native_balance_is_formatted():
    assert _helper({"USDC": 0, "USDT": 0, "WETH": 0}).get_native_balance(RECIPIENT_1) == "1.25"


def test_token_balances_in_registry_order():
    helper = _helper({"USDC": 1_500_000, "USDT": 0, "WETH": 10 ** 17})
    balances = helper.get_balances(RECIPIENT_1)
    assert list(balances) == ["USDC", "USDT", "WETH"]
    assert balances == {"USDC": "1.5", "USDT": "0", "WETH": "0.1"}


def test_one_failing_token_does_not_abort_the_rest():
    helper = _helper({"USDC": 1_000_000, "USDT": TimeoutError("read timed out"), "WETH": 0})
    balances = helper.get_balances(RECIPIENT_1)
    assert balances["USDC"] == "1"
    assert isinstance(balances["USDT"], QueryFailed)
    assert isinstance(balances["USDT"].cause, TimeoutError)
    assert balances["WETH"] == "0"


def test_subset_of_tokens():
    helper = _helper({"USDC": 5, "USDT": 0, "WETH": 0})
    assert helper.get_balances(RECIPIENT_1, [lookup("USDC")]) == {"USDC": "0.000005"}


def test_native_failure_raises_query_failed():
    helper = _helper({"USDC": 0, "USDT": 0, "WETH": 0})
    helper.w3.eth.get_balance.side_effect = ConnectionError("refused")
    with pytest.raises(QueryFailed):
        helper.get_native_balance(RECIPIENT_1)


def test_invalid_address_is_rejected_before_any_query():
    helper = _helper({"USDC": 0, "USDT": 0, "WETH": 0})
    with pytest.raises(InvalidAddress):
        helper.get_balances("0xnope")
    helper.w3.eth.contract.assert_not_called()
