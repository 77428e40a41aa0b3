from unittest.mock import MagicMock

import pytest
import requests

from conftest import ACCOUNT_ADDRESS
from config import ENTRYPOINT_V07_ADDRESS, bundler_url
from utils import bundler as bundler_module
from utils.bundler import BundlerClient
from utils.errors import SubmissionFailed, SubmissionTimeout
from utils.user_operation import UserOperation


def _client(*payloads):
    session = MagicMock()
    responses = []
    for payload in payloads:
        resp = MagicMock()
        resp.json.return_value = payload
        responses.append(resp)
    session.post.side_effect = responses
    return BundlerClient(bundler_url("pim_test"), timeout=5, session=session), session


def test_bundler_url_template():
    assert bundler_url("pim_abc") == "https://api.pimlico.io/v2/8453/rpc?apikey=pim_abc"


def test_send_user_operation_posts_json_rpc():
    client, session = _client({"jsonrpc": "2.0", "id": 1, "result": "0xophash"})
    op = UserOperation(sender=ACCOUNT_ADDRESS, nonce=0, call_data=b"")

    assert client.send_user_operation(op, ENTRYPOINT_V07_ADDRESS) == "0xophash"
    url = session.post.call_args.args[0]
    kwargs = session.post.call_args.kwargs
    assert url == client.url
    assert kwargs["timeout"] == 5
    assert kwargs["json"]["method"] == "eth_sendUserOperation"
    assert kwargs["json"]["params"] == [op.to_rpc(), ENTRYPOINT_V07_ADDRESS]


def test_gas_price_parses_fast_tier():
    client, _ = _client({"result": {
        "slow": {"maxFeePerGas": "0x1", "maxPriorityFeePerGas": "0x1"},
        "fast": {"maxFeePerGas": "0x64", "maxPriorityFeePerGas": "0xa"},
    }})
    assert client.gas_price() == {"max_fee_per_gas": 100, "max_priority_fee_per_gas": 10}


def test_rpc_error_becomes_submission_failed():
    client, _ = _client({"error": {"code": -32500, "message": "AA21 didn't pay prefund"}})
    with pytest.raises(SubmissionFailed) as exc:
        client.estimate_user_operation_gas(UserOperation(sender=ACCOUNT_ADDRESS, nonce=0, call_data=b""), ENTRYPOINT_V07_ADDRESS)
    assert "AA21" in str(exc.value)


def test_transport_timeout_is_not_retried():
    session = MagicMock()
    session.post.side_effect = requests.exceptions.Timeout("read timed out")
    client = BundlerClient("https://bundler.invalid", timeout=1, session=session)
    with pytest.raises(SubmissionFailed) as exc:
        client.send_user_operation(UserOperation(sender=ACCOUNT_ADDRESS, nonce=0, call_data=b""), ENTRYPOINT_V07_ADDRESS)
    assert isinstance(exc.value.cause, requests.exceptions.Timeout)
    assert session.post.call_count == 1


def test_http_error_is_wrapped():
    session = MagicMock()
    resp = MagicMock()
    resp.raise_for_status.side_effect = requests.exceptions.HTTPError("401 Unauthorized")
    session.post.return_value = resp
    client = BundlerClient("https://bundler.invalid", session=session)
    with pytest.raises(SubmissionFailed):
        client.gas_price()


def test_wait_for_receipt_polls_until_included(monkeypatch):
    monkeypatch.setattr(bundler_module.time, "sleep", lambda s: None)
    receipt = {"success": True, "receipt": {"transactionHash": "0xtx"}}
    client, session = _client({"result": None}, {"result": receipt})
    assert client.wait_for_receipt("0xophash", timeout=60) == receipt
    assert session.post.call_count == 2


def test_wait_for_receipt_times_out(monkeypatch):
    clock = iter([0.0, 100.0])
    monkeypatch.setattr(bundler_module.time, "monotonic", lambda: next(clock))
    monkeypatch.setattr(bundler_module.time, "sleep", lambda s: None)
    client, _ = _client({"result": None})
    with pytest.raises(SubmissionTimeout) as exc:
        client.wait_for_receipt("0xophash", timeout=30)
    assert exc.value.user_op_hash == "0xophash"


def test_wait_for_receipt_polls_through_transient_errors(monkeypatch):
    monkeypatch.setattr(bundler_module.time, "sleep", lambda s: None)
    receipt = {"success": True, "receipt": {"transactionHash": "0xtx"}}
    ok = MagicMock()
    ok.json.return_value = {"result": receipt}
    session = MagicMock()
    session.post.side_effect = [requests.exceptions.ConnectionError("reset"), ok]
    client = BundlerClient("https://bundler.invalid", session=session)

    assert client.wait_for_receipt("0xophash", timeout=60) == receipt
    assert session.post.call_count == 2


def test_wait_for_receipt_timeout_after_errors_names_the_hash(monkeypatch):
    clock = iter([0.0, 100.0])
    monkeypatch.setattr(bundler_module.time, "monotonic", lambda: next(clock))
    monkeypatch.setattr(bundler_module.time, "sleep", lambda s: None)
    session = MagicMock()
    session.post.side_effect = requests.exceptions.ConnectionError("reset")
    client = BundlerClient("https://bundler.invalid", session=session)

    with pytest.raises(SubmissionTimeout) as exc:
        client.wait_for_receipt("0xophash", timeout=30)
    assert exc.value.user_op_hash == "0xophash"
    assert "0xophash" in str(exc.value)
    assert "reset" in str(exc.value)


def test_close_releases_http_session():
    client, session = _client()
    client.close()
    session.close.assert_called_once()
