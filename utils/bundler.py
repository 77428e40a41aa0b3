"""Minimal Pimlico / ERC-4337 bundler JSON-RPC client."""
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .errors import SubmissionFailed, SubmissionTimeout
from .user_operation import UserOperation

logger = logging.getLogger(__name__)


class BundlerClient:
    def __init__(self, url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._next_id = 1

    def _rpc(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        self._next_id += 1
        logger.debug("bundler -> %s", method)
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            raise SubmissionFailed(f"Bundler request {method} timed out after {self.timeout:g}s", e) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise SubmissionFailed(f"Bundler request {method} failed", e) from e

        if not isinstance(data, dict):
            raise SubmissionFailed(f"Bundler returned a non JSON-RPC response to {method}")
        error = data.get("error")
        if error:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise SubmissionFailed(f"Bundler RPC error ({method})", RuntimeError(message))
        return data.get("result")

    def gas_price(self, tier: str = "fast") -> Dict[str, int]:
        result = self._rpc("pimlico_getUserOperationGasPrice", [])
        try:
            fees = result[tier]
            return {
                "max_fee_per_gas": int(fees["maxFeePerGas"], 16),
                "max_priority_fee_per_gas": int(fees["maxPriorityFeePerGas"], 16),
            }
        except (KeyError, TypeError, ValueError) as e:
            raise SubmissionFailed("Bundler returned invalid gas price payload", e) from e

    def sponsor_user_operation(self, user_op: UserOperation, entrypoint: str) -> Dict[str, Any]:
        result = self._rpc("pm_sponsorUserOperation", [user_op.to_rpc(), entrypoint])
        if not isinstance(result, dict):
            raise SubmissionFailed("Paymaster returned invalid sponsorship payload")
        return result

    def estimate_user_operation_gas(self, user_op: UserOperation, entrypoint: str) -> Dict[str, str]:
        result = self._rpc("eth_estimateUserOperationGas", [user_op.to_rpc(), entrypoint])
        if not isinstance(result, dict):
            raise SubmissionFailed("Bundler returned invalid gas estimate payload")
        return result

    def send_user_operation(self, user_op: UserOperation, entrypoint: str) -> str:
        result = self._rpc("eth_sendUserOperation", [user_op.to_rpc(), entrypoint])
        if not isinstance(result, str):
            raise SubmissionFailed("Bundler returned invalid user op hash")
        return result

    def get_user_operation_receipt(self, user_op_hash: str) -> Optional[Dict[str, Any]]:
        result = self._rpc("eth_getUserOperationReceipt", [user_op_hash])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise SubmissionFailed("Bundler returned invalid receipt payload")
        return result

    def wait_for_receipt(self, user_op_hash: str, timeout: float = 120, start_delay: float = 2, max_delay: float = 8) -> Dict[str, Any]:
        """
        Poll eth_getUserOperationReceipt until the operation is included. The
        operation is already in the mempool, so a failed poll is logged and
        polling goes on until the timeout, which reports the hash.
        """
        start = time.monotonic()
        delay = start_delay
        last_error: Optional[SubmissionFailed] = None
        while True:
            try:
                receipt = self.get_user_operation_receipt(user_op_hash)
                if receipt:
                    return receipt
            except SubmissionFailed as e:
                last_error = e
                logger.warning("Receipt poll for %s failed: %s", user_op_hash, e)
            if time.monotonic() - start > timeout:
                raise SubmissionTimeout(user_op_hash, timeout, last_error)
            time.sleep(delay)
            delay = min(max_delay, delay * 1.5)

    def close(self) -> None:
        self.session.close()
