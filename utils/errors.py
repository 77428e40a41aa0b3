from typing import Iterable, Optional


class BaseWalletError(Exception):
    """Root of every error the scripts raise on purpose."""

    exit_code = 1


class UsageError(BaseWalletError):
    exit_code = 1

    def __init__(self, message: str, usage: Optional[str] = None):
        super().__init__(message)
        self.usage = usage


class ConfigurationError(BaseWalletError):
    exit_code = 2


class UnknownToken(BaseWalletError):
    exit_code = 3

    def __init__(self, symbol: str, known: Iterable[str]):
        self.symbol = symbol
        self.known = list(known)
        super().__init__(f"Unknown token: {symbol}. Supported tokens: {', '.join(self.known)}")


class InvalidAddress(BaseWalletError):
    exit_code = 3

    def __init__(self, address: str, reason: str = "expected 0x followed by 40 hex characters"):
        self.address = address
        super().__init__(f"Invalid address {address!r}: {reason}")


class InvalidAmount(BaseWalletError):
    exit_code = 3

    def __init__(self, amount: str, reason: str):
        self.amount = amount
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class EmptyBatch(BaseWalletError):
    exit_code = 3

    def __init__(self, message: str = "Batch needs at least one recipient:amount entry"):
        super().__init__(message)


class SubmissionFailed(BaseWalletError):
    """Bundler or RPC failure while submitting a user operation. Never retried."""

    exit_code = 4

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{message}: {cause}" if cause is not None else message)
        self.cause = cause


class SubmissionTimeout(SubmissionFailed):
    def __init__(self, user_op_hash: str, timeout: float, last_error: Optional[BaseException] = None):
        message = f"UserOperation {user_op_hash} not included within {timeout:g}s"
        if last_error is not None:
            message += f" (last poll error: {last_error})"
        super().__init__(message)
        self.user_op_hash = user_op_hash
        self.cause = last_error


class QueryFailed(BaseWalletError):
    """Read-only lookup failure. Reported inline for token balances."""

    exit_code = 5

    def __init__(self, what: str, cause: Optional[BaseException] = None):
        super().__init__(f"{what} failed: {cause}" if cause is not None else f"{what} failed")
        self.what = what
        self.cause = cause
