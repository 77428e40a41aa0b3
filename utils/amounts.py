import re

from .errors import InvalidAmount

_AMOUNT_RE = re.compile(r"^(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?$", re.ASCII)


def _check_decimals(decimals: int) -> None:
    if not 0 <= int(decimals) <= 18:
        raise ValueError(f"decimals must be within 0..18, got {decimals}")


def to_base_units(amount: str, decimals: int) -> int:
    """
    Convert a human amount like "1.5" into integer base units (1.5 USDC -> 1500000).
    Rejects signs, exponents and anything with more fractional digits than the
    token supports instead of rounding.
    """
    _check_decimals(decimals)
    raw = amount if isinstance(amount, str) else str(amount)
    s = raw.strip()
    if not s:
        raise InvalidAmount(raw, "amount is empty")
    if s[0] in "+-":
        raise InvalidAmount(raw, "sign is not allowed, amount must be a plain non-negative number")

    m = _AMOUNT_RE.match(s)
    if not m:
        raise InvalidAmount(raw, "only digits and a single '.' are allowed")
    whole = m.group("whole") or ""
    frac = m.group("frac") or ""
    if not whole and not frac:
        raise InvalidAmount(raw, "no digits found")
    if len(frac) > decimals:
        raise InvalidAmount(raw, f"{len(frac)} fractional digits exceed the token's {decimals} decimals")

    return int(whole or "0") * 10 ** decimals + int(frac.ljust(decimals, "0") or "0")


def to_decimal_string(base_units: int, decimals: int) -> str:
    _check_decimals(decimals)
    value = int(base_units)
    if value < 0:
        raise ValueError(f"base units must be non-negative, got {value}")
    whole, frac = divmod(value, 10 ** decimals)
    if decimals == 0 or frac == 0:
        return str(whole)
    return f"{whole}.{str(frac).rjust(decimals, '0').rstrip('0')}"
