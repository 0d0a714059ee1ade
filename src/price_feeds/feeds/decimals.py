"""Fixed-point conversion between decimal price strings and scaled integers.

Prices are stored as integers scaled by ``10**decimals`` so no float ever
touches a currency value. Two conversion policies exist:

- ``truncating_to_fixed`` keeps only the first ``decimals`` *characters* of
  the string before scaling. It is the default policy. When the integer part
  is longer than ``decimals`` the cut lands inside the integer part
  (``"183.345"`` at 2 decimals becomes ``18``).
  A ``PrecisionTruncationDefect`` warning is emitted when that happens.
- ``rounding_to_fixed`` scales the exact decimal value and rounds half-up.
  It is the candidate replacement, selected with ``PrecisionPolicy.ROUND``.
"""

from __future__ import annotations

import re
import warnings
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from functools import partial
from typing import Callable

from price_feeds.core.exceptions import PrecisionTruncationDefect
from price_feeds.core.models import PrecisionPolicy

_DECIMAL_RE = re.compile(r"-?[0-9.]+")

Converter = Callable[[str], int]


def parse_fixed(value: str, decimals: int) -> int:
    """Scale an exact decimal string by ``10**decimals``.

    Raises:
        ValueError: malformed input, or more significant fractional digits
            than ``decimals`` can represent.
    """
    if not _DECIMAL_RE.fullmatch(value):
        raise ValueError(f"invalid decimal value: {value!r}")

    negative = value.startswith("-")
    if negative:
        value = value[1:]
    if value == ".":
        raise ValueError(f"missing value: {value!r}")

    whole, _, fraction = value.partition(".")
    if "." in fraction:
        raise ValueError(f"too many decimal points: {value!r}")

    whole = whole or "0"
    fraction = fraction.rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(
            f"fractional component exceeds decimals: {value!r} ({decimals} allowed)"
        )

    scaled = int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    return -scaled if negative else scaled


def truncating_to_fixed(raw: str, decimals: int) -> int:
    """Truncate ``raw`` to ``decimals`` characters, then scale it."""
    text = str(raw).strip()
    truncated = text[:decimals]

    whole_digits = len(text.lstrip("-").partition(".")[0])
    kept_digits = len(truncated.lstrip("-").partition(".")[0])
    if kept_digits < whole_digits:
        warnings.warn(
            f"truncating {text!r} to {decimals} characters dropped integer digits "
            f"(stored as {truncated!r})",
            PrecisionTruncationDefect,
            stacklevel=2,
        )

    return parse_fixed(truncated, decimals)


def rounding_to_fixed(raw: str, decimals: int) -> int:
    """Scale the exact decimal value of ``raw`` and round half-up."""
    text = str(raw).strip()
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"invalid decimal value: {text!r}") from e
    if not value.is_finite():
        raise ValueError(f"invalid decimal value: {text!r}")

    with localcontext(prec=max(28, len(text) + decimals + 2)):
        scaled = value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(scaled)


def converter_for(policy: PrecisionPolicy, decimals: int) -> Converter:
    """Return the single-argument converter a source uses to scale prices."""
    if policy == PrecisionPolicy.ROUND:
        return partial(rounding_to_fixed, decimals=decimals)
    return partial(truncating_to_fixed, decimals=decimals)


def format_fixed(value: int, decimals: int) -> str:
    """Render a scaled integer as a plain decimal string (``1833 @ 1 -> '183.3'``)."""
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    if not fraction_str:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction_str}"
