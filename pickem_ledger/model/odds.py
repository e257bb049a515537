"""
Odds parsing.

Converts the odds strings admins type in ("5/1", "11/10", "2.5") into
decimal multipliers. Fractional odds exclude the stake, so one is added
back: 5/1 -> 6.0, evens (1/1) -> 2.0.
"""

import math

from .config import CURRENCY_SYMBOL, DISPLAY_DECIMALS, INVALID_ODDS


def _to_number(text: str) -> float:
    value = float(text.strip())
    if not math.isfinite(value):
        raise ValueError(f"non-finite odds component: {text!r}")
    return value


def parse_odds(odds_text: str) -> float:
    """
    Parse a fractional ("N/D") or decimal odds string.

    Args:
        odds_text: Odds as entered, e.g. "5/1" or "2.5"

    Returns:
        Decimal multiplier, or 0.0 if the string is unusable
        (unparseable parts, zero denominator, negative or overflowing price).
    """
    try:
        trimmed = odds_text.strip()
        if "/" in trimmed:
            parts = trimmed.split("/")
            if len(parts) != 2:
                return INVALID_ODDS
            numerator = _to_number(parts[0])
            denominator = _to_number(parts[1])
            if denominator == 0:
                return INVALID_ODDS
            decimal_odds = (numerator / denominator) + 1
        else:
            decimal_odds = _to_number(trimmed)
    except (AttributeError, TypeError, ValueError, OverflowError):
        return INVALID_ODDS

    if decimal_odds < 0 or not math.isfinite(decimal_odds):
        return INVALID_ODDS
    return decimal_odds


def is_usable_odds(decimal_odds: float) -> bool:
    """A parsed price is only usable as a settlement multiplier if it is positive."""
    return decimal_odds > 0


def format_money(amount: float) -> str:
    """Format an amount for display, e.g. 120.0 -> '£120.00'."""
    return f"{CURRENCY_SYMBOL}{amount:.{DISPLAY_DECIMALS}f}"
