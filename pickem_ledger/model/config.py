"""
Configuration constants for settlement, accumulators and submission deadlines.

Stakes are currency-agnostic units. Display is rounded to DISPLAY_DECIMALS,
arithmetic is not.
"""

# ============================================================================
# STAKES
# ============================================================================

DOUBLE_BET_STAKE = 5            # each player's weekly two-team double
KICKER_BET_STAKE = 1            # exact-score side bet

MAX_ACCA_STAKE = 1              # every pick of every player
FIRST_PICK_ACCA_STAKE = 5       # every player's first pick only


# ============================================================================
# ODDS
# ============================================================================

# Fractional "evens" (1/1). Used as the placeholder price for an accumulator
# leg that has no odds record at all.
EVENS_DECIMAL_ODDS = 2.0

# Parser sentinel for unusable odds strings.
INVALID_ODDS = 0.0


# ============================================================================
# LATE SUBMISSION WINDOW
# ============================================================================

# Submissions in [Saturday 12:00, Sunday 12:00) local time are flagged late.
# Weekdays follow datetime.weekday(): Monday == 0, Sunday == 6.
SATURDAY = 5
SUNDAY = 6
LATE_WINDOW_HOUR = 12

DEFAULT_TIMEZONE = "Europe/London"


# ============================================================================
# DISPLAY
# ============================================================================

DISPLAY_DECIMALS = 2
CURRENCY_SYMBOL = "£"
FAVORITE_TEAMS_LIMIT = 5          # teams listed per player in season stats
