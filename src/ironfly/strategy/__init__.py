"""
Strategy Package

Strike selection for the iron butterfly strategy.
"""

from ironfly.strategy.strike_selection import (
    STRIKE_DISTANCE_QUANTUM,
    IronButterfly,
    Moneyness,
    classify_moneyness,
    find_at_distance,
    find_atm,
    log_strike_analysis,
    resolve_atm_strike,
    select_iron_butterfly,
    select_wing,
    summarize_strikes,
)

__all__ = [
    "STRIKE_DISTANCE_QUANTUM",
    "IronButterfly",
    "Moneyness",
    "find_atm",
    "find_at_distance",
    "select_wing",
    "select_iron_butterfly",
    "resolve_atm_strike",
    "summarize_strikes",
    "classify_moneyness",
    "log_strike_analysis",
]
