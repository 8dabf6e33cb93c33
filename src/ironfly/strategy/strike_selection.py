"""
Iron Butterfly Strike Selection

Selects the legs of an iron butterfly from a normalized chain snapshot:
ATM call + ATM put (short body) and an OTM call + OTM put (protective wings)
at a configured strike distance.

Selection rules:
- ATM: minimum abs(strike - reference_price) per option type, first in chain
  order wins ties
- Wing candidates: abs(strike - atm_strike) >= strike_distance * STRIKE_DISTANCE_QUANTUM,
  stable ascending sort by that distance; the wing is the last candidate
- Any missing leg means "no trade", never a nearer fallback strike

Note:
    strike_distance counts strike steps while strikes are quoted in whole
    currency units; STRIKE_DISTANCE_QUANTUM (1000) is the assumed step size.
    Instruments with a different strike step need a different quantum.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ironfly.core.models import OptionContract, OptionType


STRIKE_DISTANCE_QUANTUM = Decimal(1000)


class Moneyness(str, Enum):
    """Moneyness of a contract relative to the reference price."""

    ITM = "ITM"
    ATM = "ATM"
    OTM = "OTM"


@dataclass(slots=True)
class IronButterfly:
    """
    Selected iron butterfly legs.

    Attributes:
        atm_call: Short call at the ATM strike
        atm_put: Short put at the ATM strike
        wing_call: Long protective call
        wing_put: Long protective put
        atm_strike: Strike the wings were measured from
        reference_price: Futures price used for ATM selection
    """

    atm_call: OptionContract
    atm_put: OptionContract
    wing_call: OptionContract
    wing_put: OptionContract
    atm_strike: Decimal
    reference_price: Decimal

    @property
    def legs(self) -> List[OptionContract]:
        return [self.atm_call, self.atm_put, self.wing_call, self.wing_put]

    @property
    def wing_width(self) -> Decimal:
        """Widest distance of either wing from the ATM strike."""
        return max(
            abs(self.wing_call.strike - self.atm_strike),
            abs(self.wing_put.strike - self.atm_strike),
        )


def find_atm(
    chain: Sequence[OptionContract],
    reference_price: Decimal,
    option_type: OptionType,
) -> Optional[OptionContract]:
    """
    Find the contract of option_type whose strike is closest to reference_price.

    Args:
        chain: Normalized chain snapshot
        reference_price: Underlying reference (futures) price
        option_type: CALL or PUT

    Returns:
        Closest contract (first in chain order on ties), or None if the chain
        has no contract of that type
    """
    closest: Optional[OptionContract] = None
    smallest_difference: Optional[Decimal] = None

    for contract in chain:
        if contract.option_type != option_type:
            continue
        difference = abs(contract.strike - reference_price)
        if smallest_difference is None or difference < smallest_difference:
            smallest_difference = difference
            closest = contract

    if closest is not None:
        logger.info(
            f"Found ATM {option_type.name} option: {closest.symbol} at strike {closest.strike} "
            f"(futures price: {reference_price})"
        )
    return closest


def find_at_distance(
    chain: Sequence[OptionContract],
    atm_strike: Decimal,
    strike_distance: int,
    option_type: OptionType,
) -> List[OptionContract]:
    """
    Find contracts of option_type at least strike_distance steps from atm_strike.

    The boundary is inclusive. Results are sorted ascending by distance from
    atm_strike; equal distances keep chain order.
    """
    threshold = Decimal(strike_distance) * STRIKE_DISTANCE_QUANTUM

    candidates = [
        contract for contract in chain
        if contract.option_type == option_type
        and abs(contract.strike - atm_strike) >= threshold
    ]
    candidates.sort(key=lambda c: abs(c.strike - atm_strike))
    return candidates


def select_wing(
    chain: Sequence[OptionContract],
    atm_strike: Decimal,
    strike_distance: int,
    option_type: OptionType,
) -> Optional[OptionContract]:
    """Return the furthest qualifying contract, or None when no wing exists."""
    candidates = find_at_distance(chain, atm_strike, strike_distance, option_type)
    if not candidates:
        logger.warning(
            f"No suitable OTM {option_type.name.lower()} found {strike_distance} strikes "
            f"from ATM {atm_strike}"
        )
        return None

    wing = candidates[-1]
    logger.info(
        f"Found OTM {option_type.name.lower()} option: {wing.symbol} at strike {wing.strike} "
        f"({len(candidates)} candidates from ATM {atm_strike})"
    )
    return wing


def select_iron_butterfly(
    chain: Sequence[OptionContract],
    reference_price: Decimal,
    strike_distance: int,
) -> Optional[IronButterfly]:
    """
    Select all four iron butterfly legs.

    Wings are measured from the ATM call strike.

    Returns:
        IronButterfly, or None ("no trade") when any leg is missing
    """
    atm_call = find_atm(chain, reference_price, OptionType.CALL)
    atm_put = find_atm(chain, reference_price, OptionType.PUT)

    if atm_call is None or atm_put is None:
        logger.warning(
            f"No trade: missing ATM leg (call={atm_call is not None}, put={atm_put is not None})"
        )
        return None

    atm_strike = atm_call.strike

    wing_call = select_wing(chain, atm_strike, strike_distance, OptionType.CALL)
    wing_put = select_wing(chain, atm_strike, strike_distance, OptionType.PUT)

    if wing_call is None or wing_put is None:
        logger.warning("No trade: protective wing missing")
        return None

    butterfly = IronButterfly(
        atm_call=atm_call,
        atm_put=atm_put,
        wing_call=wing_call,
        wing_put=wing_put,
        atm_strike=atm_strike,
        reference_price=reference_price,
    )
    logger.info(
        f"✓ Iron butterfly: short {atm_call.strike}C/{atm_put.strike}P, "
        f"long {wing_call.strike}C/{wing_put.strike}P"
    )
    return butterfly


def resolve_atm_strike(chain: Sequence[OptionContract], reference_price: Decimal) -> Decimal:
    """ATM call strike, else ATM put strike, else the reference price itself."""
    atm = find_atm(chain, reference_price, OptionType.CALL) or find_atm(
        chain, reference_price, OptionType.PUT
    )
    return atm.strike if atm is not None else reference_price


def summarize_strikes(
    chain: Sequence[OptionContract],
    atm_strike: Decimal,
    strike_distance: int,
) -> Dict[OptionType, List[Decimal]]:
    """
    Wing candidate strikes per option type, nearest first.

    Returns:
        {OptionType.CALL: [...], OptionType.PUT: [...]}
    """
    summary = {
        option_type: [c.strike for c in find_at_distance(chain, atm_strike, strike_distance, option_type)]
        for option_type in (OptionType.CALL, OptionType.PUT)
    }

    logger.info(f"Available strikes within {strike_distance} positions from ATM {atm_strike}:")
    logger.info(f"  Calls ({len(summary[OptionType.CALL])}): {[str(s) for s in summary[OptionType.CALL]]}")
    logger.info(f"  Puts ({len(summary[OptionType.PUT])}): {[str(s) for s in summary[OptionType.PUT]]}")
    return summary


def classify_moneyness(contract: OptionContract, reference_price: Decimal) -> Moneyness:
    """
    Classify a contract against reference_price.

    Calls are ITM below the reference price, puts above it; an exact match is ATM.
    """
    if contract.strike == reference_price:
        return Moneyness.ATM
    if contract.option_type == OptionType.CALL:
        return Moneyness.ITM if contract.strike < reference_price else Moneyness.OTM
    return Moneyness.ITM if contract.strike > reference_price else Moneyness.OTM


def log_strike_analysis(
    chain: Sequence[OptionContract],
    reference_price: Decimal,
    strike_distance: int,
) -> None:
    """Log every strike by type and moneyness plus the wing candidates."""
    logger.info("=== STRIKE ANALYSIS ===")
    logger.info(f"Reference price: {reference_price}")

    atm_strike = resolve_atm_strike(chain, reference_price)
    logger.info(f"ATM strike: {atm_strike}")

    calls = sorted((c for c in chain if c.option_type == OptionType.CALL), key=lambda c: c.strike)
    puts = sorted(
        (c for c in chain if c.option_type == OptionType.PUT), key=lambda c: c.strike, reverse=True
    )

    logger.info("CALL OPTIONS:")
    for contract in calls:
        logger.info(f"  {classify_moneyness(contract, reference_price).value} Call @ {contract.strike} ({contract.symbol})")

    logger.info("PUT OPTIONS:")
    for contract in puts:
        logger.info(f"  {classify_moneyness(contract, reference_price).value} Put @ {contract.strike} ({contract.symbol})")

    summarize_strikes(chain, atm_strike, strike_distance)
