"""
Fee-aware stake split for a pair of opposing outcomes.

Buying both sides of an event with stakes proportional to their prices makes
the payout identical whichever side wins:

    investment_x = total_stake * price_x / (price_a + price_b)
    payout       = investment_a / price_a  (== investment_b / price_b)

The hedge is profitable when that payout exceeds the stake plus fees.
"""

import math
from typing import Dict, Optional

from . import config
from .models import ArbitrageCalculation, ArbitrageOpportunity, Platform

PLATFORM_FEES: Dict[str, float] = dict(config.PLATFORM_FEES)


def platform_fee(platform: Platform) -> float:
    """Flat fee rate for a platform (0 when unknown)."""
    return PLATFORM_FEES.get(platform.value, 0.0)


def _invalid() -> ArbitrageCalculation:
    return ArbitrageCalculation(
        investment_a=0.0,
        investment_b=0.0,
        payout=0.0,
        fee_a=0.0,
        fee_b=0.0,
        total_fees=0.0,
        net_profit=0.0,
        roi=0.0,
        is_valid=False,
    )


def calculate_arbitrage(
    price_a: float,
    price_b: float,
    total_stake: float = config.DEFAULT_STAKE,
    fee_a: float = 0.0,
    fee_b: float = 0.0,
) -> ArbitrageCalculation:
    """
    Split a stake across two opposing outcomes.

    Args:
        price_a: Price of side A (0-1)
        price_b: Price of side B (0-1)
        total_stake: Total amount to invest
        fee_a: Fee rate on the stake placed with A
        fee_b: Fee rate on the stake placed with B

    Returns:
        ArbitrageCalculation; a zeroed, invalid one when the inputs can't be split
    """
    price_sum = price_a + price_b
    if total_stake <= 0 or price_sum <= 0 or price_a <= 0 or price_b <= 0:
        return _invalid()

    investment_a = total_stake * price_a / price_sum
    investment_b = total_stake * price_b / price_sum
    payout = investment_a / price_a

    fee_amount_a = investment_a * fee_a
    fee_amount_b = investment_b * fee_b
    total_fees = fee_amount_a + fee_amount_b

    net_profit = payout - total_stake - total_fees
    roi = net_profit / total_stake * 100

    if not math.isfinite(roi):
        return _invalid()

    return ArbitrageCalculation(
        investment_a=investment_a,
        investment_b=investment_b,
        payout=payout,
        fee_a=fee_amount_a,
        fee_b=fee_amount_b,
        total_fees=total_fees,
        net_profit=net_profit,
        roi=roi,
        is_valid=net_profit > 0,
    )


def calculate_for_investment(
    opportunity: ArbitrageOpportunity,
    amount: float,
    opposing_price: Optional[float] = None,
) -> ArbitrageCalculation:
    """
    Re-derive the stake split for an emitted opportunity at a different amount.

    The cheap leg is bought as-is. The other side is its opposing outcome: the
    price recorded in the opportunity metadata, or `opposing_price` when given.
    """
    if opposing_price is None:
        opposing_price = opportunity.metadata.get("opposing_price")
    if opposing_price is None:
        opposing_price = 1.0 - opportunity.best_sell.price

    return calculate_arbitrage(
        opportunity.best_buy.price,
        opposing_price,
        amount,
        platform_fee(opportunity.best_buy.platform),
        platform_fee(opportunity.best_sell.platform),
    )
