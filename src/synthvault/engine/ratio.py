"""Collateralization Ratio Engine - CR from ledger snapshots and oracle prices.

Formula: CR = (collateral_price * collateral_amount) / (synthetic_price * outstanding)

All values are fixed-point; CR = UNIT means 100% collateralized. These are pure
functions over snapshots and never touch the ledger.
"""

from dataclasses import dataclass

from ..errors import NoCollateral
from .fixed_point import UNIT, div, mul
from .ledger import GlobalState, VariantState


@dataclass(frozen=True)
class PriceSnapshot:
    """Unit prices read from the oracle for one operation."""
    collateral_price: int  # Price of one collateral share
    synthetic_price: int  # Price of one unit of synthetic value


def collateralization_ratio(
    collateral_price: int,
    collateral_amount: int,
    synthetic_price: int,
    outstanding: int
) -> int:
    """
    Compute the raw collateralization ratio.

    Raises:
        DivisionByZero: If synthetic_price * outstanding is zero
    """
    return div(mul(collateral_price, collateral_amount), mul(synthetic_price, outstanding))


def variant_ratio(variant: VariantState, prices: PriceSnapshot) -> int:
    """
    CR of a single variant.

    An empty variant (no collateral, or nothing outstanding) counts as exactly
    fully collateralized until its first mint.
    """
    if variant.total_raw_collateral == 0 or variant.total_outstanding == 0:
        return UNIT
    return collateralization_ratio(
        prices.collateral_price,
        variant.total_raw_collateral,
        prices.synthetic_price,
        variant.total_outstanding,
    )


def global_ratio(global_state: GlobalState, prices: PriceSnapshot) -> int:
    """
    CR across all variants.

    Raises:
        NoCollateral: If no collateral is held at all
    """
    if global_state.total_raw_collateral == 0:
        raise NoCollateral("Global collateralization ratio is undefined without collateral")
    if global_state.total_outstanding == 0:
        return UNIT
    return collateralization_ratio(
        prices.collateral_price,
        global_state.total_raw_collateral,
        prices.synthetic_price,
        global_state.total_outstanding,
    )


def collateral_for_value(value: int, prices: PriceSnapshot) -> int:
    """Collateral shares worth `value` of synthetic at current prices (value * Ps / Pc)."""
    return div(mul(value, prices.synthetic_price), prices.collateral_price)
