"""Dynamic Pricing Curve - Offset on redeem, discount on mint.

Key Concepts:
- Target CR: target(cr) = log_base(base, k * cr + 1), with base = 10 and k = 9.3 by default
- Offset (redeem, cr < 1): the redeemer receives less than the nominal share so
  remaining holders are not starved
- Discount (mint, cr > 1): the minter deposits less than the nominal share so CR
  is pulled back toward 1
- A target of exactly 1 unit means no adjustment

Adjustment for a proposed collateral delta d and value delta v on a variant with
collateral C and outstanding O:
    redeem:  adjusted = target * (O - v) * Ps / Pc,  gap = adjusted - (C - d)
    mint:    adjusted = target * (O + v) * Ps / Pc,  gap = (C + d) - adjusted
    adjustment = clamp(gap * d / C, 0, d)
C is the variant's collateral before the operation.
"""

from dataclasses import dataclass

from .fixed_point import UNIT, from_decimal, log_base, mul, mul_div, to_unsigned
from .ledger import VariantState
from .ratio import PriceSnapshot, collateral_for_value, variant_ratio

DEFAULT_BASE = 10 * UNIT
DEFAULT_K = from_decimal("9.3")


@dataclass(frozen=True)
class CurveParameters:
    """Shape of the target CR curve (fixed-point)."""
    base: int = DEFAULT_BASE
    k: int = DEFAULT_K


def target_ratio(cr: int, params: CurveParameters = CurveParameters()) -> int:
    """Unclamped target CR for a current CR."""
    return to_unsigned(log_base(params.base, mul(params.k, cr) + UNIT))


def offset_target(cr: int, params: CurveParameters = CurveParameters()) -> int:
    """
    Target CR for redemptions; UNIT when no offset applies.

    Only a strictly under-collateralized variant (0 < cr < 1) gets an offset,
    so CR = 1 never adjusts even when tuned parameters put target(1) below 1.
    """
    if 0 < cr < UNIT:
        target = target_ratio(cr, params)
        if target <= UNIT:
            return target
    return UNIT


def discount_target(cr: int, params: CurveParameters = CurveParameters()) -> int:
    """Target CR for mints; UNIT when no discount applies."""
    if cr > UNIT:
        target = target_ratio(cr, params)
        if cr > target:
            return target
    return UNIT


def compute_offset(
    variant: VariantState,
    prices: PriceSnapshot,
    collateral_delta: int,
    value_delta: int,
    target: int
) -> int:
    """
    Collateral withheld from a redemption.

    Args:
        variant: Variant state before the redemption
        prices: Oracle prices for this operation
        collateral_delta: Collateral that would leave under a pro-rata exchange
        value_delta: Outstanding value being redeemed
        target: Offset target CR

    Returns:
        Offset in collateral shares, between 0 and collateral_delta
    """
    if target == UNIT or collateral_delta == 0 or variant.total_raw_collateral == 0:
        return 0

    remaining_value = max(0, variant.total_outstanding - value_delta)
    adjusted_total = collateral_for_value(mul(target, remaining_value), prices)
    proposed_total = variant.total_raw_collateral - collateral_delta

    gap = adjusted_total - proposed_total
    if gap <= 0:
        return 0
    offset = mul_div(gap, collateral_delta, variant.total_raw_collateral)
    return min(offset, collateral_delta)


def compute_discount(
    variant: VariantState,
    prices: PriceSnapshot,
    collateral_delta: int,
    value_delta: int,
    target: int
) -> int:
    """
    Collateral waived from a mint.

    Args:
        variant: Variant state before the mint
        prices: Oracle prices for this operation
        collateral_delta: Collateral a pro-rata mint would deposit
        value_delta: Outstanding value being issued
        target: Discount target CR

    Returns:
        Discount in collateral shares, between 0 and collateral_delta
    """
    if target == UNIT or collateral_delta == 0 or variant.total_raw_collateral == 0:
        return 0

    new_value = variant.total_outstanding + value_delta
    adjusted_total = collateral_for_value(mul(target, new_value), prices)
    proposed_total = variant.total_raw_collateral + collateral_delta

    gap = proposed_total - adjusted_total
    if gap <= 0:
        return 0
    discount = mul_div(gap, collateral_delta, variant.total_raw_collateral)
    return min(discount, collateral_delta)


class PricingCurve:
    """Curve parameters plus the switches that turn each adjustment off."""

    def __init__(
        self,
        params: CurveParameters = CurveParameters(),
        offset_disabled: bool = False,
        discount_disabled: bool = False
    ):
        """
        Initialize pricing curve.

        Args:
            params: Curve shape
            offset_disabled: Redeem at pure pro-rata when True
            discount_disabled: Mint at pure pro-rata when True
        """
        self.params = params
        self.offset_disabled = offset_disabled
        self.discount_disabled = discount_disabled

    def target_ratio(self, cr: int) -> int:
        return target_ratio(cr, self.params)

    def offset_target(self, cr: int) -> int:
        return offset_target(cr, self.params)

    def discount_target(self, cr: int) -> int:
        return discount_target(cr, self.params)

    def offset(
        self,
        variant: VariantState,
        prices: PriceSnapshot,
        collateral_delta: int,
        value_delta: int
    ) -> int:
        """Offset for a redemption against the variant's current CR."""
        if self.offset_disabled:
            return 0
        target = self.offset_target(variant_ratio(variant, prices))
        return compute_offset(variant, prices, collateral_delta, value_delta, target)

    def discount(
        self,
        variant: VariantState,
        prices: PriceSnapshot,
        collateral_delta: int,
        value_delta: int
    ) -> int:
        """Discount for a mint against the variant's current CR."""
        if self.discount_disabled:
            return 0
        target = self.discount_target(variant_ratio(variant, prices))
        return compute_discount(variant, prices, collateral_delta, value_delta, target)
