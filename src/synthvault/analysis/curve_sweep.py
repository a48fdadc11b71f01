"""Sweep of the pricing curve over a grid of collateralization ratios."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from ..engine.fixed_point import UNIT, from_decimal
from ..engine.ledger import VariantState
from ..engine.pricing_curve import (
    CurveParameters,
    compute_discount,
    compute_offset,
    discount_target,
    offset_target,
    target_ratio,
)
from ..engine.ratio import PriceSnapshot


@dataclass
class SweepSettings:
    """Reference variant used to turn targets into adjustment fractions."""
    outstanding_tokens: int = 1_000_000  # Tokens outstanding at nominal 1
    trade_fraction: float = 0.01  # Size of the probed mint/redeem relative to outstanding


def default_cr_grid(low: float = 0.05, high: float = 3.0, num_points: int = 60) -> np.ndarray:
    """Evenly spaced CR values, with 1.0 always included."""
    grid = np.linspace(low, high, num_points)
    return np.unique(np.append(grid, 1.0))


def _reference_variant(cr: int, settings: SweepSettings) -> VariantState:
    outstanding = settings.outstanding_tokens * UNIT
    return VariantState(
        variant_id=0,
        name="sweep",
        token_id=0,
        nominal_value=UNIT,
        total_raw_collateral=outstanding * cr // UNIT,
        total_outstanding=outstanding,
        total_issued=settings.outstanding_tokens,
    )


def sweep_curve(
    cr_values: Sequence[float],
    params: CurveParameters = CurveParameters(),
    settings: SweepSettings = SweepSettings()
) -> pd.DataFrame:
    """
    Evaluate the curve and the resulting adjustments at each CR.

    Args:
        cr_values: Collateralization ratios as plain floats (1.0 = 100%)
        params: Curve shape
        settings: Reference variant and probe size

    Returns:
        DataFrame with columns cr, target, offset_target, discount_target,
        offset_fraction, discount_fraction
    """
    prices = PriceSnapshot(collateral_price=UNIT, synthetic_price=UNIT)
    trade_tokens = max(1, int(settings.outstanding_tokens * settings.trade_fraction))
    delta = trade_tokens * UNIT

    rows = []
    for cr_float in np.asarray(cr_values, dtype=float):
        cr = from_decimal(repr(float(cr_float)))
        variant = _reference_variant(cr, settings)
        off_target = offset_target(cr, params)
        disc_target = discount_target(cr, params)
        offset = compute_offset(variant, prices, delta, delta, off_target)
        discount = compute_discount(variant, prices, delta, delta, disc_target)
        rows.append({
            'cr': float(cr_float),
            'target': target_ratio(cr, params) / UNIT,
            'offset_target': off_target / UNIT,
            'discount_target': disc_target / UNIT,
            'offset_fraction': offset / delta,
            'discount_fraction': discount / delta,
        })

    return pd.DataFrame(rows)


def is_monotone(series: pd.Series, increasing: bool = True) -> bool:
    """True if a series never moves against the given direction."""
    diffs = np.diff(series.to_numpy())
    return bool(np.all(diffs >= 0)) if increasing else bool(np.all(diffs <= 0))
