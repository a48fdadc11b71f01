"""Analysis tools for the pricing curve."""

from .curve_sweep import SweepSettings, default_cr_grid, is_monotone, sweep_curve

__all__ = [
    "SweepSettings",
    "default_cr_grid",
    "is_monotone",
    "sweep_curve",
]
