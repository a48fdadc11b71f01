"""Configuration schema and loader."""

from .loader import config_from_dict, load_config
from .schema import Config, Curve, Fees, Limits, Oracle, Switches, VariantSpec

__all__ = [
    "Config",
    "Curve",
    "Fees",
    "Limits",
    "Oracle",
    "Switches",
    "VariantSpec",
    "config_from_dict",
    "load_config",
]
