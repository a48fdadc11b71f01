"""Collateralized synthetic position engine."""

from .engine.fixed_point import UNIT
from .engine.ledger import ContractState, PositionCreated, PositionRemoved
from .engine.service import (
    MintEstimate,
    MintResult,
    RedeemEstimate,
    RedeemResult,
    SynthVaultService,
)

__version__ = "0.1.0"

__all__ = [
    "UNIT",
    "ContractState",
    "MintEstimate",
    "MintResult",
    "PositionCreated",
    "PositionRemoved",
    "RedeemEstimate",
    "RedeemResult",
    "SynthVaultService",
]
