"""Interfaces and adapters for external collaborators."""

from .gates import FanoutEventSink, LoggingEventSink, MemoryEventSink, StaticCapabilityGate
from .oracle import OracleAdapter
from .protocols import (
    CapabilityGate,
    ComponentToken,
    EventSink,
    LiquidityVenue,
    PriceOracle,
    TokenIssuer,
)

__all__ = [
    "CapabilityGate",
    "ComponentToken",
    "EventSink",
    "FanoutEventSink",
    "LiquidityVenue",
    "LoggingEventSink",
    "MemoryEventSink",
    "OracleAdapter",
    "PriceOracle",
    "StaticCapabilityGate",
    "TokenIssuer",
]
