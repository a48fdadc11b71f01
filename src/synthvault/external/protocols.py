"""Interfaces of the collaborators the engine calls out to.

Amounts are fixed-point integers; token amounts handed to the issuer are
integer token counts.
"""

from typing import Protocol, Tuple


class PriceOracle(Protocol):
    """Source of current unit prices."""

    def is_valid(self, symbol: str) -> bool:
        ...

    def get_current_price(self, symbol: str) -> int:
        ...


class LiquidityVenue(Protocol):
    """Pool that turns two collateral components into share tokens and back."""

    def add_liquidity(
        self,
        component_a: str,
        component_b: str,
        amount_a: int,
        amount_b: int,
        min_a: int,
        min_b: int,
        recipient: str,
        deadline: int
    ) -> Tuple[int, int, int]:
        """Returns (used_a, used_b, share_amount)."""
        ...

    def remove_liquidity(
        self,
        component_a: str,
        component_b: str,
        share_amount: int,
        min_a: int,
        min_b: int,
        recipient: str,
        deadline: int
    ) -> Tuple[int, int]:
        """Returns (amount_a, amount_b) sent to recipient."""
        ...

    def component_balances(self) -> Tuple[int, int]:
        ...

    def total_share_supply(self) -> int:
        ...


class TokenIssuer(Protocol):
    """Mints and burns the synthetic tokens, one token id per variant."""

    def mint(self, to: str, token_id: int, amount: int, data: bytes) -> None:
        ...

    def burn(self, owner: str, token_id: int, amount: int) -> None:
        ...

    def safe_transfer(self, sender: str, to: str, token_id: int, amount: int, data: bytes) -> None:
        ...


class ComponentToken(Protocol):
    """One of the two collateral components."""
    symbol: str

    def transfer_from(self, sender: str, recipient: str, amount: int) -> None:
        ...

    def transfer(self, recipient: str, amount: int) -> None:
        """Transfer out of the engine's custody."""
        ...


class CapabilityGate(Protocol):
    """Decides who may run administrator-only operations."""

    def has_capability(self, address: str) -> bool:
        ...


class EventSink(Protocol):
    """Receives ledger events after an operation commits."""

    def publish(self, event: object) -> None:
        ...
