"""Position Ledger - Per-variant and aggregate collateral/outstanding accounting.

Ledger Semantics:
- total_raw_collateral: collateral shares backing a variant (fixed-point, >= 0)
- total_outstanding: nominal value of issued-and-not-burnt tokens (fixed-point)
- total_issued / total_burnt: integer token counters, only ever increase
- accrued_fees: redeem fees retained in custody, outside any variant

Identities (hold at every observation point):
    total_outstanding == nominal_value * (total_issued - total_burnt)
    global.total_raw_collateral == sum(v.total_raw_collateral for v in variants)
    global.total_outstanding == sum(v.total_outstanding for v in variants)

Every mutation computes all new values first and assigns only once they pass
their checks, so a failed mutation leaves the ledger untouched. The ledger does
no I/O; mutations return event values for the caller to publish.
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..errors import (
    InsufficientBalance,
    InsufficientCollateral,
    InvalidAmount,
    InvalidContractState,
    Overflow,
    UnknownVariant,
)
from .fixed_point import MAX_UINT, checked_add


class ContractState(Enum):
    """Operational mode of the engine."""
    INITIAL = "initial"
    NORMAL = "normal"
    EMERGENCY = "emergency"
    EXPIRED = "expired"


# Administrator-driven transitions; EXPIRED is terminal
ALLOWED_TRANSITIONS = {
    ContractState.INITIAL: {ContractState.NORMAL},
    ContractState.NORMAL: {ContractState.EMERGENCY, ContractState.EXPIRED},
    ContractState.EMERGENCY: {ContractState.NORMAL, ContractState.EXPIRED},
    ContractState.EXPIRED: set(),
}


@dataclass
class VariantState:
    """One synthetic product flavor."""
    variant_id: int
    name: str
    token_id: int  # Issuer-side token id
    nominal_value: int  # Fixed-point value of one token at CR = 1
    total_raw_collateral: int = 0  # Collateral shares (fixed-point)
    total_outstanding: int = 0  # Fixed-point value
    total_issued: int = 0  # Token count
    total_burnt: int = 0  # Token count
    disabled: bool = False

    @property
    def circulating_tokens(self) -> int:
        """Tokens issued and not yet burnt."""
        return self.total_issued - self.total_burnt

    def validate_outstanding(self) -> Tuple[bool, Optional[str]]:
        """
        Validate outstanding value against the issue/burn counters.

        Returns:
            (is_valid, error_message)
        """
        expected = self.nominal_value * self.circulating_tokens
        if self.total_outstanding != expected:
            return False, (
                f"Outstanding mismatch for variant {self.variant_id}: "
                f"stored={self.total_outstanding}, expected={expected} "
                f"(nominal={self.nominal_value}, issued={self.total_issued}, "
                f"burnt={self.total_burnt})"
            )
        return True, None

    def validate_non_negative(self) -> Tuple[bool, Optional[str]]:
        """Validate all buckets are non-negative."""
        buckets = [
            ('total_raw_collateral', self.total_raw_collateral),
            ('total_outstanding', self.total_outstanding),
            ('total_issued', self.total_issued),
            ('total_burnt', self.total_burnt),
            ('circulating_tokens', self.circulating_tokens),
        ]
        for name, value in buckets:
            if value < 0:
                return False, f"Negative bucket for variant {self.variant_id}: {name}={value}"
        return True, None


@dataclass
class GlobalState:
    """Aggregate totals across all variants."""
    total_raw_collateral: int = 0
    total_outstanding: int = 0
    accrued_fees: int = 0  # Redeem fees held in custody (collateral shares)


@dataclass
class MinterRecord:
    """Holdings and activity of one minter address."""
    amounts: Dict[int, int] = field(default_factory=dict)  # variant_id -> tokens
    last_activity: int = 0  # Unix seconds
    redeem_fee_claimed: int = 0  # Cumulative fee shares charged on redeem

    def amount(self, variant_id: int) -> int:
        return self.amounts.get(variant_id, 0)


@dataclass(frozen=True)
class PositionCreated:
    """Emitted when a minter opens or grows a position."""
    minter: str
    variant_id: int
    nominal_value: int
    collateral_amount: int
    token_amount: int
    timestamp: int


@dataclass(frozen=True)
class PositionRemoved:
    """Emitted when a minter shrinks or closes a position."""
    minter: str
    variant_id: int
    nominal_value: int
    collateral_amount: int
    token_amount: int
    timestamp: int


@dataclass(frozen=True)
class LedgerSnapshot:
    """Consistent, immutable view of the ledger for read paths."""
    global_state: GlobalState
    variants: Tuple[VariantState, ...]
    contract_state: ContractState

    def variant(self, variant_id: int) -> VariantState:
        if variant_id < 0 or variant_id >= len(self.variants):
            raise UnknownVariant(f"Unknown variant id {variant_id}")
        return self.variants[variant_id]


@dataclass(frozen=True)
class LedgerCheckpoint:
    """Opaque copy of the full ledger used for rollback."""
    global_state: GlobalState
    variants: Tuple[VariantState, ...]
    minters: Dict[str, MinterRecord]
    contract_state: ContractState


class PositionLedger:
    """Invariant-preserving ledger of variants, minters and global totals."""

    def __init__(self):
        """Initialize an empty ledger in the INITIAL state."""
        self.global_state = GlobalState()
        self.variants: List[VariantState] = []
        self.minters: Dict[str, MinterRecord] = {}
        self.contract_state = ContractState.INITIAL

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def variant(self, variant_id: int) -> VariantState:
        """Return the live variant record, raising UnknownVariant if absent."""
        if not isinstance(variant_id, int) or variant_id < 0 or variant_id >= len(self.variants):
            raise UnknownVariant(f"Unknown variant id {variant_id}")
        return self.variants[variant_id]

    def minter(self, minter: str) -> Optional[MinterRecord]:
        return self.minters.get(minter)

    def minter_amount(self, minter: str, variant_id: int) -> int:
        """Tokens of a variant held by a minter (0 for unknown minters)."""
        self.variant(variant_id)
        record = self.minters.get(minter)
        return record.amount(variant_id) if record else 0

    def snapshot(self) -> LedgerSnapshot:
        """Copy global and per-variant state into an immutable snapshot."""
        return LedgerSnapshot(
            global_state=replace(self.global_state),
            variants=tuple(replace(v) for v in self.variants),
            contract_state=self.contract_state,
        )

    def checkpoint(self) -> LedgerCheckpoint:
        """Capture the whole ledger, minter table included."""
        return LedgerCheckpoint(
            global_state=replace(self.global_state),
            variants=tuple(replace(v) for v in self.variants),
            minters=copy.deepcopy(self.minters),
            contract_state=self.contract_state,
        )

    def restore(self, checkpoint: LedgerCheckpoint):
        """Roll the ledger back to a checkpoint."""
        self.global_state = replace(checkpoint.global_state)
        self.variants = [replace(v) for v in checkpoint.variants]
        self.minters = copy.deepcopy(checkpoint.minters)
        self.contract_state = checkpoint.contract_state

    # ------------------------------------------------------------------
    # Position mutations
    # ------------------------------------------------------------------

    def create_position(
        self,
        minter: str,
        variant_id: int,
        collateral_amount: int,
        token_amount: int,
        timestamp: int
    ) -> PositionCreated:
        """
        Record a new position: collateral in, tokens issued.

        Args:
            minter: Minter address
            variant_id: Variant being minted
            collateral_amount: Collateral shares deposited (fixed-point)
            token_amount: Tokens issued (count)
            timestamp: Activity time in unix seconds

        Returns:
            PositionCreated event

        Raises:
            Overflow: If any counter would exceed the unsigned range
        """
        variant = self.variant(variant_id)
        _check_amounts(collateral_amount, token_amount)

        new_issued = checked_add(variant.total_issued, token_amount)
        outstanding_delta = variant.nominal_value * token_amount
        new_outstanding = checked_add(variant.total_outstanding, outstanding_delta)
        new_collateral = checked_add(variant.total_raw_collateral, collateral_amount)
        new_global_collateral = checked_add(self.global_state.total_raw_collateral, collateral_amount)
        new_global_outstanding = checked_add(self.global_state.total_outstanding, outstanding_delta)

        record = self.minters.get(minter) or MinterRecord()
        new_held = checked_add(record.amount(variant_id), token_amount)

        variant.total_issued = new_issued
        variant.total_outstanding = new_outstanding
        variant.total_raw_collateral = new_collateral
        self.global_state.total_raw_collateral = new_global_collateral
        self.global_state.total_outstanding = new_global_outstanding
        record.amounts[variant_id] = new_held
        record.last_activity = timestamp
        self.minters[minter] = record

        return PositionCreated(
            minter=minter,
            variant_id=variant_id,
            nominal_value=variant.nominal_value,
            collateral_amount=collateral_amount,
            token_amount=token_amount,
            timestamp=timestamp,
        )

    def remove_position(
        self,
        minter: str,
        variant_id: int,
        collateral_amount: int,
        token_amount: int,
        timestamp: int
    ) -> PositionRemoved:
        """
        Shrink a position: tokens burnt, collateral out.

        Raises:
            InsufficientBalance: If the minter holds fewer than token_amount tokens
            InsufficientCollateral: If collateral or outstanding would go negative
        """
        variant = self.variant(variant_id)
        _check_amounts(collateral_amount, token_amount)

        record = self.minters.get(minter)
        held = record.amount(variant_id) if record else 0
        if held < token_amount:
            raise InsufficientBalance(
                f"Minter {minter} holds {held} tokens of variant {variant_id}, "
                f"cannot remove {token_amount}"
            )

        new_burnt = checked_add(variant.total_burnt, token_amount)
        outstanding_delta = variant.nominal_value * token_amount
        new_outstanding = variant.total_outstanding - outstanding_delta
        new_collateral = variant.total_raw_collateral - collateral_amount
        new_global_collateral = self.global_state.total_raw_collateral - collateral_amount
        new_global_outstanding = self.global_state.total_outstanding - outstanding_delta

        for name, value in (
            ('variant collateral', new_collateral),
            ('variant outstanding', new_outstanding),
            ('global collateral', new_global_collateral),
            ('global outstanding', new_global_outstanding),
        ):
            if value < 0:
                raise InsufficientCollateral(
                    f"Removing {collateral_amount} collateral / {token_amount} tokens "
                    f"from variant {variant_id} would leave {name}={value}"
                )

        variant.total_burnt = new_burnt
        variant.total_outstanding = new_outstanding
        variant.total_raw_collateral = new_collateral
        self.global_state.total_raw_collateral = new_global_collateral
        self.global_state.total_outstanding = new_global_outstanding
        record.amounts[variant_id] = held - token_amount
        record.last_activity = timestamp

        return PositionRemoved(
            minter=minter,
            variant_id=variant_id,
            nominal_value=variant.nominal_value,
            collateral_amount=collateral_amount,
            token_amount=token_amount,
            timestamp=timestamp,
        )

    def record_fee(self, minter: str, fee_amount: int):
        """Accrue a redeem fee retained in custody and charge it to the minter."""
        if fee_amount < 0:
            raise InvalidAmount(f"Fee must be non-negative, got {fee_amount}")
        record = self.minters.get(minter) or MinterRecord()
        new_accrued = checked_add(self.global_state.accrued_fees, fee_amount)
        new_claimed = checked_add(record.redeem_fee_claimed, fee_amount)
        self.global_state.accrued_fees = new_accrued
        record.redeem_fee_claimed = new_claimed
        self.minters[minter] = record

    # ------------------------------------------------------------------
    # Administrative mutations
    # ------------------------------------------------------------------

    def add_variant(self, name: str, token_id: int, nominal_value: int) -> VariantState:
        """Append a variant with zero counters and the next sequential id."""
        if nominal_value <= 0:
            raise InvalidAmount(f"Nominal value must be positive, got {nominal_value}")
        if nominal_value > MAX_UINT:
            raise Overflow(f"Nominal value {nominal_value} exceeds unsigned range")
        variant = VariantState(
            variant_id=len(self.variants),
            name=name,
            token_id=token_id,
            nominal_value=nominal_value,
        )
        self.variants.append(variant)
        return variant

    def set_variant_disabled(self, variant_id: int, disabled: bool):
        self.variant(variant_id).disabled = bool(disabled)

    def set_contract_state(self, state: ContractState):
        """Move to a new lifecycle state along an allowed transition."""
        if state == self.contract_state:
            return
        if state not in ALLOWED_TRANSITIONS[self.contract_state]:
            raise InvalidContractState(
                f"Transition {self.contract_state.value} -> {state.value} is not allowed"
            )
        self.contract_state = state


def _check_amounts(collateral_amount: int, token_amount: int):
    if collateral_amount < 0:
        raise InvalidAmount(f"Collateral amount must be non-negative, got {collateral_amount}")
    if token_amount <= 0:
        raise InvalidAmount(f"Token amount must be positive, got {token_amount}")
