"""Unit tests for the position ledger.

Tests verify:
- Position creation/removal updates variant, global and minter state
- Outstanding identity and global = sum of variants after every mutation
- Rejected mutations leave the ledger untouched
- Variant administration and lifecycle transitions
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from synthvault.engine.fixed_point import MAX_UINT, UNIT
from synthvault.engine.ledger import (
    ContractState,
    PositionCreated,
    PositionLedger,
    PositionRemoved,
)
from synthvault.errors import (
    InsufficientBalance,
    InsufficientCollateral,
    InvalidAmount,
    InvalidContractState,
    Overflow,
    UnknownVariant,
)

NOW = 1_700_000_000


def assert_invariants(ledger: PositionLedger):
    """Outstanding identity per variant and aggregate sums."""
    for variant in ledger.variants:
        assert variant.total_outstanding == variant.nominal_value * (variant.total_issued - variant.total_burnt)
        assert variant.total_raw_collateral >= 0
    assert ledger.global_state.total_raw_collateral == sum(v.total_raw_collateral for v in ledger.variants)
    assert ledger.global_state.total_outstanding == sum(v.total_outstanding for v in ledger.variants)


@pytest.fixture
def ledger():
    ledger = PositionLedger()
    ledger.add_variant("standard", token_id=1, nominal_value=UNIT)
    ledger.add_variant("large", token_id=2, nominal_value=10 * UNIT)
    return ledger


class TestCreatePosition:
    """Tests for opening positions."""

    def test_create_updates_all_scopes(self, ledger):
        """Variant, global and minter state all move together."""
        event = ledger.create_position("alice", 1, 500 * UNIT, 50, NOW)

        variant = ledger.variant(1)
        assert variant.total_issued == 50
        assert variant.total_outstanding == 500 * UNIT
        assert variant.total_raw_collateral == 500 * UNIT
        assert ledger.global_state.total_raw_collateral == 500 * UNIT
        assert ledger.minter_amount("alice", 1) == 50
        assert ledger.minter("alice").last_activity == NOW
        assert_invariants(ledger)

        assert event == PositionCreated(
            minter="alice",
            variant_id=1,
            nominal_value=10 * UNIT,
            collateral_amount=500 * UNIT,
            token_amount=50,
            timestamp=NOW,
        )

    def test_positions_accumulate_across_variants(self, ledger):
        ledger.create_position("alice", 0, 100 * UNIT, 100, NOW)
        ledger.create_position("bob", 0, 30 * UNIT, 30, NOW)
        ledger.create_position("alice", 1, 200 * UNIT, 20, NOW + 1)
        assert ledger.minter_amount("alice", 0) == 100
        assert ledger.minter_amount("alice", 1) == 20
        assert ledger.minter_amount("bob", 0) == 30
        assert ledger.global_state.total_outstanding == 330 * UNIT
        assert_invariants(ledger)

    def test_zero_tokens_rejected(self, ledger):
        with pytest.raises(InvalidAmount):
            ledger.create_position("alice", 0, UNIT, 0, NOW)

    def test_unknown_variant(self, ledger):
        with pytest.raises(UnknownVariant):
            ledger.create_position("alice", 7, UNIT, 1, NOW)

    def test_overflow_leaves_ledger_untouched(self, ledger):
        ledger.create_position("alice", 0, UNIT, 1, NOW)
        before = ledger.checkpoint()
        with pytest.raises(Overflow):
            ledger.create_position("alice", 0, MAX_UINT, 1, NOW)
        assert ledger.checkpoint() == before


class TestRemovePosition:
    """Tests for closing positions."""

    def test_remove_mirrors_create(self, ledger):
        ledger.create_position("alice", 0, 100 * UNIT, 100, NOW)
        event = ledger.remove_position("alice", 0, 40 * UNIT, 40, NOW + 10)

        variant = ledger.variant(0)
        assert variant.total_burnt == 40
        assert variant.total_outstanding == 60 * UNIT
        assert variant.total_raw_collateral == 60 * UNIT
        assert ledger.minter_amount("alice", 0) == 60
        assert isinstance(event, PositionRemoved)
        assert event.collateral_amount == 40 * UNIT
        assert_invariants(ledger)

    def test_insufficient_balance(self, ledger):
        """Cannot burn more tokens than the minter holds."""
        ledger.create_position("alice", 0, 100 * UNIT, 100, NOW)
        with pytest.raises(InsufficientBalance) as excinfo:
            ledger.remove_position("bob", 0, UNIT, 1, NOW)
        assert excinfo.value.category == "ledger"

    def test_insufficient_collateral_is_rejected_not_clamped(self, ledger):
        ledger.create_position("alice", 0, 100 * UNIT, 100, NOW)
        before = ledger.checkpoint()
        with pytest.raises(InsufficientCollateral):
            ledger.remove_position("alice", 0, 101 * UNIT, 10, NOW)
        assert ledger.checkpoint() == before
        assert_invariants(ledger)

    def test_full_exit_keeps_minter_record(self, ledger):
        """A zero balance is a steady state, not a removal."""
        ledger.create_position("alice", 0, 10 * UNIT, 10, NOW)
        ledger.remove_position("alice", 0, 10 * UNIT, 10, NOW)
        assert "alice" in ledger.minters
        assert ledger.minter_amount("alice", 0) == 0

    def test_record_fee(self, ledger):
        ledger.record_fee("alice", UNIT // 2)
        ledger.record_fee("alice", UNIT // 2)
        assert ledger.global_state.accrued_fees == UNIT
        assert ledger.minter("alice").redeem_fee_claimed == UNIT


class TestVariantAdministration:
    """Tests for variants and lifecycle."""

    def test_sequential_ids(self, ledger):
        variant = ledger.add_variant("third", token_id=3, nominal_value=UNIT)
        assert variant.variant_id == 2
        assert [v.variant_id for v in ledger.variants] == [0, 1, 2]

    def test_zero_nominal_rejected(self, ledger):
        with pytest.raises(InvalidAmount):
            ledger.add_variant("bad", token_id=9, nominal_value=0)

    def test_disable_toggle(self, ledger):
        ledger.set_variant_disabled(0, True)
        assert ledger.variant(0).disabled is True
        ledger.set_variant_disabled(0, False)
        assert ledger.variant(0).disabled is False

    def test_lifecycle_transitions(self, ledger):
        assert ledger.contract_state == ContractState.INITIAL
        ledger.set_contract_state(ContractState.NORMAL)
        ledger.set_contract_state(ContractState.EMERGENCY)
        ledger.set_contract_state(ContractState.NORMAL)
        ledger.set_contract_state(ContractState.EXPIRED)
        with pytest.raises(InvalidContractState):
            ledger.set_contract_state(ContractState.NORMAL)

    def test_initial_cannot_skip_to_expired(self, ledger):
        with pytest.raises(InvalidContractState):
            ledger.set_contract_state(ContractState.EXPIRED)


class TestSnapshots:
    """Tests for snapshots and rollback checkpoints."""

    def test_snapshot_is_detached(self, ledger):
        ledger.create_position("alice", 0, 10 * UNIT, 10, NOW)
        snapshot = ledger.snapshot()
        ledger.create_position("alice", 0, 10 * UNIT, 10, NOW)
        assert snapshot.variant(0).total_issued == 10
        assert snapshot.global_state.total_raw_collateral == 10 * UNIT

    def test_restore_checkpoint(self, ledger):
        ledger.create_position("alice", 0, 10 * UNIT, 10, NOW)
        checkpoint = ledger.checkpoint()
        ledger.create_position("bob", 1, 50 * UNIT, 5, NOW)
        ledger.set_contract_state(ContractState.NORMAL)
        ledger.restore(checkpoint)
        assert ledger.minter("bob") is None
        assert ledger.variant(1).total_issued == 0
        assert ledger.contract_state == ContractState.INITIAL
        assert_invariants(ledger)
