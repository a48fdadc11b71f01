"""Mint/Redeem Orchestration - Public entry points of the engine.

Key Features:
- Mint: estimate collateral from oracle prices, apply the discount, pull the two
  components from the caller, provision liquidity, record the position, issue
  the synthetic
- Redeem: estimate, apply the offset, record the removal, burn the synthetic,
  withhold the redeem fee, withdraw liquidity to the caller
- Force paths let an administrator move collateral directly, skipping oracle
  and venue but not the ledger checks
- Every mutating call is atomic: guarded against re-entry and rolled back
  (ledger and external effects) on any error
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from ..config.schema import Config
from ..errors import (
    AuthorizationError,
    ExternalCallFailure,
    InvalidAmount,
    InvalidContractState,
    SynthVaultError,
    VariantDisabled,
)
from ..external.gates import LoggingEventSink
from ..external.oracle import OracleAdapter
from ..external.protocols import (
    CapabilityGate,
    ComponentToken,
    EventSink,
    LiquidityVenue,
    PriceOracle,
    TokenIssuer,
)
from .fixed_point import UNIT, from_decimal, mul, mul_div
from .ledger import (
    ContractState,
    LedgerSnapshot,
    MinterRecord,
    PositionCreated,
    PositionLedger,
    PositionRemoved,
    VariantState,
)
from .pricing_curve import CurveParameters, PricingCurve
from .ratio import PriceSnapshot, collateral_for_value, global_ratio, variant_ratio
from .transaction import OperationGuard, RollbackJournal, atomic

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintEstimate:
    """Collateral a mint would move."""
    variant_id: int
    token_amount: int
    value: int  # Outstanding value issued
    collateral_amount: int  # Pro-rata collateral shares
    discount: int  # Shares waived by the curve
    adjusted_collateral: int  # Shares actually required
    amount_a: int  # Component A to provide
    amount_b: int  # Component B to provide


@dataclass(frozen=True)
class RedeemEstimate:
    """Collateral a redemption would move."""
    variant_id: int
    token_amount: int
    value: int  # Outstanding value burnt
    collateral_amount: int  # Pro-rata collateral shares
    offset: int  # Shares withheld by the curve
    adjusted_collateral: int  # Shares removed from the variant
    fee: int  # Shares retained as redeem fee
    net_collateral: int  # Shares withdrawn for the caller
    amount_a: int  # Expected component A returned
    amount_b: int  # Expected component B returned


@dataclass(frozen=True)
class MintResult:
    """Outcome of a committed mint."""
    estimate: MintEstimate
    used_a: int
    used_b: int
    share_amount: int
    event: PositionCreated


@dataclass(frozen=True)
class RedeemResult:
    """Outcome of a committed redemption."""
    estimate: RedeemEstimate
    amount_a: int
    amount_b: int
    event: PositionRemoved


class SynthVaultService:
    """Owns the ledger and composes ratio, curve and collaborators into operations."""

    def __init__(
        self,
        config: Config,
        oracle: PriceOracle,
        venue: LiquidityVenue,
        issuer: TokenIssuer,
        gate: CapabilityGate,
        component_a: ComponentToken,
        component_b: ComponentToken,
        address: str = "synthvault",
        event_sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize service.

        Args:
            config: Engine configuration
            oracle: Price oracle
            venue: Liquidity venue holding the collateral pool
            issuer: Synthetic token issuer
            gate: Capability gate for administrator operations
            component_a: First collateral component
            component_b: Second collateral component
            address: Custody address of the engine
            event_sink: Receiver of committed ledger events (logs by default)
            clock: Source of unix time
        """
        self.config = config
        self.oracle = OracleAdapter(oracle)
        self.venue = venue
        self.issuer = issuer
        self.gate = gate
        self.component_a = component_a
        self.component_b = component_b
        self.address = address
        self.event_sink = event_sink or LoggingEventSink()
        self.clock = clock

        self.collateral_symbol = config.oracle.collateral_symbol
        self.synthetic_symbol = config.oracle.synthetic_symbol
        self.max_token_amount = config.limits.max_token_amount
        self.slippage_tolerance = from_decimal(config.limits.slippage_tolerance)
        self.deadline_seconds = config.limits.deadline_seconds
        self.redeem_fee = from_decimal(config.fees.redeem_fee)
        self.curve = PricingCurve(
            CurveParameters(
                base=from_decimal(config.curve.base),
                k=from_decimal(config.curve.k),
            ),
            offset_disabled=config.switches.offset_disabled,
            discount_disabled=config.switches.discount_disabled,
        )

        self.ledger = PositionLedger()
        self.guard = OperationGuard()
        for spec in config.variants:
            self.ledger.add_variant(spec.name, spec.token_id, from_decimal(spec.nominal_value))

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        """Consistent copy of global and per-variant state."""
        with self.guard.read():
            return self.ledger.snapshot()

    def variants(self) -> Tuple[VariantState, ...]:
        return self.snapshot().variants

    def minter_record(self, minter: str) -> Optional[MinterRecord]:
        with self.guard.read():
            record = self.ledger.minter(minter)
            return replace(record, amounts=dict(record.amounts)) if record else None

    def get_minter_amount(self, minter: str, variant_id: int) -> int:
        with self.guard.read():
            return self.ledger.minter_amount(minter, variant_id)

    def global_collateralization_ratio(self) -> int:
        """
        CR across all variants.

        Raises:
            NoCollateral: If nothing has been minted yet
        """
        snapshot = self.snapshot()
        return global_ratio(snapshot.global_state, self._prices())

    def variant_collateralization_ratio(self, variant_id: int) -> int:
        variant = self.snapshot().variant(variant_id)
        return variant_ratio(variant, self._prices())

    def target_collateralization_ratio(self, variant_id: int) -> int:
        """Unclamped curve target at the variant's current CR."""
        return self.curve.target_ratio(self.variant_collateralization_ratio(variant_id))

    def estimate_mint(self, variant_id: int, token_amount: int) -> MintEstimate:
        variant = self._check_request(self.snapshot(), variant_id, token_amount)
        return self._estimate_mint(variant, token_amount)

    def estimate_redeem(self, variant_id: int, token_amount: int) -> RedeemEstimate:
        variant = self._check_request(self.snapshot(), variant_id, token_amount)
        return self._estimate_redeem(variant, token_amount)

    # ------------------------------------------------------------------
    # Mint / redeem
    # ------------------------------------------------------------------

    def mint(self, caller: str, variant_id: int, token_amount: int) -> MintResult:
        """
        Deposit collateral components and receive synthetic tokens.

        Args:
            caller: Minter address
            variant_id: Variant to mint
            token_amount: Number of tokens

        Returns:
            MintResult with the estimate used and the shares provisioned
        """
        with atomic(self.guard, self.ledger, "mint") as journal:
            variant = self._check_request(self.ledger.snapshot(), variant_id, token_amount)
            estimate = self._estimate_mint(variant, token_amount)
            used_a, used_b, shares = self._provision(caller, estimate, journal)
            event = self.ledger.create_position(caller, variant_id, shares, token_amount, self._now())
            self._external("issuer.mint", self.issuer.mint, caller, variant.token_id, token_amount, b"")

        log.info(
            "mint: %s variant=%d tokens=%d shares=%d discount=%d",
            caller, variant_id, token_amount, shares, estimate.discount
        )
        self._publish(event)
        return MintResult(estimate=estimate, used_a=used_a, used_b=used_b, share_amount=shares, event=event)

    def redeem(self, caller: str, variant_id: int, token_amount: int) -> RedeemResult:
        """
        Burn synthetic tokens and withdraw collateral components.

        Args:
            caller: Minter address
            variant_id: Variant to redeem
            token_amount: Number of tokens

        Returns:
            RedeemResult with the components sent to the caller
        """
        with atomic(self.guard, self.ledger, "redeem") as journal:
            variant = self._check_request(self.ledger.snapshot(), variant_id, token_amount)
            estimate = self._estimate_redeem(variant, token_amount)
            event = self.ledger.remove_position(
                caller, variant_id, estimate.adjusted_collateral, token_amount, self._now()
            )
            if estimate.fee:
                self.ledger.record_fee(caller, estimate.fee)

            token_id = variant.token_id
            self._external("issuer.burn", self.issuer.burn, caller, token_id, token_amount)
            journal.on_rollback(
                "reissue burnt tokens",
                lambda: self.issuer.mint(caller, token_id, token_amount, b"")
            )
            amount_a, amount_b = 0, 0
            if estimate.net_collateral > 0:
                amount_a, amount_b = self._external(
                    "venue.remove_liquidity",
                    self.venue.remove_liquidity,
                    self.component_a.symbol,
                    self.component_b.symbol,
                    estimate.net_collateral,
                    self._with_slippage(estimate.amount_a),
                    self._with_slippage(estimate.amount_b),
                    caller,
                    self._deadline(),
                )

        log.info(
            "redeem: %s variant=%d tokens=%d shares=%d offset=%d fee=%d",
            caller, variant_id, token_amount, estimate.adjusted_collateral, estimate.offset, estimate.fee
        )
        self._publish(event)
        return RedeemResult(estimate=estimate, amount_a=amount_a, amount_b=amount_b, event=event)

    def force_mint(
        self,
        admin: str,
        minter: str,
        variant_id: int,
        collateral_amount: int,
        token_amount: int
    ) -> PositionCreated:
        """Administrator mint with a supplied collateral amount; no oracle, no venue."""
        with atomic(self.guard, self.ledger, "force_mint"):
            self._require_capability(admin)
            variant = self.ledger.variant(variant_id)
            self._check_token_amount(token_amount, ceiling=False)
            event = self.ledger.create_position(minter, variant_id, collateral_amount, token_amount, self._now())
            self._external("issuer.mint", self.issuer.mint, minter, variant.token_id, token_amount, b"")

        log.info("force_mint by %s: %s variant=%d tokens=%d collateral=%d",
                 admin, minter, variant_id, token_amount, collateral_amount)
        self._publish(event)
        return event

    def force_redeem(
        self,
        admin: str,
        minter: str,
        variant_id: int,
        collateral_amount: int,
        token_amount: int
    ) -> PositionRemoved:
        """Administrator redemption with a supplied collateral amount; no oracle, no venue."""
        with atomic(self.guard, self.ledger, "force_redeem"):
            self._require_capability(admin)
            variant = self.ledger.variant(variant_id)
            self._check_token_amount(token_amount, ceiling=False)
            event = self.ledger.remove_position(minter, variant_id, collateral_amount, token_amount, self._now())
            self._external("issuer.burn", self.issuer.burn, minter, variant.token_id, token_amount)

        log.info("force_redeem by %s: %s variant=%d tokens=%d collateral=%d",
                 admin, minter, variant_id, token_amount, collateral_amount)
        self._publish(event)
        return event

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def add_variant(self, admin: str, name: str, token_id: int, nominal_value: int) -> VariantState:
        with atomic(self.guard, self.ledger, "add_variant"):
            self._require_capability(admin)
            variant = self.ledger.add_variant(name, token_id, nominal_value)
        log.info("add_variant by %s: id=%d name=%s nominal=%d", admin, variant.variant_id, name, nominal_value)
        return replace(variant)

    def set_variant_disabled(self, admin: str, variant_id: int, disabled: bool):
        with atomic(self.guard, self.ledger, "set_variant_disabled"):
            self._require_capability(admin)
            self.ledger.set_variant_disabled(variant_id, disabled)
        log.info("set_variant_disabled by %s: id=%d disabled=%s", admin, variant_id, disabled)

    def set_contract_state(self, admin: str, state: ContractState):
        with atomic(self.guard, self.ledger, "set_contract_state"):
            self._require_capability(admin)
            previous = self.ledger.contract_state
            self.ledger.set_contract_state(state)
        log.info("set_contract_state by %s: %s -> %s", admin, previous.value, state.value)

    def set_price_oracle(self, admin: str, oracle: PriceOracle):
        with self.guard.hold("set_price_oracle"):
            self._require_capability(admin)
            self.oracle = OracleAdapter(oracle)
        log.info("set_price_oracle by %s", admin)

    def set_redeem_fee(self, admin: str, fee: int):
        """Set the fixed-point fraction of redeemed collateral retained as fee."""
        with self.guard.hold("set_redeem_fee"):
            self._require_capability(admin)
            if not 0 <= fee < UNIT:
                raise InvalidAmount(f"Redeem fee must be in [0, 1) units, got {fee}")
            self.redeem_fee = fee
        log.info("set_redeem_fee by %s: %d", admin, fee)

    def set_offset_disabled(self, admin: str, disabled: bool):
        with self.guard.hold("set_offset_disabled"):
            self._require_capability(admin)
            self.curve.offset_disabled = bool(disabled)
        log.info("set_offset_disabled by %s: %s", admin, disabled)

    def set_discount_disabled(self, admin: str, disabled: bool):
        with self.guard.hold("set_discount_disabled"):
            self._require_capability(admin)
            self.curve.discount_disabled = bool(disabled)
        log.info("set_discount_disabled by %s: %s", admin, disabled)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_capability(self, address: str):
        if not self._external("gate.has_capability", self.gate.has_capability, address):
            raise AuthorizationError(f"{address} lacks the administrator capability")

    def _check_token_amount(self, token_amount: int, ceiling: bool = True):
        if not isinstance(token_amount, int) or isinstance(token_amount, bool) or token_amount <= 0:
            raise InvalidAmount(f"Token amount must be a positive integer, got {token_amount!r}")
        if ceiling and token_amount > self.max_token_amount:
            raise InvalidAmount(
                f"Token amount {token_amount} exceeds per-call ceiling {self.max_token_amount}"
            )

    def _check_request(self, snapshot: LedgerSnapshot, variant_id: int, token_amount: int) -> VariantState:
        """Validate an ordinary mint/redeem request against a snapshot."""
        if snapshot.contract_state != ContractState.NORMAL:
            raise InvalidContractState(
                f"Operation requires state normal, current state is {snapshot.contract_state.value}"
            )
        variant = snapshot.variant(variant_id)
        if variant.disabled:
            raise VariantDisabled(f"Variant {variant_id} ({variant.name}) is disabled")
        self._check_token_amount(token_amount)
        return variant

    def _prices(self) -> PriceSnapshot:
        return self.oracle.prices(self.collateral_symbol, self.synthetic_symbol)

    def _component_amounts(self, shares: int) -> Tuple[int, int]:
        """Split a share amount into components pro rata to the pool composition."""
        balance_a, balance_b = self._external("venue.component_balances", self.venue.component_balances)
        supply = self._external("venue.total_share_supply", self.venue.total_share_supply)
        return mul_div(shares, balance_a, supply), mul_div(shares, balance_b, supply)

    def _estimate_mint(self, variant: VariantState, token_amount: int) -> MintEstimate:
        prices = self._prices()
        value = variant.nominal_value * token_amount
        collateral = collateral_for_value(value, prices)
        discount = self.curve.discount(variant, prices, collateral, value)
        adjusted = collateral - discount
        amount_a, amount_b = self._component_amounts(adjusted)
        return MintEstimate(
            variant_id=variant.variant_id,
            token_amount=token_amount,
            value=value,
            collateral_amount=collateral,
            discount=discount,
            adjusted_collateral=adjusted,
            amount_a=amount_a,
            amount_b=amount_b,
        )

    def _estimate_redeem(self, variant: VariantState, token_amount: int) -> RedeemEstimate:
        prices = self._prices()
        value = variant.nominal_value * token_amount
        collateral = collateral_for_value(value, prices)
        offset = self.curve.offset(variant, prices, collateral, value)
        adjusted = collateral - offset
        fee = mul(adjusted, self.redeem_fee)
        net = adjusted - fee
        amount_a, amount_b = self._component_amounts(net)
        return RedeemEstimate(
            variant_id=variant.variant_id,
            token_amount=token_amount,
            value=value,
            collateral_amount=collateral,
            offset=offset,
            adjusted_collateral=adjusted,
            fee=fee,
            net_collateral=net,
            amount_a=amount_a,
            amount_b=amount_b,
        )

    def _provision(self, caller: str, estimate: MintEstimate, journal: RollbackJournal) -> Tuple[int, int, int]:
        """Pull components from the caller and add them to the venue."""
        amount_a, amount_b = estimate.amount_a, estimate.amount_b
        symbol_a, symbol_b = self.component_a.symbol, self.component_b.symbol

        self._external(f"{symbol_a}.transfer_from", self.component_a.transfer_from, caller, self.address, amount_a)
        journal.on_rollback("return component a", lambda: self.component_a.transfer(caller, amount_a))
        self._external(f"{symbol_b}.transfer_from", self.component_b.transfer_from, caller, self.address, amount_b)
        journal.on_rollback("return component b", lambda: self.component_b.transfer(caller, amount_b))

        used_a, used_b, shares = self._external(
            "venue.add_liquidity",
            self.venue.add_liquidity,
            symbol_a,
            symbol_b,
            amount_a,
            amount_b,
            self._with_slippage(amount_a),
            self._with_slippage(amount_b),
            self.address,
            self._deadline(),
        )
        # Components now sit in the pool; unwinding means withdrawing the shares to the caller
        journal.discard("return component a")
        journal.discard("return component b")
        journal.on_rollback(
            "withdraw provisioned liquidity",
            lambda: self.venue.remove_liquidity(symbol_a, symbol_b, shares, 0, 0, caller, self._deadline())
        )

        # Whatever the venue left unused is still in custody until refunded
        unused_a, unused_b = amount_a - used_a, amount_b - used_b
        if unused_a > 0:
            journal.on_rollback("return unused component a", lambda: self.component_a.transfer(caller, unused_a))
        if unused_b > 0:
            journal.on_rollback("return unused component b", lambda: self.component_b.transfer(caller, unused_b))

        if unused_a > 0:
            self._external(f"{symbol_a}.transfer", self.component_a.transfer, caller, unused_a)
            journal.discard("return unused component a")
        if unused_b > 0:
            self._external(f"{symbol_b}.transfer", self.component_b.transfer, caller, unused_b)
            journal.discard("return unused component b")
        return used_a, used_b, shares

    def _with_slippage(self, amount: int) -> int:
        return mul(amount, UNIT - self.slippage_tolerance)

    def _now(self) -> int:
        return int(self.clock())

    def _deadline(self) -> int:
        return self._now() + self.deadline_seconds

    def _external(self, what: str, fn: Callable, *args):
        """Call a collaborator; foreign exceptions become ExternalCallFailure."""
        try:
            return fn(*args)
        except SynthVaultError:
            raise
        except Exception as exc:
            raise ExternalCallFailure(f"{what} failed: {exc}") from exc

    def _publish(self, event: object):
        try:
            self.event_sink.publish(event)
        except Exception:
            # The operation is already committed; a sink failure must not report it as failed
            log.exception("event sink rejected %s", type(event).__name__)
