"""Sanity checks for configuration inputs and ledger snapshots."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ..config.schema import Config
from ..engine.fixed_point import UNIT, from_decimal
from ..engine.ledger import LedgerSnapshot
from ..engine.pricing_curve import CurveParameters, target_ratio
from ..errors import FixedPointError


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "conservation", "bounds"
    message: str
    details: Optional[str] = None


class LedgerChecker:
    """Run sanity checks on configuration and ledger state."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []

        # Redeem fee bounds
        if self.config.fees.redeem_fee > Decimal("0.05"):
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="Redeem fee above 5% makes round trips very lossy",
                details=f"Current fee: {self.config.fees.redeem_fee * 100:.2f}%"
            ))

        # Slippage tolerance
        if self.config.limits.slippage_tolerance > Decimal("0.10"):
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="Slippage tolerance above 10% exposes minters to pool manipulation",
                details=f"Current tolerance: {self.config.limits.slippage_tolerance * 100:.1f}%"
            ))

        # Curve shape: at CR = 1 the target should sit at or just above 1
        params = CurveParameters(
            base=from_decimal(self.config.curve.base),
            k=from_decimal(self.config.curve.k),
        )
        try:
            at_par = target_ratio(UNIT, params)
        except FixedPointError as exc:
            warnings.append(ValidationWarning(
                severity="error",
                category="input",
                message="Curve parameters cannot be evaluated",
                details=str(exc)
            ))
        else:
            if at_par < UNIT:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="input",
                    message="Curve target at CR = 1 is below 1; offsets can apply to over-collateralized variants",
                    details=f"target(1) = {at_par / UNIT:.4f}"
                ))

        if not self.config.variants:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="No variants configured; mints fail until one is added",
            ))

        return warnings

    def check_ledger(self, snapshot: LedgerSnapshot) -> List[ValidationWarning]:
        """
        Check ledger invariants on a snapshot.

        Args:
            snapshot: Ledger snapshot

        Returns:
            List of validation warnings
        """
        warnings = []

        collateral_sum = 0
        outstanding_sum = 0
        for variant in snapshot.variants:
            collateral_sum += variant.total_raw_collateral
            outstanding_sum += variant.total_outstanding

            is_valid, error_msg = variant.validate_non_negative()
            if not is_valid:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="bounds",
                    message=f"Negative ledger bucket in variant {variant.variant_id}",
                    details=error_msg
                ))

            is_valid, error_msg = variant.validate_outstanding()
            if not is_valid:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Outstanding value out of sync in variant {variant.variant_id}",
                    details=error_msg
                ))

            if variant.total_outstanding == 0 and variant.total_raw_collateral > 0:
                warnings.append(ValidationWarning(
                    severity="warning",
                    category="sustainability",
                    message=f"Variant {variant.variant_id} holds collateral with nothing outstanding",
                    details=f"Collateral: {variant.total_raw_collateral}"
                ))

        global_state = snapshot.global_state
        if global_state.total_raw_collateral != collateral_sum:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message="Global collateral differs from the sum over variants",
                details=f"Global: {global_state.total_raw_collateral}, Sum: {collateral_sum}"
            ))
        if global_state.total_outstanding != outstanding_sum:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message="Global outstanding differs from the sum over variants",
                details=f"Global: {global_state.total_outstanding}, Sum: {outstanding_sum}"
            ))
        if global_state.accrued_fees < 0:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message="Accrued fees went negative",
                details=f"Value: {global_state.accrued_fees}"
            ))

        return warnings


def validate_ledger(config: Config, snapshot: LedgerSnapshot) -> List[ValidationWarning]:
    """
    Validate configuration and one ledger snapshot.

    Args:
        config: Engine configuration
        snapshot: Ledger snapshot

    Returns:
        List of all validation warnings
    """
    checker = LedgerChecker(config)
    warnings = []
    warnings.extend(checker.check_config_inputs())
    warnings.extend(checker.check_ledger(snapshot))
    return warnings
