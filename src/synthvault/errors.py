"""Error taxonomy for the synthetic position engine.

Every error aborts the current operation and leaves the ledger as it was
before the call. The ``category`` attribute tells callers which family fired:

- validation: bad variant, bad amount, disabled variant, wrong contract state
- arithmetic: fixed-point overflow, division by zero, log domain violation
- ledger: insufficient balance or collateral
- oracle: invalid or failing price symbol
- external: liquidity venue, issuer or component token rejected a call
- authorization: caller lacks the administrator capability
"""


class SynthVaultError(Exception):
    """Base class for all engine errors."""
    category = "internal"


class ValidationError(SynthVaultError):
    """Request rejected before any state was touched."""
    category = "validation"


class UnknownVariant(ValidationError):
    """Variant id does not exist."""


class VariantDisabled(ValidationError):
    """Variant is disabled for ordinary mint/redeem."""


class InvalidAmount(ValidationError):
    """Token amount is zero, negative or above the per-call ceiling."""


class InvalidContractState(ValidationError):
    """Operation not permitted in the current lifecycle state."""


class ReentrantCall(ValidationError):
    """A mutating operation was entered while another one is running on the same thread."""


class FixedPointError(SynthVaultError, ArithmeticError):
    """Fixed-point arithmetic failure."""
    category = "arithmetic"


class Overflow(FixedPointError, OverflowError):
    """Result does not fit the fixed-point range."""


class DivisionByZero(FixedPointError, ZeroDivisionError):
    """Divisor is zero."""


class DomainError(FixedPointError):
    """Argument outside the function's domain."""


class LedgerInvariantError(SynthVaultError):
    """Mutation would break a ledger invariant."""
    category = "ledger"


class InsufficientBalance(LedgerInvariantError):
    """Minter holds fewer tokens than requested."""


class InsufficientCollateral(LedgerInvariantError):
    """Collateral or outstanding value would go negative."""


class NoCollateral(LedgerInvariantError):
    """Aggregate ratio requested while no collateral is held."""


class OracleError(SynthVaultError):
    """Price oracle failed or returned an unusable answer."""
    category = "oracle"


class InvalidPriceSymbol(OracleError):
    """Oracle reports the symbol as invalid."""


class ExternalCallFailure(SynthVaultError):
    """An external collaborator rejected the call."""
    category = "external"


class AuthorizationError(SynthVaultError):
    """Caller lacks the required capability."""
    category = "authorization"
