"""Price oracle adapter - validity-checked price reads.

Prices are taken as atomic snapshots at call time. No staleness check is
performed; freshness is the oracle's responsibility.
"""

from ..engine.ratio import PriceSnapshot
from ..errors import InvalidPriceSymbol, OracleError, SynthVaultError
from .protocols import PriceOracle


class OracleAdapter:
    """Wraps a PriceOracle so every read checks symbol validity first."""

    def __init__(self, oracle: PriceOracle):
        self.oracle = oracle

    def price(self, symbol: str) -> int:
        """
        Current unit price for a symbol.

        Raises:
            InvalidPriceSymbol: If the oracle reports the symbol as invalid
            OracleError: If the oracle call itself fails
        """
        try:
            valid = self.oracle.is_valid(symbol)
        except SynthVaultError:
            raise
        except Exception as exc:
            raise OracleError(f"Oracle validity check failed for {symbol}: {exc}") from exc
        if not valid:
            raise InvalidPriceSymbol(f"Invalid price symbol: {symbol}")

        try:
            price = self.oracle.get_current_price(symbol)
        except SynthVaultError:
            raise
        except Exception as exc:
            raise OracleError(f"Oracle price read failed for {symbol}: {exc}") from exc
        if not isinstance(price, int) or price < 0:
            raise OracleError(f"Oracle returned an unusable price for {symbol}: {price!r}")
        return price

    def prices(self, collateral_symbol: str, synthetic_symbol: str) -> PriceSnapshot:
        """Read both prices an operation needs."""
        return PriceSnapshot(
            collateral_price=self.price(collateral_symbol),
            synthetic_price=self.price(synthetic_symbol),
        )
