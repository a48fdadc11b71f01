"""In-memory collaborators for service tests.

The pool is seeded 1:1:1 (component A : component B : shares) so share amounts
and component amounts coincide exactly, which keeps expected values readable.
"""

import os
import sys
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Optional

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from synthvault.config.loader import config_from_dict
from synthvault.engine.fixed_point import UNIT
from synthvault.engine.ledger import ContractState
from synthvault.engine.service import SynthVaultService
from synthvault.external.gates import MemoryEventSink, StaticCapabilityGate

CUSTODY = "synthvault"
VENUE = "venue"
ADMIN = "admin"
NOW = 1_700_000_000


class FakeToken:
    """Component token with plain balances."""

    def __init__(self, symbol: str, custody: str = CUSTODY):
        self.symbol = symbol
        self.custody = custody
        self.balances: Dict[str, int] = defaultdict(int)
        self.failing_transfers = 0  # Number of upcoming custody transfers that raise

    def move(self, sender: str, recipient: str, amount: int):
        if self.balances[sender] < amount:
            raise ValueError(f"{self.symbol}: {sender} has {self.balances[sender]}, needs {amount}")
        self.balances[sender] -= amount
        self.balances[recipient] += amount

    def transfer_from(self, sender: str, recipient: str, amount: int) -> None:
        self.move(sender, recipient, amount)

    def transfer(self, recipient: str, amount: int) -> None:
        if self.failing_transfers > 0:
            self.failing_transfers -= 1
            raise RuntimeError(f"{self.symbol}: transfer paused")
        self.move(self.custody, recipient, amount)


class FakeVenue:
    """Constant-ratio pool; shares are tracked per holder."""

    def __init__(self, token_a: FakeToken, token_b: FakeToken, seed: int = 1000 * UNIT, custody: str = CUSTODY):
        self.token_a = token_a
        self.token_b = token_b
        self.custody = custody
        self.shares: Dict[str, int] = defaultdict(int)
        self.token_a.balances[VENUE] += seed
        self.token_b.balances[VENUE] += seed
        self.shares["genesis"] = seed
        self.fail_add = False
        self.fail_remove = False
        self.half_fill = False  # Accept only half of what is offered
        self.on_add: Optional[Callable[[], None]] = None
        self.calls = []

    def component_balances(self):
        return self.token_a.balances[VENUE], self.token_b.balances[VENUE]

    def total_share_supply(self):
        return sum(self.shares.values())

    def add_liquidity(self, component_a, component_b, amount_a, amount_b, min_a, min_b, recipient, deadline):
        self.calls.append(("add", amount_a, amount_b, min_a, min_b, recipient))
        if self.on_add:
            self.on_add()
        if self.fail_add:
            raise RuntimeError("pool paused")
        if self.half_fill:
            amount_a, amount_b, min_a, min_b = amount_a // 2, amount_b // 2, min_a // 2, min_b // 2
        balance_a, balance_b = self.component_balances()
        supply = self.total_share_supply()
        shares = min(amount_a * supply // balance_a, amount_b * supply // balance_b)
        used_a = shares * balance_a // supply
        used_b = shares * balance_b // supply
        if used_a < min_a or used_b < min_b:
            raise ValueError("insufficient liquidity minted")
        self.token_a.move(self.custody, VENUE, used_a)
        self.token_b.move(self.custody, VENUE, used_b)
        self.shares[recipient] += shares
        return used_a, used_b, shares

    def remove_liquidity(self, component_a, component_b, share_amount, min_a, min_b, recipient, deadline):
        self.calls.append(("remove", share_amount, min_a, min_b, recipient))
        if self.fail_remove:
            raise RuntimeError("pool paused")
        if self.shares[self.custody] < share_amount:
            raise ValueError("burn amount exceeds balance")
        balance_a, balance_b = self.component_balances()
        supply = self.total_share_supply()
        amount_a = share_amount * balance_a // supply
        amount_b = share_amount * balance_b // supply
        if amount_a < min_a or amount_b < min_b:
            raise ValueError("insufficient amount returned")
        self.shares[self.custody] -= share_amount
        self.token_a.move(VENUE, recipient, amount_a)
        self.token_b.move(VENUE, recipient, amount_b)
        return amount_a, amount_b


class FakeIssuer:
    """Multi-token balances keyed by (owner, token_id)."""

    def __init__(self):
        self.balances: Dict[tuple, int] = defaultdict(int)
        self.fail_mint = False
        self.fail_burn = False

    def mint(self, to, token_id, amount, data):
        if self.fail_mint:
            raise RuntimeError("issuer paused")
        self.balances[(to, token_id)] += amount

    def burn(self, owner, token_id, amount):
        if self.fail_burn:
            raise RuntimeError("issuer paused")
        if self.balances[(owner, token_id)] < amount:
            raise ValueError("burn amount exceeds balance")
        self.balances[(owner, token_id)] -= amount

    def safe_transfer(self, sender, to, token_id, amount, data):
        if self.balances[(sender, token_id)] < amount:
            raise ValueError("insufficient balance for transfer")
        self.balances[(sender, token_id)] -= amount
        self.balances[(to, token_id)] += amount


class FakeOracle:
    """Settable prices; symbols can be marked invalid."""

    def __init__(self, prices: Dict[str, int]):
        self.prices = dict(prices)
        self.invalid = set()

    def is_valid(self, symbol):
        return symbol in self.prices and symbol not in self.invalid

    def get_current_price(self, symbol):
        return self.prices[symbol]


def make_config(redeem_fee: str = "0", offset_disabled: bool = False, discount_disabled: bool = False):
    return config_from_dict({
        "oracle": {"collateral_symbol": "LP", "synthetic_symbol": "SYN"},
        "limits": {"max_token_amount": 10_000},
        "fees": {"redeem_fee": redeem_fee},
        "switches": {"offset_disabled": offset_disabled, "discount_disabled": discount_disabled},
        "variants": [
            {"name": "standard", "token_id": 1, "nominal_value": "1"},
            {"name": "large", "token_id": 2, "nominal_value": "10"},
        ],
    })


@dataclass
class Harness:
    service: SynthVaultService
    oracle: FakeOracle
    venue: FakeVenue
    issuer: FakeIssuer
    token_a: FakeToken
    token_b: FakeToken
    events: MemoryEventSink


def build_harness(start: bool = True, funded=("alice", "bob"), **config_kwargs) -> Harness:
    """Service wired to fakes, prices at 1, minters funded with 1M of each component."""
    token_a = FakeToken("TKA")
    token_b = FakeToken("TKB")
    venue = FakeVenue(token_a, token_b)
    issuer = FakeIssuer()
    oracle = FakeOracle({"LP": UNIT, "SYN": UNIT})
    events = MemoryEventSink()
    service = SynthVaultService(
        config=make_config(**config_kwargs),
        oracle=oracle,
        venue=venue,
        issuer=issuer,
        gate=StaticCapabilityGate({ADMIN}),
        component_a=token_a,
        component_b=token_b,
        address=CUSTODY,
        event_sink=events,
        clock=lambda: NOW,
    )
    for minter in funded:
        token_a.balances[minter] = 1_000_000 * UNIT
        token_b.balances[minter] = 1_000_000 * UNIT
    if start:
        service.set_contract_state(ADMIN, ContractState.NORMAL)
    return Harness(service, oracle, venue, issuer, token_a, token_b, events)
