"""Pydantic schema for configuration validation."""

import hashlib
import json
from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator


class Oracle(BaseModel):
    """Price symbols read from the oracle."""
    collateral_symbol: str = Field(min_length=1, description="Symbol of the collateral share token")
    synthetic_symbol: str = Field(min_length=1, description="Symbol of the synthetic asset")

    @model_validator(mode='after')
    def validate_distinct(self):
        """Collateral and synthetic must be priced separately."""
        if self.collateral_symbol == self.synthetic_symbol:
            raise ValueError("collateral_symbol and synthetic_symbol must differ")
        return self


class Curve(BaseModel):
    """Target CR curve: target(cr) = log_base(base, k * cr + 1)."""
    base: Decimal = Field(default=Decimal("10"), gt=1, description="Logarithm base")
    k: Decimal = Field(default=Decimal("9.3"), gt=0, description="CR multiplier inside the log")


class Limits(BaseModel):
    """Per-call limits for mint and redeem."""
    max_token_amount: int = Field(gt=0, description="Per-call token ceiling")
    slippage_tolerance: Decimal = Field(
        default=Decimal("0.03"), ge=0, lt=1,
        description="Accepted shortfall on liquidity minimums (0.03 = 3%)"
    )
    deadline_seconds: int = Field(default=1200, gt=0, description="Venue deadline offset from now")


class Fees(BaseModel):
    """Fees charged by the engine."""
    redeem_fee: Decimal = Field(default=Decimal("0"), ge=0, lt=1, description="Fraction of redeemed collateral retained")


class Switches(BaseModel):
    """Pricing curve switches."""
    offset_disabled: bool = Field(default=False, description="Redeem at pure pro-rata")
    discount_disabled: bool = Field(default=False, description="Mint at pure pro-rata")


class VariantSpec(BaseModel):
    """Variant created when the service starts."""
    name: str = Field(min_length=1)
    token_id: int = Field(ge=0, description="Issuer-side token id")
    nominal_value: Decimal = Field(gt=0, description="Value of one token at CR = 1")


class Config(BaseModel):
    """Complete configuration for the synthetic position engine."""
    oracle: Oracle
    curve: Curve = Field(default_factory=Curve)
    limits: Limits
    fees: Fees = Field(default_factory=Fees)
    switches: Switches = Field(default_factory=Switches)
    variants: List[VariantSpec] = Field(default_factory=list)

    @field_validator('variants')
    @classmethod
    def validate_unique_tokens(cls, v):
        """Each variant needs its own issuer token id."""
        token_ids = [spec.token_id for spec in v]
        if len(token_ids) != len(set(token_ids)):
            raise ValueError(f"Duplicate variant token_id in {token_ids}")
        return v

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump(mode="json")
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump(mode="json")
