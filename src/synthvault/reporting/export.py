"""Export functionality for CSV and JSON."""

import json
from typing import Any, Dict

import pandas as pd

from ..engine.fixed_point import to_decimal
from ..engine.ledger import LedgerSnapshot


def ledger_frame(snapshot: LedgerSnapshot) -> pd.DataFrame:
    """One row per variant, fixed-point fields converted to decimals."""
    data = []
    for variant in snapshot.variants:
        data.append({
            'variant_id': variant.variant_id,
            'name': variant.name,
            'token_id': variant.token_id,
            'nominal_value': float(to_decimal(variant.nominal_value)),
            'total_raw_collateral': float(to_decimal(variant.total_raw_collateral)),
            'total_outstanding': float(to_decimal(variant.total_outstanding)),
            'total_issued': variant.total_issued,
            'total_burnt': variant.total_burnt,
            'disabled': variant.disabled,
        })

    columns = [
        'variant_id', 'name', 'token_id', 'nominal_value', 'total_raw_collateral',
        'total_outstanding', 'total_issued', 'total_burnt', 'disabled'
    ]
    return pd.DataFrame(data, columns=columns)


def snapshot_to_dict(snapshot: LedgerSnapshot) -> Dict[str, Any]:
    """Exact representation; fixed-point values kept as decimal strings."""
    return {
        'contract_state': snapshot.contract_state.value,
        'global': {
            'total_raw_collateral': str(to_decimal(snapshot.global_state.total_raw_collateral)),
            'total_outstanding': str(to_decimal(snapshot.global_state.total_outstanding)),
            'accrued_fees': str(to_decimal(snapshot.global_state.accrued_fees)),
        },
        'variants': [
            {
                'variant_id': v.variant_id,
                'name': v.name,
                'token_id': v.token_id,
                'nominal_value': str(to_decimal(v.nominal_value)),
                'total_raw_collateral': str(to_decimal(v.total_raw_collateral)),
                'total_outstanding': str(to_decimal(v.total_outstanding)),
                'total_issued': v.total_issued,
                'total_burnt': v.total_burnt,
                'disabled': v.disabled,
            }
            for v in snapshot.variants
        ],
    }


def export_ledger_csv(snapshot: LedgerSnapshot, filepath: str):
    """Export per-variant ledger state to CSV."""
    ledger_frame(snapshot).to_csv(filepath, index=False)


def export_ledger_json(snapshot: LedgerSnapshot, filepath: str):
    """Export the full ledger snapshot to JSON."""
    with open(filepath, 'w') as f:
        json.dump(snapshot_to_dict(snapshot), f, indent=2)
