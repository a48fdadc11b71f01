"""Ledger export and charts."""

from .charts import create_adjustment_chart, create_collateral_chart, create_curve_chart
from .export import export_ledger_csv, export_ledger_json, ledger_frame, snapshot_to_dict

__all__ = [
    "create_adjustment_chart",
    "create_collateral_chart",
    "create_curve_chart",
    "export_ledger_csv",
    "export_ledger_json",
    "ledger_frame",
    "snapshot_to_dict",
]
