"""Core engine: fixed-point math, ledger, ratio, pricing curve and orchestration."""
