"""
Production Python kernels.

These modules are designed to be:
- deterministic (integer-only, explicit widths),
- easy to audit (explicit intermediate variables),
- small surface-area (pure functions, typed results).
"""
