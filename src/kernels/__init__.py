"""
Kernel layer.

Pure, deterministic integer math used by the pool engine:
- `uq112x112`: fixed-width helpers and the UQ112x112 price encoding,
- `cpmm_swap_v1`: single-hop pricing and the fee-adjusted invariant check,
- `lp_math_v1`: liquidity share minting/burning and deposit sizing.
"""
