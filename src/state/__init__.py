"""
State model for the exchange: identities, token ledgers, write journaling and pool identity.
"""

from .balances import NULL_ADDRESS, Address, Amount, AssetToken, ShareToken, TokenLedger, canonical_address
from .journal import Journaled
from .pools import PoolReserves, compute_pool_address, sort_assets

__all__ = [
    "NULL_ADDRESS",
    "Address",
    "Amount",
    "AssetToken",
    "ShareToken",
    "TokenLedger",
    "canonical_address",
    "Journaled",
    "PoolReserves",
    "compute_pool_address",
    "sort_assets",
]
