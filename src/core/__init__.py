"""
Core exchange: pools, registry, path math and router
"""

from .errors import (
    AmmError,
    ArithmeticOverflowError,
    InputValidationError,
    InvariantViolationError,
    SlippageError,
    TransferFailedError,
)
from .context import ExecutionContext
from .events import Deposit, EventLog, PoolCreated, Swap, Sync, Withdrawal
from .pool import Pool
from .registry import DEFAULT_REGISTRY_ADDRESS, Registry, default_share_ledger
from .path_math import get_amount_in, get_amount_out, get_amounts_in, get_amounts_out, quote
from .router import DEFAULT_ROUTER_ADDRESS, Router
from .oracle import current_cumulative_prices

__all__ = [
    "AmmError",
    "ArithmeticOverflowError",
    "InputValidationError",
    "InvariantViolationError",
    "SlippageError",
    "TransferFailedError",
    "ExecutionContext",
    "Deposit",
    "EventLog",
    "PoolCreated",
    "Swap",
    "Sync",
    "Withdrawal",
    "Pool",
    "DEFAULT_REGISTRY_ADDRESS",
    "Registry",
    "default_share_ledger",
    "get_amount_in",
    "get_amount_out",
    "get_amounts_in",
    "get_amounts_out",
    "quote",
    "DEFAULT_ROUTER_ADDRESS",
    "Router",
    "current_cumulative_prices",
]
