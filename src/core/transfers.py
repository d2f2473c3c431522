"""
Asset transfer helpers with the collaborator success convention.

A transfer succeeded only if the call returned normally *and* returned either
nothing (`None`) or the boolean `True`. Anything else aborts the operation.
"""

from __future__ import annotations

from typing import Any

from ..state.balances import Address, Amount, AssetToken
from .errors import TransferFailedError


def _check_result(result: Any, *, what: str) -> None:
    if result is None or result is True:
        return
    raise TransferFailedError(f"{what} returned {result!r}")


def safe_transfer(token: AssetToken, *, sender: Address, to: Address, amount: Amount) -> None:
    try:
        result = token.transfer(sender, to, amount)
    except TransferFailedError:
        raise
    except Exception as exc:
        raise TransferFailedError(f"transfer {amount} {sender} -> {to}: {exc}") from exc
    _check_result(result, what="transfer")


def safe_transfer_from(
    token: AssetToken, *, spender: Address, owner: Address, to: Address, amount: Amount
) -> None:
    try:
        result = token.transfer_from(spender, owner, to, amount)
    except TransferFailedError:
        raise
    except Exception as exc:
        raise TransferFailedError(f"transfer_from {amount} {owner} -> {to}: {exc}") from exc
    _check_result(result, what="transfer_from")
