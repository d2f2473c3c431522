"""Exception types for the exchange engines.

Every failure is synchronous and aborts the enclosing atomic block. Each class
carries a stable ``code`` so callers can branch without parsing messages.

Categories:
- ``InputValidationError``: caller's fault, do not retry unchanged.
- ``InvariantViolationError``: economically invalid at current reserves; re-quote.
- ``ArithmeticOverflowError``: a value left its fixed-width range.
- ``TransferFailedError``: an asset collaborator refused a transfer.
- ``SlippageError``: deadline or caller-supplied bound not met; resubmit.
"""

from __future__ import annotations

from typing import Optional


class AmmError(Exception):
    """Base class for all exchange failures."""

    code = "AMM_ERROR"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.code
        super().__init__(f"{self.code}: {self.message}" if message else self.code)


# -- input validation ---------------------------------------------------------


class InputValidationError(AmmError, ValueError):
    code = "INVALID_INPUT"


class IdenticalAssetsError(InputValidationError):
    code = "IDENTICAL_ADDRESSES"


class ZeroAddressError(InputValidationError):
    code = "ZERO_ADDRESS"


class InvalidAddressError(InputValidationError):
    code = "INVALID_ADDRESS"


class InvalidPathError(InputValidationError):
    code = "INVALID_PATH"


class InvalidRecipientError(InputValidationError):
    code = "INVALID_TO"


class PoolExistsError(InputValidationError):
    code = "PAIR_EXISTS"


class PoolNotFoundError(InputValidationError):
    code = "PAIR_NOT_FOUND"


class UnknownAssetError(InputValidationError):
    code = "UNKNOWN_ASSET"


class InsufficientAmountError(InputValidationError):
    code = "INSUFFICIENT_AMOUNT"


class InsufficientInputAmountError(InputValidationError):
    code = "INSUFFICIENT_INPUT_AMOUNT"


class InsufficientOutputAmountError(InputValidationError):
    code = "INSUFFICIENT_OUTPUT_AMOUNT"


# -- invariant violations -----------------------------------------------------


class InvariantViolationError(AmmError):
    code = "INVARIANT_VIOLATION"


class InsufficientLiquidityError(InvariantViolationError):
    code = "INSUFFICIENT_LIQUIDITY"


class KInvariantError(InvariantViolationError):
    """Fee-adjusted product of balances fell below the pre-swap product."""

    code = "K"

    def __init__(self, k_adjusted: int, k_required: int) -> None:
        self.k_adjusted = k_adjusted
        self.k_required = k_required
        super().__init__(f"fee-adjusted k {k_adjusted} < required {k_required}")


class InsufficientLiquidityMintedError(InvariantViolationError):
    code = "INSUFFICIENT_LIQUIDITY_MINTED"


class InsufficientLiquidityBurnedError(InvariantViolationError):
    code = "INSUFFICIENT_LIQUIDITY_BURNED"


class ReserveMismatchError(InvariantViolationError):
    """Live balance is below the tracked reserve."""

    code = "RESERVE_MISMATCH"


# -- arithmetic ---------------------------------------------------------------


class ArithmeticOverflowError(AmmError, OverflowError):
    code = "OVERFLOW"


# -- external calls -----------------------------------------------------------


class TransferFailedError(AmmError):
    code = "TRANSFER_FAILED"


# -- staleness / slippage -----------------------------------------------------


class SlippageError(AmmError):
    code = "SLIPPAGE"


class DeadlineExpiredError(SlippageError):
    code = "EXPIRED"

    def __init__(self, deadline: int, now: int) -> None:
        self.deadline = deadline
        self.now = now
        super().__init__(f"deadline {deadline} passed (now {now})")


class InsufficientAAmountError(SlippageError):
    code = "INSUFFICIENT_A_AMOUNT"


class InsufficientBAmountError(SlippageError):
    code = "INSUFFICIENT_B_AMOUNT"


class OutputBelowMinimumError(SlippageError):
    code = "INSUFFICIENT_OUTPUT_AMOUNT"


class ExcessiveInputAmountError(SlippageError):
    code = "EXCESSIVE_INPUT_AMOUNT"
