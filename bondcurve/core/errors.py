"""Exception types for the bonding-curve engine.

Every error carries a stable ``code`` string. The pure engine reports rejections
as these codes in ``StepResult.rejection``; ``step_or_raise()`` maps them back
to the classes below via ``ERROR_BY_CODE``.
"""

from __future__ import annotations


class CurveError(Exception):
    """Base class for all bonding-curve errors."""

    code = "curve_error"


class InvalidAmount(CurveError):
    """Zero or negative trade amount."""

    code = "invalid_amount"


class TradingClosed(CurveError):
    """Buy or sell attempted while the curve is not in the trading phase."""

    code = "trading_closed"


class SlippageExceeded(CurveError):
    """Quoted output is below the caller's slippage floor."""

    code = "slippage_exceeded"


class InsufficientCurveLiquidity(CurveError):
    """Quoted output exceeds what the curve actually holds."""

    code = "insufficient_curve_liquidity"


class InvalidComputation(CurveError):
    """Pricing produced a non-positive result or left the integer domain."""

    code = "invalid_computation"


class NotYetGraduated(CurveError):
    """Migration attempted before the graduation threshold was crossed."""

    code = "not_yet_graduated"


class AlreadyMigrated(CurveError):
    """Migration attempted on a curve that is already in its terminal phase."""

    code = "already_migrated"


class Unauthorized(CurveError):
    """Caller identity does not match the required authority."""

    code = "unauthorized"


class NoClaimableFees(CurveError):
    """Claim attempted with nothing pending."""

    code = "no_claimable_fees"


class TransferFailed(CurveError):
    """The transfer ledger rejected one or more legs of a batch."""

    code = "transfer_failed"


class InvalidCurveConfig(CurveError):
    """Creation parameters or a configuration document failed validation."""

    code = "invalid_curve_config"


class UnknownCurve(CurveError):
    code = "unknown_curve"


class DuplicateCurve(CurveError):
    code = "duplicate_curve"


class CurveInvariantError(CurveError):
    """Raised when a post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


ERROR_BY_CODE: dict[str, type[CurveError]] = {
    cls.code: cls
    for cls in (
        InvalidAmount,
        TradingClosed,
        SlippageExceeded,
        InsufficientCurveLiquidity,
        InvalidComputation,
        NotYetGraduated,
        AlreadyMigrated,
        Unauthorized,
        NoClaimableFees,
        TransferFailed,
        InvalidCurveConfig,
        UnknownCurve,
        DuplicateCurve,
    )
}
