"""
Constant-product bonding-curve pricing.

Both quotes are pure functions of (amount, sol_reserves, token_reserves) where the
reserves are the *effective* reserves of a curve (virtual + real SOL, virtual
tokens minus tokens sold).

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per quote
- Invariant: new_sol * new_token >= k

The output amount is floored (equivalently the reserve the curve keeps is
rounded up), so the curve always keeps the remainder and a round trip can never
extract value through rounding.
Inputs live in u64; the product `k` lives in u128. Anything outside those
domains fails closed with `InvalidComputation` instead of wrapping.
"""

from __future__ import annotations

from .errors import InvalidComputation


U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1

LAMPORTS_PER_SOL = 1_000_000_000
TOKEN_DECIMALS = 9


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_u64(name: str, value: int) -> int:
    """Return `value` if it is a u64, raise `InvalidComputation` otherwise."""
    _require_int(name, value)
    if value < 0 or value > U64_MAX:
        raise InvalidComputation(f"{name} out of u64 range: {value}")
    return value


def _check_reserves(sol_reserves: int, token_reserves: int) -> None:
    require_u64("sol_reserves", sol_reserves)
    require_u64("token_reserves", token_reserves)
    if sol_reserves == 0 or token_reserves == 0:
        raise InvalidComputation(
            f"reserves must be non-zero: ({sol_reserves}, {token_reserves})"
        )


def _ceil_div_nonneg(numerator: int, denominator: int) -> int:
    return (numerator + denominator - 1) // denominator


def _constant_product_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    k = reserve_in * reserve_out
    if k > U128_MAX:
        raise InvalidComputation(f"constant product exceeds u128: {k}")
    new_reserve_in = require_u64("new_reserve_in", reserve_in + amount_in)
    # The reserve kept by the curve is rounded up, i.e. amount_out is
    # floor(reserve_out * amount_in / new_reserve_in).
    new_reserve_out = _ceil_div_nonneg(k, new_reserve_in)
    amount_out = reserve_out - new_reserve_out
    if amount_out <= 0:
        raise InvalidComputation(f"computed output is non-positive: {amount_out}")
    if new_reserve_in * new_reserve_out < k:
        raise InvalidComputation(f"invariant violation: new_k < old_k ({k})")
    return amount_out


def quote_buy(sol_in: int, sol_reserves: int, token_reserves: int) -> int:
    """
    Tokens received for `sol_in` lamports.

        k = sol_reserves * token_reserves
        new_token_reserves = ceil(k / (sol_reserves + sol_in))
        tokens_out = token_reserves - new_token_reserves

    Raises:
        InvalidComputation: non-positive output, zero reserves, or a value
            outside the u64/u128 domain.
    """
    require_u64("sol_in", sol_in)
    _check_reserves(sol_reserves, token_reserves)
    return _constant_product_out(sol_in, sol_reserves, token_reserves)


def quote_sell(token_in: int, sol_reserves: int, token_reserves: int) -> int:
    """
    Lamports received for `token_in` base units. Mirror image of `quote_buy`.
    """
    require_u64("token_in", token_in)
    _check_reserves(sol_reserves, token_reserves)
    return _constant_product_out(token_in, token_reserves, sol_reserves)


def spot_price_lamports(sol_reserves: int, token_reserves: int, token_decimals: int = TOKEN_DECIMALS) -> int:
    """Marginal price in lamports per whole token (floor)."""
    _check_reserves(sol_reserves, token_reserves)
    return (sol_reserves * 10**token_decimals) // token_reserves


def market_cap_lamports(sol_reserves: int, token_reserves: int, total_supply: int) -> int:
    """Fully diluted market cap in lamports at the current marginal price (floor)."""
    _check_reserves(sol_reserves, token_reserves)
    require_u64("total_supply", total_supply)
    return (sol_reserves * total_supply) // token_reserves
