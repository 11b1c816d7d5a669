"""
Input Validation - Bounds checks and checked arithmetic.

Amounts and token ids are unsigned 256-bit integers. Python ints never
wrap, so every addition that could leave that range goes through
checked_add and fails loudly instead.
"""

from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Any, Tuple, Union

from mintauction.core.errors import ArithmeticOverflow
from mintauction.crypto import ADDRESS_SIZE

# =============================================================================
# Constants
# =============================================================================

MAX_UINT256 = 2**256 - 1

WEI_PER_ETHER = 10**18

# Enough digits for any uint256 wei amount
WEI_PRECISION = 100


# =============================================================================
# Validation Functions
# =============================================================================


def validate_address(address: Any) -> Tuple[bool, str]:
    """Validate a 20-byte address."""
    if not isinstance(address, (bytes, bytearray)):
        return False, f"address must be bytes, got {type(address).__name__}"
    if len(address) != ADDRESS_SIZE:
        return False, f"address must be {ADDRESS_SIZE} bytes, got {len(address)}"
    return True, ""


def validate_amount(value: Any, name: str = "amount") -> Tuple[bool, str]:
    """
    Validate an unsigned 256-bit amount.

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"
    if value < 0:
        return False, f"{name} must be >= 0, got {value}"
    if value > MAX_UINT256:
        return False, f"{name} must be <= 2**256-1"
    return True, ""


def require_address(address: Any) -> bytes:
    """Return address unchanged or raise ValueError."""
    ok, error = validate_address(address)
    if not ok:
        raise ValueError(error)
    return bytes(address)


def require_amount(value: Any, name: str = "amount") -> int:
    """Return value unchanged or raise ValueError."""
    ok, error = validate_amount(value, name)
    if not ok:
        raise ValueError(error)
    return value


# =============================================================================
# Checked Arithmetic
# =============================================================================


def checked_add(a: int, b: int) -> int:
    """a + b, raising ArithmeticOverflow outside [0, 2**256-1]."""
    result = a + b
    if result > MAX_UINT256 or result < 0:
        raise ArithmeticOverflow(f"{a} + {b} overflows uint256")
    return result


def checked_sub(a: int, b: int) -> int:
    """a - b, raising ArithmeticOverflow on underflow."""
    if b > a:
        raise ArithmeticOverflow(f"{a} - {b} underflows uint256")
    return a - b


# =============================================================================
# Units
# =============================================================================


def to_wei(ether: Union[str, int, Decimal]) -> int:
    """
    Convert an ether amount ("1.1", 2, Decimal("0.01")) to wei.

    Floats are refused; use strings for fractional values.
    """
    if isinstance(ether, float):
        raise TypeError("Use str or Decimal for fractional ether amounts")
    try:
        with localcontext() as ctx:
            ctx.prec = WEI_PRECISION
            ctx.traps[Inexact] = True
            value = Decimal(ether) * WEI_PER_ETHER
    except InvalidOperation as e:
        raise ValueError(f"Invalid ether amount: {ether!r}") from e
    except Inexact as e:
        raise ValueError(f"Ether amount {ether} exceeds {WEI_PRECISION} significant digits") from e
    if value != value.to_integral_value():
        raise ValueError(f"Ether amount {ether} has more than 18 decimals")
    return require_amount(int(value))


def from_wei(wei: int) -> Decimal:
    """Convert wei to ether as a Decimal."""
    with localcontext() as ctx:
        ctx.prec = WEI_PRECISION
        return Decimal(wei) / WEI_PER_ETHER


def format_ether(wei: int) -> str:
    """Human-readable ether string, trailing zeros trimmed."""
    text = f"{from_wei(wei):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} ETH"
