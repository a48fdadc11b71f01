"""Fixed-point math library - 18-decimal scaled integers.

One unit (1.0) is ``UNIT = 10**18``. Unsigned values live in ``[0, 2**256 - 1]``,
signed values in ``[-2**255, 2**255 - 1]``. Multiplication and division truncate
toward zero and raise instead of wrapping when a result leaves its range.

Logarithm:
- log2(x) uses the integer part from the bit length and refines the fractional
  part by repeated squaring, one bit per round (60 rounds for 18 decimals)
- log_base(b, x) = log2(x) / log2(b)
"""

from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Union

from ..errors import DivisionByZero, DomainError, Overflow

UNIT = 10**18
HALF_UNIT = UNIT // 2
DOUBLE_UNIT = 2 * UNIT

MAX_UINT = 2**256 - 1
MAX_INT = 2**255 - 1
MIN_INT = -(2**255)

# Enough significant digits for any 256-bit value plus 18 decimals
DECIMAL_PRECISION = 100


def _check_unsigned(value: int, what: str) -> int:
    if value < 0:
        raise DomainError(f"{what}: negative operand {value}")
    if value > MAX_UINT:
        raise Overflow(f"{what}: result {value} exceeds unsigned range")
    return value


def _check_signed(value: int, what: str) -> int:
    if value > MAX_INT or value < MIN_INT:
        raise Overflow(f"{what}: result {value} exceeds signed range")
    return value


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return -quotient if (numerator < 0) != (denominator < 0) else quotient


def mul(a: int, b: int) -> int:
    """Unsigned fixed-point product, truncated."""
    _check_unsigned(a, "mul")
    _check_unsigned(b, "mul")
    return _check_unsigned(a * b // UNIT, "mul")


def div(a: int, b: int) -> int:
    """Unsigned fixed-point quotient, truncated."""
    _check_unsigned(a, "div")
    _check_unsigned(b, "div")
    if b == 0:
        raise DivisionByZero(f"div: {a} / 0")
    return _check_unsigned(a * UNIT // b, "div")


def mul_div(a: int, b: int, c: int) -> int:
    """Compute a * b / c on unsigned integers without intermediate rounding."""
    _check_unsigned(a, "mul_div")
    _check_unsigned(b, "mul_div")
    _check_unsigned(c, "mul_div")
    if c == 0:
        raise DivisionByZero(f"mul_div: {a} * {b} / 0")
    return _check_unsigned(a * b // c, "mul_div")


def checked_add(a: int, b: int) -> int:
    """Unsigned addition with overflow check."""
    _check_unsigned(a, "add")
    _check_unsigned(b, "add")
    return _check_unsigned(a + b, "add")


def smul(a: int, b: int) -> int:
    """Signed fixed-point product, truncated toward zero."""
    _check_signed(a, "smul")
    _check_signed(b, "smul")
    return _check_signed(_trunc_div(a * b, UNIT), "smul")


def sdiv(a: int, b: int) -> int:
    """Signed fixed-point quotient, truncated toward zero."""
    _check_signed(a, "sdiv")
    _check_signed(b, "sdiv")
    if b == 0:
        raise DivisionByZero(f"sdiv: {a} / 0")
    return _check_signed(_trunc_div(a * UNIT, b), "sdiv")


def to_signed(x: int) -> int:
    """Reinterpret an unsigned value as signed, rejecting values above MAX_INT."""
    _check_unsigned(x, "to_signed")
    if x > MAX_INT:
        raise Overflow(f"to_signed: {x} exceeds signed range")
    return x


def to_unsigned(x: int) -> int:
    """Reinterpret a signed value as unsigned, rejecting negatives."""
    _check_signed(x, "to_unsigned")
    if x < 0:
        raise Overflow(f"to_unsigned: {x} is negative")
    return x


def log2(x: int) -> int:
    """
    Binary logarithm of a positive fixed-point number.

    Args:
        x: Fixed-point argument (> 0)

    Returns:
        Signed fixed-point log2(x), truncated

    Raises:
        DomainError: If x <= 0
    """
    if x <= 0:
        raise DomainError(f"log2: argument must be positive, got {x}")
    _check_signed(x, "log2")

    # log2(x) = -log2(1/x) for x < 1
    sign = 1
    if x < UNIT:
        sign = -1
        x = UNIT * UNIT // x

    n = (x // UNIT).bit_length() - 1
    result = n * UNIT
    y = x >> n
    if y == UNIT:
        return sign * result

    delta = HALF_UNIT
    while delta > 0:
        y = y * y // UNIT
        if y >= DOUBLE_UNIT:
            result += delta
            y >>= 1
        delta >>= 1
    return sign * result


def log_base(base: int, x: int) -> int:
    """
    Logarithm of x in the given base, both fixed-point.

    Raises:
        DomainError: If x <= 0 or base <= 1 unit
    """
    if base <= UNIT:
        raise DomainError(f"log_base: base must exceed one unit, got {base}")
    if x <= 0:
        raise DomainError(f"log_base: argument must be positive, got {x}")
    return sdiv(log2(x), log2(base))


def from_decimal(value: Union[Decimal, str, int, float]) -> int:
    """Convert a decimal quantity to fixed-point, truncating excess precision."""
    # str() keeps floats like 9.3 from picking up binary noise
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        scaled = (Decimal(str(value)) * UNIT).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def to_decimal(x: int) -> Decimal:
    """Convert a fixed-point integer to an exact Decimal."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(x) / Decimal(UNIT)
