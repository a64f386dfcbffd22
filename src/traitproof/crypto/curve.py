"""Edwards25519 group and scalar field arithmetic.

Points are kept in extended twisted Edwards coordinates (X:Y:Z:T) with
x = X/Z, y = Y/Z and x*y = T/Z, using the complete addition and doubling
formulas from RFC 8032 section 5.1.4. Encoding and decoding follow RFC 8032
sections 5.1.2 and 5.1.3.

Scalar multiplication runs a fixed-length Montgomery ladder: every scalar
below 2^256 goes through the same sequence of one addition and one doubling
per bit. CPython integers are not constant-time, so this only removes the
data-dependent operation count.
"""

from __future__ import annotations

from ..exceptions import InvalidCurvePointError

# =============================================================================
# CURVE CONSTANTS
# =============================================================================

P = 2**255 - 19
Q = 2**252 + 27742317777372353535851937790883648493  # prime subgroup order
COFACTOR = 8
D = (-121665 * pow(121666, -1, P)) % P
SQRT_M1 = pow(2, (P - 1) // 4, P)

POINT_SIZE = 32
SCALAR_SIZE = 32
SCALAR_BITS = 256


# =============================================================================
# FIELD ELEMENTS
# =============================================================================


def fe_inv(x: int) -> int:
    """Multiplicative inverse mod p (0 maps to 0)."""
    return pow(x, P - 2, P)


def is_square(x: int) -> bool:
    """Euler's criterion; zero counts as a square."""
    x %= P
    return x == 0 or pow(x, (P - 1) // 2, P) == 1


def fe_sqrt(x: int) -> int | None:
    """Return a square root of x mod p, or None if x is not a square."""
    x %= P
    root = pow(x, (P + 3) // 8, P)
    if (root * root - x) % P != 0:
        root = root * SQRT_M1 % P
    if (root * root - x) % P != 0:
        return None
    return root


def sgn0(x: int) -> int:
    """Sign of a field element as defined by RFC 9380 (parity)."""
    return (x % P) & 1


def _recover_x(y: int, sign: int) -> int | None:
    x2 = (y * y - 1) * fe_inv(D * y * y + 1) % P
    if x2 == 0:
        return None if sign else 0
    x = fe_sqrt(x2)
    if x is None:
        return None
    if x & 1 != sign:
        x = P - x
    return x


# =============================================================================
# SCALARS
# =============================================================================


def reduce_scalar(n: int) -> int:
    """Reduce an integer into [0, q)."""
    return n % Q


def scalar_from_bytes(data: bytes) -> int:
    """Little-endian bytes to integer (no reduction)."""
    return int.from_bytes(data, "little")


def scalar_to_bytes(n: int, length: int = SCALAR_SIZE) -> bytes:
    """Integer to little-endian bytes of the given length."""
    return n.to_bytes(length, "little")


# =============================================================================
# POINTS
# =============================================================================


class Point:
    """A point on edwards25519 in extended coordinates."""

    __slots__ = ("X", "Y", "Z", "T")

    def __init__(self, X: int, Y: int, Z: int, T: int):
        self.X = X % P
        self.Y = Y % P
        self.Z = Z % P
        self.T = T % P

    @classmethod
    def identity(cls) -> Point:
        return cls(0, 1, 1, 0)

    @classmethod
    def from_affine(cls, x: int, y: int) -> Point:
        """Build a point from affine coordinates, checking the curve equation."""
        x %= P
        y %= P
        if (-x * x + y * y - 1 - D * x * x * y * y) % P != 0:
            raise InvalidCurvePointError("point is not on edwards25519")
        return cls(x, y, 1, x * y)

    def affine(self) -> tuple[int, int]:
        zinv = fe_inv(self.Z)
        return self.X * zinv % P, self.Y * zinv % P

    # -------------------------------------------------------------------------
    # Group law
    # -------------------------------------------------------------------------

    def __add__(self, other: Point) -> Point:
        a = (self.Y - self.X) * (other.Y - other.X)
        b = (self.Y + self.X) * (other.Y + other.X)
        c = self.T * 2 * D * other.T
        d = self.Z * 2 * other.Z
        e, f, g, h = b - a, d - c, d + c, b + a
        return Point(e * f, g * h, f * g, e * h)

    def double(self) -> Point:
        a = self.X * self.X
        b = self.Y * self.Y
        c = 2 * self.Z * self.Z
        h = a + b
        e = h - (self.X + self.Y) ** 2
        g = a - b
        f = c + g
        return Point(e * f, g * h, f * g, e * h)

    def __neg__(self) -> Point:
        return Point(-self.X, self.Y, self.Z, -self.T)

    def __sub__(self, other: Point) -> Point:
        return self + (-other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return (self.X * other.Z - other.X * self.Z) % P == 0 and (
            self.Y * other.Z - other.Y * self.Z
        ) % P == 0

    __hash__ = None  # type: ignore[assignment]

    def scalar_mult(self, k: int) -> Point:
        """Compute k*self with a fixed 256-step Montgomery ladder."""
        if k < 0 or k.bit_length() > SCALAR_BITS:
            raise ValueError("scalar must be in [0, 2^256)")
        r0, r1 = Point.identity(), self
        for i in reversed(range(SCALAR_BITS)):
            if (k >> i) & 1:
                r0, r1 = r0 + r1, r1.double()
            else:
                r0, r1 = r0.double(), r0 + r1
        return r0

    def __mul__(self, k: int) -> Point:
        return self.scalar_mult(k)

    __rmul__ = __mul__

    def clear_cofactor(self) -> Point:
        return self.double().double().double()

    def is_identity(self) -> bool:
        return self.X == 0 and (self.Y - self.Z) % P == 0

    def is_low_order(self) -> bool:
        """True if the point lies in the small (order dividing 8) subgroup."""
        return self.clear_cofactor().is_identity()

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def encode(self) -> bytes:
        x, y = self.affine()
        return (y | ((x & 1) << 255)).to_bytes(POINT_SIZE, "little")

    @classmethod
    def decode(cls, data: bytes) -> Point:
        """Decode a 32-byte compressed point, rejecting non-canonical input."""
        if len(data) != POINT_SIZE:
            raise InvalidCurvePointError(f"point must be {POINT_SIZE} bytes, got {len(data)}")
        raw = int.from_bytes(data, "little")
        sign = raw >> 255
        y = raw & ((1 << 255) - 1)
        if y >= P:
            raise InvalidCurvePointError("non-canonical y coordinate")
        x = _recover_x(y, sign)
        if x is None:
            raise InvalidCurvePointError("bytes do not encode a curve point")
        return cls(x, y, 1, x * y)

    def __repr__(self) -> str:
        return f"Point({self.encode().hex()})"


BASE_Y = 4 * fe_inv(5) % P
G = Point.from_affine(_recover_x(BASE_Y, 0), BASE_Y)  # type: ignore[arg-type]


__all__ = [
    "BASE_Y",
    "COFACTOR",
    "D",
    "G",
    "P",
    "POINT_SIZE",
    "Point",
    "Q",
    "SCALAR_SIZE",
    "fe_inv",
    "fe_sqrt",
    "is_square",
    "reduce_scalar",
    "scalar_from_bytes",
    "scalar_to_bytes",
    "sgn0",
]
