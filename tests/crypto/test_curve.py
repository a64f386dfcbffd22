"""Tests for edwards25519 arithmetic.

Tests cover:
1. Field helpers (square roots, sign)
2. Group law and the prime-order base point
3. Point encoding and decoding, including rejected encodings
4. Interop with Ed25519 keys from the cryptography package
"""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from traitproof.crypto.curve import (
    BASE_Y,
    G,
    P,
    Q,
    SQRT_M1,
    Point,
    fe_sqrt,
    is_square,
    sgn0,
)
from traitproof.crypto.vrf import VRFSecretKey
from traitproof.exceptions import InvalidCurvePointError, RejectReason


class TestFieldHelpers:
    """Test field element helpers."""

    def test_sqrt_m1(self):
        assert SQRT_M1 * SQRT_M1 % P == P - 1

    def test_sqrt_of_square(self):
        root = fe_sqrt(16)
        assert root is not None
        assert root * root % P == 16

    def test_two_is_not_a_square(self):
        assert not is_square(2)
        assert fe_sqrt(2) is None

    def test_zero_is_a_square(self):
        assert is_square(0)
        assert fe_sqrt(0) == 0

    def test_sgn0_is_parity(self):
        assert sgn0(3) == 1
        assert sgn0(4) == 0
        assert sgn0(P + 1) == 1


class TestGroupLaw:
    """Test point arithmetic."""

    def test_base_point_has_prime_order(self):
        assert (G * Q).is_identity()
        assert not G.is_identity()

    def test_scalar_wraps_at_group_order(self):
        assert G * (Q + 1) == G

    def test_addition_matches_doubling(self):
        assert G + G == G.double()
        assert G * 2 == G.double()

    def test_addition_commutes_and_associates(self):
        a, b, c = G * 3, G * 5, G * 11
        assert a + b == b + a
        assert (a + b) + c == a + (b + c)
        assert a + b + c == G * 19

    def test_negation(self):
        assert (G - G).is_identity()
        assert (G * 7 + (-(G * 7))).is_identity()

    def test_identity_is_neutral(self):
        assert G + Point.identity() == G
        assert (G * 0).is_identity()

    def test_negative_scalar_rejected(self):
        with pytest.raises(ValueError):
            G * -1

    def test_oversized_scalar_rejected(self):
        with pytest.raises(ValueError):
            G * (1 << 256)

    def test_from_affine_rejects_off_curve(self):
        with pytest.raises(InvalidCurvePointError):
            Point.from_affine(1, 1)

    def test_base_point_is_not_low_order(self):
        assert not G.is_low_order()
        assert Point.identity().is_low_order()


class TestEncoding:
    """Test RFC 8032 point encoding."""

    def test_base_point_encoding(self):
        assert G.encode() == bytes([0x58]) + bytes([0x66]) * 31
        assert G.affine()[1] == BASE_Y

    def test_encode_decode(self):
        for k in (1, 2, 9, 12345, Q - 1):
            point = G * k
            assert Point.decode(point.encode()) == point

    def test_identity_encoding(self):
        encoded = Point.identity().encode()
        assert encoded == b"\x01" + bytes(31)
        assert Point.decode(encoded).is_identity()

    def test_rejects_wrong_length(self):
        with pytest.raises(InvalidCurvePointError):
            Point.decode(bytes(31))

    def test_rejects_non_canonical_y(self):
        with pytest.raises(InvalidCurvePointError) as exc_info:
            Point.decode(P.to_bytes(32, "little"))
        assert exc_info.value.reason == RejectReason.INVALID_CURVE_POINT

    def test_rejects_negative_zero_x(self):
        data = bytearray(Point.identity().encode())
        data[31] |= 0x80
        with pytest.raises(InvalidCurvePointError):
            Point.decode(bytes(data))


class TestEd25519Interop:
    """VRF keys share public keys with Ed25519 keys of the same seed."""

    def test_public_key_matches_cryptography(self):
        for seed in (bytes(32), bytes(range(32)), b"\xff" * 32):
            expected = Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes_raw()
            assert VRFSecretKey.from_seed(seed).public_key_bytes == expected
