"""Hash-to-curve for ECVRF-EDWARDS25519-SHA512-ELL2.

Implements the RFC 9380 suite edwards25519_XMD:SHA-512_ELL2_NU_ as used by
RFC 9381 section 5.4.1.2 (ECVRF_encode_to_curve_h2c_suite):

1. expand_message_xmd with SHA-512 produces 48 uniform bytes
2. the bytes are read big-endian and reduced mod p (hash_to_field)
3. Elligator 2 maps the field element onto curve25519
4. the birational map moves the point to edwards25519
5. multiplying by the cofactor lands in the prime-order subgroup

The VRF hashes ``public_key || alpha`` under a VRF-specific DST.
"""

from __future__ import annotations

import hashlib

from ..exceptions import InvalidCurvePointError
from .curve import P, Point, fe_inv, fe_sqrt, is_square, sgn0

SUITE_STRING = b"\x04"
H2C_SUITE_ID = b"edwards25519_XMD:SHA-512_ELL2_NU_"
VRF_DST = b"ECVRF_" + H2C_SUITE_ID + SUITE_STRING

# SHA-512 block parameters for expand_message_xmd
_B_IN_BYTES = 64
_S_IN_BYTES = 128
_FIELD_BYTES = 48  # ceil((ceil(log2(p)) + 128) / 8)

# Montgomery form of curve25519: t^2 = s^3 + J*s^2 + s
_J = 486662
_Z = 2


def _sqrt_with_sign(value: int, sign: int) -> int:
    root = fe_sqrt(value)
    if root is None:
        raise InvalidCurvePointError("value has no square root")
    if sgn0(root) != sign:
        root = (P - root) % P
    return root


# sqrt(-486664) with sgn0 == 0, used by the rational map
_C1 = _sqrt_with_sign(-486664 % P, 0)


def expand_message_xmd(msg: bytes, dst: bytes, length: int) -> bytes:
    """RFC 9380 section 5.3.1 with SHA-512."""
    ell = -(-length // _B_IN_BYTES)
    if ell > 255 or length > 65535 or len(dst) > 255:
        raise ValueError("expand_message_xmd parameters out of range")

    dst_prime = dst + bytes([len(dst)])
    msg_prime = bytes(_S_IN_BYTES) + msg + length.to_bytes(2, "big") + b"\x00" + dst_prime

    b0 = hashlib.sha512(msg_prime).digest()
    blocks = [hashlib.sha512(b0 + b"\x01" + dst_prime).digest()]
    for i in range(2, ell + 1):
        mixed = bytes(x ^ y for x, y in zip(b0, blocks[-1]))
        blocks.append(hashlib.sha512(mixed + bytes([i]) + dst_prime).digest())
    return b"".join(blocks)[:length]


def hash_to_field(msg: bytes, dst: bytes) -> int:
    """Hash to a single element of GF(p)."""
    uniform = expand_message_xmd(msg, dst, _FIELD_BYTES)
    return int.from_bytes(uniform, "big") % P


def map_to_curve_elligator2(u: int) -> Point:
    """Map a field element to edwards25519 (not yet cofactor-cleared)."""
    # Elligator 2 onto curve25519 (RFC 9380 section 6.7.1)
    x1 = -_J * fe_inv(1 + _Z * u * u) % P
    if x1 == 0:
        x1 = -_J % P
    gx1 = (x1 * x1 * x1 + _J * x1 * x1 + x1) % P
    if is_square(gx1):
        s, t = x1, _sqrt_with_sign(gx1, 1)
    else:
        x2 = (-x1 - _J) % P
        gx2 = (x2 * x2 * x2 + _J * x2 * x2 + x2) % P
        s, t = x2, _sqrt_with_sign(gx2, 0)

    # Rational map to edwards25519 (RFC 9380 appendix D.1)
    if t == 0 or (s + 1) % P == 0:
        return Point.identity()
    x = _C1 * s * fe_inv(t) % P
    y = (s - 1) * fe_inv(s + 1) % P
    return Point.from_affine(x, y)


def encode_to_curve(msg: bytes, dst: bytes) -> Point:
    """Nonuniform encoding: hash_to_field, map, clear cofactor."""
    u = hash_to_field(msg, dst)
    return map_to_curve_elligator2(u).clear_cofactor()


def vrf_hash_to_curve(public_key: bytes, alpha: bytes) -> Point:
    """Map ``public_key || alpha`` to a point H in the prime-order subgroup.

    Raises:
        InvalidCurvePointError: If the mapping degenerates to the identity.
    """
    point = encode_to_curve(public_key + alpha, VRF_DST)
    if point.is_identity():
        raise InvalidCurvePointError("hash-to-curve produced the identity point")
    return point


__all__ = [
    "H2C_SUITE_ID",
    "SUITE_STRING",
    "VRF_DST",
    "encode_to_curve",
    "expand_message_xmd",
    "hash_to_field",
    "map_to_curve_elligator2",
    "vrf_hash_to_curve",
]
