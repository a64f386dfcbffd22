"""Verifiable Random Function: ECVRF-EDWARDS25519-SHA512-ELL2 (RFC 9381).

Given a secret scalar x and an input string alpha, ``prove`` returns a
64-byte output beta and a proof pi = (Gamma, c, s). Anyone holding the
public point Y = x*G can check with ``verify`` that beta is the unique
output for (Y, alpha).

Construction:
    H     = encode_to_curve(Y || alpha)                       (ELL2, cofactor cleared)
    Gamma = x*H
    k     = SHA512(nonce_prefix || H) mod q                   (RFC 9381 5.4.2.2)
    c     = SHA512(0x04 || 0x02 || Y || H || Gamma || k*G || k*H || 0x00)[:16]
    s     = (k + c*x) mod q
    beta  = SHA512(0x04 || 0x03 || 8*Gamma || 0x00)

Keys are interchangeable with Ed25519 keys: a VRFSecretKey built from a
32-byte seed has the same public key as the Ed25519 key for that seed.

Example:
    >>> key = VRFSecretKey.from_seed(bytes(32))
    >>> out = prove(key, b"CryptoKitties:12345")
    >>> verify(key.public_key_bytes, b"CryptoKitties:12345", out.beta, out.proof).valid
    True
"""

from __future__ import annotations

import hashlib
import hmac
import os
from dataclasses import dataclass, field
from typing import Any

from ..encoding import b64, decode_b64
from ..exceptions import (
    BundleVerificationError,
    ChallengeMismatchError,
    InvalidCurvePointError,
    MalformedBundleError,
    NonCanonicalScalarError,
    OutputMismatchError,
    RejectReason,
)
from .curve import G, POINT_SIZE, Q, SCALAR_SIZE, Point, reduce_scalar, scalar_from_bytes, scalar_to_bytes
from .hash_to_curve import SUITE_STRING, vrf_hash_to_curve

CHALLENGE_SIZE = 16
PROOF_SIZE = POINT_SIZE + CHALLENGE_SIZE + SCALAR_SIZE  # 80
OUTPUT_SIZE = 64
SEED_SIZE = 32

_CHALLENGE_FRONT = b"\x02"
_CHALLENGE_BACK = b"\x00"
_PROOF_TO_HASH_FRONT = b"\x03"
_PROOF_TO_HASH_BACK = b"\x00"


# =============================================================================
# KEYS
# =============================================================================


@dataclass(frozen=True)
class VRFSecretKey:
    """Secret scalar x in [1, q-1] plus the nonce prefix for deterministic k.

    Neither field appears in ``repr`` and the key has no serializer.
    """

    scalar: int = field(repr=False)
    nonce_prefix: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if not 1 <= self.scalar < Q:
            raise ValueError("secret scalar must be in [1, q-1]")
        if len(self.nonce_prefix) != 32:
            raise ValueError(f"nonce prefix must be 32 bytes, got {len(self.nonce_prefix)}")

    @classmethod
    def from_seed(cls, seed: bytes) -> VRFSecretKey:
        """Expand a 32-byte Ed25519 seed as in RFC 8032 section 5.1.5."""
        if len(seed) != SEED_SIZE:
            raise ValueError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
        digest = hashlib.sha512(seed).digest()
        clamped = bytearray(digest[:32])
        clamped[0] &= 248
        clamped[31] &= 127
        clamped[31] |= 64
        return cls(scalar=reduce_scalar(scalar_from_bytes(bytes(clamped))), nonce_prefix=digest[32:])

    @classmethod
    def from_scalar(cls, scalar: int) -> VRFSecretKey:
        """Wrap a raw scalar; the nonce prefix is derived from it."""
        if not 1 <= scalar < Q:
            raise ValueError("secret scalar must be in [1, q-1]")
        prefix = hashlib.sha512(b"traitproof-vrf-nonce-v1" + scalar_to_bytes(scalar)).digest()[32:]
        return cls(scalar=scalar, nonce_prefix=prefix)

    @classmethod
    def generate(cls) -> VRFSecretKey:
        """Fresh key from a random seed."""
        return cls.from_seed(os.urandom(SEED_SIZE))

    @property
    def public_point(self) -> Point:
        return G * self.scalar

    @property
    def public_key_bytes(self) -> bytes:
        return self.public_point.encode()


# =============================================================================
# PROOF AND OUTPUT
# =============================================================================


@dataclass(frozen=True)
class VRFProof:
    """Proof pi = (Gamma, c, s) in wire form."""

    gamma: bytes  # Encoded curve point, 32 bytes
    c: bytes  # Challenge, 16 bytes little-endian
    s: bytes  # Response, 32 bytes little-endian

    def to_bytes(self) -> bytes:
        return self.gamma + self.c + self.s

    @classmethod
    def from_bytes(cls, data: bytes) -> VRFProof:
        if len(data) != PROOF_SIZE:
            raise MalformedBundleError(f"Invalid proof length: {len(data)}, expected {PROOF_SIZE}")
        return cls(
            gamma=data[:POINT_SIZE],
            c=data[POINT_SIZE : POINT_SIZE + CHALLENGE_SIZE],
            s=data[POINT_SIZE + CHALLENGE_SIZE :],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "gamma": b64(self.gamma),
            "c": b64(self.c),
            "s": b64(self.s),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VRFProof:
        """Create from dictionary (base64 fields)."""
        return cls(
            gamma=decode_b64(data, "gamma", POINT_SIZE, prefix="vrf_proof."),
            c=decode_b64(data, "c", CHALLENGE_SIZE, prefix="vrf_proof."),
            s=decode_b64(data, "s", SCALAR_SIZE, prefix="vrf_proof."),
        )


@dataclass(frozen=True)
class VRFOutput:
    """Result of a VRF evaluation: output beta and its proof."""

    beta: bytes
    proof: VRFProof

    def beta_as_int(self) -> int:
        return int.from_bytes(self.beta, "big")


@dataclass(frozen=True)
class VRFVerification:
    """Outcome of proof verification with the specific failure reason."""

    valid: bool
    reason: RejectReason | None = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.valid


# =============================================================================
# INTERNALS
# =============================================================================


def _challenge(*points: bytes) -> int:
    digest = hashlib.sha512(SUITE_STRING + _CHALLENGE_FRONT + b"".join(points) + _CHALLENGE_BACK).digest()
    return scalar_from_bytes(digest[:CHALLENGE_SIZE])


def _gamma_to_hash(gamma: Point) -> bytes:
    return hashlib.sha512(
        SUITE_STRING + _PROOF_TO_HASH_FRONT + gamma.clear_cofactor().encode() + _PROOF_TO_HASH_BACK
    ).digest()


def _nonce(key: VRFSecretKey, h_string: bytes) -> int:
    return reduce_scalar(scalar_from_bytes(hashlib.sha512(key.nonce_prefix + h_string).digest()))


def _decode_public_key(public_key: bytes) -> Point:
    y = Point.decode(public_key)
    if y.is_low_order():
        raise InvalidCurvePointError("public key is a low-order point")
    return y


def _decode_proof(proof: VRFProof) -> tuple[Point, int, int]:
    if len(proof.gamma) != POINT_SIZE or len(proof.c) != CHALLENGE_SIZE or len(proof.s) != SCALAR_SIZE:
        raise MalformedBundleError("proof component has the wrong length")
    gamma = Point.decode(proof.gamma)
    c = scalar_from_bytes(proof.c)
    s = scalar_from_bytes(proof.s)
    if s >= Q:
        raise NonCanonicalScalarError("proof scalar s is not reduced mod q")
    return gamma, c, s


# =============================================================================
# PROVE / VERIFY
# =============================================================================


def prove(key: VRFSecretKey, alpha: bytes) -> VRFOutput:
    """Evaluate the VRF on alpha and build the proof.

    Deterministic: the same (key, alpha) always yields byte-identical output.
    """
    y_string = key.public_key_bytes
    h = vrf_hash_to_curve(y_string, alpha)
    h_string = h.encode()
    gamma = h * key.scalar
    k = _nonce(key, h_string)
    c = _challenge(y_string, h_string, gamma.encode(), (G * k).encode(), (h * k).encode())
    s = (k + c * key.scalar) % Q

    proof = VRFProof(
        gamma=gamma.encode(),
        c=scalar_to_bytes(c, CHALLENGE_SIZE),
        s=scalar_to_bytes(s, SCALAR_SIZE),
    )
    return VRFOutput(beta=_gamma_to_hash(gamma), proof=proof)


def proof_to_hash(proof: VRFProof) -> bytes:
    """Output beta encoded by a proof. Does not verify the proof."""
    return _gamma_to_hash(Point.decode(proof.gamma))


def verify_and_hash(public_key: bytes, alpha: bytes, proof: VRFProof) -> bytes:
    """Verify a proof and return its output.

    Raises:
        InvalidCurvePointError: Public key or Gamma is not acceptable.
        NonCanonicalScalarError: s is not reduced.
        ChallengeMismatchError: Proof does not verify.
    """
    y = _decode_public_key(public_key)
    gamma, c, s = _decode_proof(proof)
    h = vrf_hash_to_curve(public_key, alpha)

    u = G * s - y * c
    v = h * s - gamma * c
    expected = _challenge(public_key, h.encode(), proof.gamma, u.encode(), v.encode())
    if c != expected:
        raise ChallengeMismatchError("recomputed challenge differs from proof")
    return _gamma_to_hash(gamma)


def verify_output(public_key: bytes, alpha: bytes, beta: bytes, proof: VRFProof) -> None:
    """Raise a BundleVerificationError unless (beta, proof) is valid for (Y, alpha)."""
    recomputed = verify_and_hash(public_key, alpha, proof)
    if not hmac.compare_digest(recomputed, beta):
        raise OutputMismatchError("claimed VRF output does not match proof")


def verify(public_key: bytes, alpha: bytes, beta: bytes, proof: VRFProof) -> VRFVerification:
    """Check a claimed output and proof, reporting the failure reason."""
    try:
        verify_output(public_key, alpha, beta, proof)
    except BundleVerificationError as e:
        return VRFVerification(valid=False, reason=e.reason, detail=e.message)
    return VRFVerification(valid=True)


__all__ = [
    "CHALLENGE_SIZE",
    "OUTPUT_SIZE",
    "PROOF_SIZE",
    "VRFOutput",
    "VRFProof",
    "VRFSecretKey",
    "VRFVerification",
    "proof_to_hash",
    "prove",
    "verify",
    "verify_and_hash",
    "verify_output",
]
