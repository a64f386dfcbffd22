"""Cryptographic primitives for traitproof.

- Edwards25519 group and scalar field arithmetic
- RFC 9380 hash-to-curve (Elligator 2)
- ECVRF-EDWARDS25519-SHA512-ELL2 prover and verifier (RFC 9381)
- Ed25519 issuer seals over bundles
"""

from .curve import COFACTOR, G, P, Q, Point
from .hash_to_curve import encode_to_curve, expand_message_xmd, vrf_hash_to_curve
from .seal import seal_bundle, verify_seal
from .vrf import (
    VRFOutput,
    VRFProof,
    VRFSecretKey,
    VRFVerification,
    proof_to_hash,
    prove,
    verify,
    verify_and_hash,
)

__all__ = [
    # Curve
    "COFACTOR",
    "G",
    "P",
    "Point",
    "Q",
    # Hash to curve
    "encode_to_curve",
    "expand_message_xmd",
    "vrf_hash_to_curve",
    # VRF
    "VRFOutput",
    "VRFProof",
    "VRFSecretKey",
    "VRFVerification",
    "proof_to_hash",
    "prove",
    "verify",
    "verify_and_hash",
    # Seal
    "seal_bundle",
    "verify_seal",
]
