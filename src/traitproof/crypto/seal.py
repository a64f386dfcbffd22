"""Issuer seal: Ed25519 signature over a bundle's canonical bytes.

The VRF proves an output was generated correctly for a public key; the
seal proves who issued the bundle. The signature covers every bundle field
except the signature itself (see ``ProofBundle.canonical_bytes``).
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

if TYPE_CHECKING:
    from ..bundle import ProofBundle

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 64


def load_public_key(public_key: Ed25519PublicKey | bytes) -> Ed25519PublicKey:
    """Accept either a key object or 32 raw bytes."""
    if isinstance(public_key, Ed25519PublicKey):
        return public_key
    return Ed25519PublicKey.from_public_bytes(bytes(public_key))


def seal_bundle(bundle: ProofBundle, private_key: Ed25519PrivateKey) -> ProofBundle:
    """Return a copy of the bundle carrying the issuer's signature."""
    signature = private_key.sign(bundle.canonical_bytes())
    return dataclasses.replace(bundle, signature=signature)


def verify_seal(bundle: ProofBundle, public_key: Ed25519PublicKey | bytes) -> bool:
    """Check the bundle's signature against the issuer public key.

    Returns:
        True if the signature is valid for the bundle's canonical bytes.
    """
    if len(bundle.signature) != SIGNATURE_SIZE:
        return False
    try:
        key = load_public_key(public_key)
    except ValueError as e:
        logger.debug(f"Invalid issuer public key: {e}")
        return False
    try:
        key.verify(bundle.signature, bundle.canonical_bytes())
    except InvalidSignature:
        return False
    return True


__all__ = ["SIGNATURE_SIZE", "load_public_key", "seal_bundle", "verify_seal"]
