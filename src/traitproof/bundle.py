"""ProofBundle: the unit of verification.

A bundle carries everything needed to check one token's randomness:
the VRF output and proof, the derived traits, the Merkle inclusion proof
for the batch, the ledger anchor, and the issuer's seal.

JSON field order does not matter for parsing. For signing, the canonical
form is the JSON of every field except ``signature`` with sorted keys and
no whitespace.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .anchor import Anchor
from .crypto.curve import POINT_SIZE, SCALAR_SIZE
from .crypto.seal import SIGNATURE_SIZE
from .crypto.vrf import CHALLENGE_SIZE, OUTPUT_SIZE, VRFProof
from .encoding import b64, decode_b64, require
from .exceptions import MalformedBundleError
from .merkle import HASH_SIZE, MerkleProof
from .traits import Trait

ALPHA_SEPARATOR = ":"


def make_alpha(collection_id: str, token_id: str) -> bytes:
    """VRF input for a token: ``collection_id || ":" || token_id`` in UTF-8."""
    if not collection_id or ALPHA_SEPARATOR in collection_id:
        raise ValueError(f"collection_id must be non-empty and free of {ALPHA_SEPARATOR!r}")
    if not token_id:
        raise ValueError("token_id must be non-empty")
    return f"{collection_id}{ALPHA_SEPARATOR}{token_id}".encode()


@dataclass(frozen=True)
class ProofBundle:
    """Immutable aggregate of VRF, traits, Merkle proof, anchor and seal."""

    collection_id: str
    token_id: str
    vrf_output: bytes
    vrf_proof: VRFProof
    traits: dict[str, Trait]
    public_key: bytes
    merkle_proof: MerkleProof
    anchor: Anchor
    signature: bytes = field(default=b"")

    @property
    def alpha(self) -> bytes:
        return make_alpha(self.collection_id, self.token_id)

    def check_structure(self) -> None:
        """Validate identifiers and byte sizes.

        Raises:
            MalformedBundleError: On the first structural problem found.
        """
        try:
            self.alpha
        except ValueError as e:
            raise MalformedBundleError(str(e)) from e
        sizes = {
            "vrf_output": (self.vrf_output, OUTPUT_SIZE),
            "vrf_proof.gamma": (self.vrf_proof.gamma, POINT_SIZE),
            "vrf_proof.c": (self.vrf_proof.c, CHALLENGE_SIZE),
            "vrf_proof.s": (self.vrf_proof.s, SCALAR_SIZE),
            "public_key": (self.public_key, POINT_SIZE),
            "merkle_proof.root": (self.merkle_proof.root, HASH_SIZE),
            "merkle_proof.leaf": (self.merkle_proof.leaf, HASH_SIZE),
            "signature": (self.signature, SIGNATURE_SIZE),
        }
        for name, (value, size) in sizes.items():
            if len(value) != size:
                raise MalformedBundleError(f"field {name} must be {size} bytes, got {len(value)}")
        for i, step in enumerate(self.merkle_proof.path):
            if len(step.sibling) != HASH_SIZE:
                raise MalformedBundleError(f"field merkle_proof.path[{i}].sibling must be {HASH_SIZE} bytes")
        if not self.traits:
            raise MalformedBundleError("bundle carries no traits")

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "collection_id": self.collection_id,
            "token_id": self.token_id,
            "vrf_output": b64(self.vrf_output),
            "vrf_proof": self.vrf_proof.to_dict(),
            "traits": {name: trait.to_dict() for name, trait in self.traits.items()},
            "public_key": b64(self.public_key),
            "merkle_proof": self.merkle_proof.to_dict(),
            "anchor": self.anchor.to_dict(),
            "signature": b64(self.signature),
        }

    def canonical_bytes(self) -> bytes:
        """Bytes covered by the issuer seal."""
        payload = self.to_dict()
        payload.pop("signature")
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> ProofBundle:
        """Parse and validate a bundle dictionary.

        Raises:
            MalformedBundleError: Naming the first missing or malformed field.
        """
        if not isinstance(data, Mapping):
            raise MalformedBundleError("bundle must be a JSON object")

        raw_traits = require(data, "traits", dict)
        traits = {}
        for name, raw in raw_traits.items():
            traits[name] = Trait.from_dict(raw, prefix=f"traits.{name}.")

        bundle = cls(
            collection_id=require(data, "collection_id", str),
            token_id=require(data, "token_id", str),
            vrf_output=decode_b64(data, "vrf_output", OUTPUT_SIZE),
            vrf_proof=VRFProof.from_dict(require(data, "vrf_proof", dict)),
            traits=traits,
            public_key=decode_b64(data, "public_key", POINT_SIZE),
            merkle_proof=MerkleProof.from_dict(require(data, "merkle_proof", dict)),
            anchor=Anchor.from_dict(require(data, "anchor", dict)),
            signature=decode_b64(data, "signature", SIGNATURE_SIZE),
        )
        bundle.check_structure()
        return bundle

    @classmethod
    def from_json(cls, text: str | bytes) -> ProofBundle:
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, UnicodeDecodeError and the int digit limit are ValueErrors
            raise MalformedBundleError(f"bundle is not valid JSON: {e}") from e
        return cls.from_dict(data)


__all__ = ["ALPHA_SEPARATOR", "ProofBundle", "make_alpha"]
