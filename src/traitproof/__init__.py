"""traitproof - Provable NFT trait randomness.

traitproof provides:
- ECVRF-EDWARDS25519-SHA512-ELL2 proofs (RFC 9381) over token identifiers
- Deterministic trait and rarity derivation from VRF output
- Merkle batching of outputs and ledger anchoring of the batch root
- A fail-fast validator that checks a bundle end to end
"""

__version__ = "1.0.0"

from .anchor import Anchor, AnchorVerifier, LedgerClient, LedgerTransaction, StaticLedger
from .bundle import ProofBundle, make_alpha
from .config import ValidatorConfig, load_trait_categories
from .crypto.vrf import VRFOutput, VRFProof, VRFSecretKey, prove, verify
from .exceptions import BundleVerificationError, RejectReason, TraitProofError
from .issuer import BundleIssuer
from .merkle import MerkleProof, MerkleTree, verify_merkle_path
from .traits import RarityTier, Trait, TraitCategory, derive_traits
from .validator import BundleValidator, ValidationState, Verdict, validate_bundle, validate_bundles

__all__ = [
    "Anchor",
    "AnchorVerifier",
    "BundleIssuer",
    "BundleValidator",
    "BundleVerificationError",
    "LedgerClient",
    "LedgerTransaction",
    "MerkleProof",
    "MerkleTree",
    "ProofBundle",
    "RarityTier",
    "RejectReason",
    "StaticLedger",
    "Trait",
    "TraitCategory",
    "TraitProofError",
    "VRFOutput",
    "VRFProof",
    "VRFSecretKey",
    "ValidationState",
    "ValidatorConfig",
    "Verdict",
    "load_trait_categories",
    "make_alpha",
    "prove",
    "validate_bundle",
    "validate_bundles",
    "verify",
    "verify_merkle_path",
]
