"""Error taxonomy for traitproof.

Every verification failure carries a ``RejectReason`` so callers can tell
exactly which check failed. Verification errors are raised inside the
individual checks and turned into a ``Verdict`` by the bundle validator;
nothing is retried here.
"""

from __future__ import annotations

from enum import StrEnum


class RejectReason(StrEnum):
    """Specific kinds of verification failure."""

    MALFORMED_BUNDLE = "malformed_bundle"
    VRF_KEY_MISMATCH = "vrf_key_mismatch"
    INVALID_CURVE_POINT = "invalid_curve_point"
    NON_CANONICAL_SCALAR = "non_canonical_scalar"
    CHALLENGE_MISMATCH = "challenge_mismatch"
    OUTPUT_MISMATCH = "output_mismatch"
    TRAIT_MISMATCH = "trait_mismatch"
    MERKLE_PATH_INVALID = "merkle_path_invalid"
    ANCHOR_NOT_FOUND = "anchor_not_found"
    ANCHOR_ROOT_MISMATCH = "anchor_root_mismatch"
    INSUFFICIENT_CONFIRMATIONS = "insufficient_confirmations"
    LEDGER_UNAVAILABLE = "ledger_unavailable"
    SIGNATURE_INVALID = "signature_invalid"


# =============================================================================
# BASE ERRORS
# =============================================================================


class TraitProofError(Exception):
    """Base error for traitproof."""

    pass


class BundleVerificationError(TraitProofError):
    """A check on a bundle (or one of its parts) failed."""

    reason: RejectReason = RejectReason.MALFORMED_BUNDLE

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason.value)
        self.message = message or self.reason.value


# =============================================================================
# STRUCTURE AND CURVE
# =============================================================================


class MalformedBundleError(BundleVerificationError):
    """Bundle is missing a field or a field has the wrong type or size."""

    reason = RejectReason.MALFORMED_BUNDLE


class InvalidCurvePointError(BundleVerificationError):
    """Bytes do not decode to an acceptable curve point."""

    reason = RejectReason.INVALID_CURVE_POINT


class NonCanonicalScalarError(BundleVerificationError):
    """Proof scalar is not reduced modulo the group order."""

    reason = RejectReason.NON_CANONICAL_SCALAR


# =============================================================================
# VRF
# =============================================================================


class VRFKeyMismatchError(BundleVerificationError):
    """Bundle was proven under a VRF key other than the issuer's published one."""

    reason = RejectReason.VRF_KEY_MISMATCH


class ChallengeMismatchError(BundleVerificationError):
    """Recomputed Fiat-Shamir challenge differs from the proof's."""

    reason = RejectReason.CHALLENGE_MISMATCH


class OutputMismatchError(BundleVerificationError):
    """Claimed VRF output does not match the proof."""

    reason = RejectReason.OUTPUT_MISMATCH


# =============================================================================
# TRAITS AND MERKLE
# =============================================================================


class TraitMismatchError(BundleVerificationError):
    """Claimed traits differ from the re-derived ones."""

    reason = RejectReason.TRAIT_MISMATCH

    def __init__(self, category: str, message: str = ""):
        super().__init__(message or f"trait mismatch in category {category!r}")
        self.category = category


class MerklePathInvalidError(BundleVerificationError):
    """Merkle path does not reconstruct the claimed root."""

    reason = RejectReason.MERKLE_PATH_INVALID


# =============================================================================
# ANCHOR
# =============================================================================


class AnchorNotFoundError(BundleVerificationError):
    """Anchor transaction is unknown to the ledger."""

    reason = RejectReason.ANCHOR_NOT_FOUND


class AnchorRootMismatchError(BundleVerificationError):
    """Ledger commitment does not commit to the bundle's root."""

    reason = RejectReason.ANCHOR_ROOT_MISMATCH


class InsufficientConfirmationsError(BundleVerificationError):
    """Anchor is not buried deep enough."""

    reason = RejectReason.INSUFFICIENT_CONFIRMATIONS


class LedgerUnavailableError(BundleVerificationError):
    """The ledger collaborator failed to answer."""

    reason = RejectReason.LEDGER_UNAVAILABLE


class SignatureInvalidError(BundleVerificationError):
    """Issuer seal does not verify."""

    reason = RejectReason.SIGNATURE_INVALID


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class LedgerQueryError(TraitProofError):
    """Raised by ledger clients when a lookup cannot be completed."""

    pass


class LedgerTimeoutError(LedgerQueryError):
    """Ledger lookup timed out."""

    pass


class ConfigError(TraitProofError):
    """Configuration is missing or invalid."""

    pass


__all__ = [
    "AnchorNotFoundError",
    "AnchorRootMismatchError",
    "BundleVerificationError",
    "ChallengeMismatchError",
    "ConfigError",
    "InsufficientConfirmationsError",
    "InvalidCurvePointError",
    "LedgerQueryError",
    "LedgerTimeoutError",
    "LedgerUnavailableError",
    "MalformedBundleError",
    "MerklePathInvalidError",
    "NonCanonicalScalarError",
    "OutputMismatchError",
    "RejectReason",
    "SignatureInvalidError",
    "TraitMismatchError",
    "TraitProofError",
    "VRFKeyMismatchError",
]
