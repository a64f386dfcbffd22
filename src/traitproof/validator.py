"""Bundle validation pipeline.

Validation is a strictly sequential state machine:

    start -> parsed_structure -> vrf_checked -> traits_checked
          -> merkle_checked -> anchor_checked -> verified

Each transition runs exactly one check:

    start            structure and encoding       (MalformedBundle)
    parsed_structure issuer VRF key and proof     (VRFKeyMismatch, InvalidCurvePoint,
                                                   NonCanonicalScalar, ChallengeMismatch,
                                                   OutputMismatch)
    vrf_checked      trait re-derivation          (TraitMismatch)
    traits_checked   leaf and Merkle path         (MerklePathInvalid)
    merkle_checked   ledger anchor                (AnchorNotFound, AnchorRootMismatch,
                                                   InsufficientConfirmations, LedgerUnavailable)
    anchor_checked   issuer seal                  (SignatureInvalid)

The first failing check ends validation with ``rejected`` and its reason.
There is no partial credit and no retry.
"""

from __future__ import annotations

import concurrent.futures
import hmac
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .anchor import AnchorVerifier, LedgerClient
from .bundle import ProofBundle
from .config import ValidatorConfig
from .crypto import vrf
from .crypto.seal import verify_seal
from .defaults import DEFAULT_VALIDATION_WORKERS, MAX_VALIDATION_WORKERS
from .exceptions import (
    BundleVerificationError,
    MalformedBundleError,
    MerklePathInvalidError,
    RejectReason,
    SignatureInvalidError,
    TraitMismatchError,
    VRFKeyMismatchError,
)
from .merkle import check_merkle_proof, hash_leaf
from .traits import verify_traits

logger = logging.getLogger(__name__)


class ValidationState(StrEnum):
    """States of the validation state machine."""

    START = "start"
    PARSED_STRUCTURE = "parsed_structure"
    VRF_CHECKED = "vrf_checked"
    TRAITS_CHECKED = "traits_checked"
    MERKLE_CHECKED = "merkle_checked"
    ANCHOR_CHECKED = "anchor_checked"
    VERIFIED = "verified"
    REJECTED = "rejected"


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class StageResult:
    """Tagged outcome of one transition."""

    state: ValidationState
    error: BundleVerificationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Verdict:
    """Final outcome: verified, or rejected with the reason and failing stage."""

    state: ValidationState
    reason: RejectReason | None = None
    failed_at: ValidationState | None = None
    detail: str = ""
    category: str | None = None  # Set for trait mismatches
    bundle: ProofBundle | None = None

    @property
    def verified(self) -> bool:
        return self.state == ValidationState.VERIFIED

    def __bool__(self) -> bool:
        return self.verified

    @classmethod
    def rejected(
        cls,
        error: BundleVerificationError,
        failed_at: ValidationState,
        bundle: ProofBundle | None = None,
    ) -> Verdict:
        return cls(
            state=ValidationState.REJECTED,
            reason=error.reason,
            failed_at=failed_at,
            detail=error.message,
            category=error.category if isinstance(error, TraitMismatchError) else None,
            bundle=bundle,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "reason": self.reason.value if self.reason else None,
            "failed_at": self.failed_at.value if self.failed_at else None,
            "detail": self.detail,
            "category": self.category,
        }


# =============================================================================
# VALIDATOR
# =============================================================================


class BundleValidator:
    """Runs the six checks over a bundle, halting at the first failure.

    Stateless apart from its configuration; one instance can validate many
    bundles concurrently.
    """

    def __init__(self, config: ValidatorConfig, ledger: LedgerClient):
        self.config = config
        self.anchor_verifier = AnchorVerifier(
            ledger,
            min_confirmations=config.min_confirmations,
            commitment_prefix=config.commitment_prefix,
        )
        self._transitions: dict[ValidationState, tuple[Callable[[ProofBundle], None], ValidationState]] = {
            ValidationState.START: (self.check_structure, ValidationState.PARSED_STRUCTURE),
            ValidationState.PARSED_STRUCTURE: (self.check_vrf, ValidationState.VRF_CHECKED),
            ValidationState.VRF_CHECKED: (self.check_traits, ValidationState.TRAITS_CHECKED),
            ValidationState.TRAITS_CHECKED: (self.check_merkle, ValidationState.MERKLE_CHECKED),
            ValidationState.MERKLE_CHECKED: (self.check_anchor, ValidationState.ANCHOR_CHECKED),
            ValidationState.ANCHOR_CHECKED: (self.check_seal, ValidationState.VERIFIED),
        }

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def check_structure(self, bundle: ProofBundle) -> None:
        bundle.check_structure()

    def check_vrf(self, bundle: ProofBundle) -> None:
        if not hmac.compare_digest(bundle.public_key, self.config.vrf_public_key):
            raise VRFKeyMismatchError("bundle public key is not the issuer's VRF key")
        vrf.verify_output(bundle.public_key, bundle.alpha, bundle.vrf_output, bundle.vrf_proof)

    def check_traits(self, bundle: ProofBundle) -> None:
        verify_traits(bundle.vrf_output, bundle.traits, self.config.trait_categories)

    def check_merkle(self, bundle: ProofBundle) -> None:
        leaf = hash_leaf(bundle.vrf_output, bundle.alpha)
        if not hmac.compare_digest(leaf, bundle.merkle_proof.leaf):
            raise MerklePathInvalidError("leaf does not match the bundle's VRF output")
        check_merkle_proof(bundle.merkle_proof)

    def check_anchor(self, bundle: ProofBundle) -> None:
        self.anchor_verifier.verify(bundle.anchor, bundle.merkle_proof.root)

    def check_seal(self, bundle: ProofBundle) -> None:
        if not verify_seal(bundle, self.config.issuer_public_key):
            raise SignatureInvalidError("issuer seal does not verify")

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    @staticmethod
    def parse(raw: ProofBundle | Mapping[str, Any] | str | bytes) -> ProofBundle:
        """Turn a bundle object, dict or JSON document into a ProofBundle."""
        if isinstance(raw, ProofBundle):
            return raw
        if isinstance(raw, Mapping):
            return ProofBundle.from_dict(raw)
        if isinstance(raw, (str, bytes)):
            return ProofBundle.from_json(raw)
        raise MalformedBundleError(f"cannot parse bundle from {type(raw).__name__}")

    def advance(self, state: ValidationState, bundle: ProofBundle) -> StageResult:
        """Run the check leaving ``state`` and return the next state or the failure."""
        if state not in self._transitions:
            raise ValueError(f"no transition out of state {state.value}")
        check, next_state = self._transitions[state]
        try:
            check(bundle)
        except BundleVerificationError as e:
            return StageResult(state=ValidationState.REJECTED, error=e)
        return StageResult(state=next_state)

    def validate(self, raw: ProofBundle | Mapping[str, Any] | str | bytes) -> Verdict:
        """Validate a bundle end to end."""
        state = ValidationState.START
        try:
            bundle = self.parse(raw)
        except MalformedBundleError as e:
            logger.warning(f"Rejected bundle at {state.value}: {e.message}")
            return Verdict.rejected(e, failed_at=state)

        while state != ValidationState.VERIFIED:
            logger.debug(f"{bundle.collection_id}:{bundle.token_id} leaving {state.value}")
            result = self.advance(state, bundle)
            if result.error is not None:
                logger.warning(
                    f"Rejected {bundle.collection_id}:{bundle.token_id} at {state.value}: "
                    f"{result.error.reason.value} ({result.error.message})"
                )
                return Verdict.rejected(result.error, failed_at=state, bundle=bundle)
            state = result.state

        logger.info(f"Verified {bundle.collection_id}:{bundle.token_id}")
        return Verdict(state=ValidationState.VERIFIED, bundle=bundle)


# =============================================================================
# ENTRY POINTS
# =============================================================================


def validate_bundle(
    bundle: ProofBundle | Mapping[str, Any] | str | bytes,
    config: ValidatorConfig,
    ledger: LedgerClient,
) -> Verdict:
    """Validate one bundle: ``Verified`` or ``Rejected(reason)``."""
    return BundleValidator(config, ledger).validate(bundle)


def validate_bundles(
    bundles: Iterable[ProofBundle | Mapping[str, Any] | str | bytes],
    config: ValidatorConfig,
    ledger: LedgerClient,
    max_workers: int | None = None,
) -> list[Verdict]:
    """Validate independent bundles on a thread pool; verdicts keep input order."""
    validator = BundleValidator(config, ledger)
    items = list(bundles)
    if not items:
        return []
    workers = min(MAX_VALIDATION_WORKERS, max(1, max_workers or DEFAULT_VALIDATION_WORKERS))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(validator.validate, items))


__all__ = [
    "BundleValidator",
    "StageResult",
    "ValidationState",
    "Verdict",
    "validate_bundle",
    "validate_bundles",
]
