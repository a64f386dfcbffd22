"""Producer side: turn token identifiers into sealed, anchored bundles.

Issuing a batch happens in three steps:

1. ``draft_batch``: per token, evaluate the VRF, derive traits and the
   Merkle leaf (independent per token), then build the tree over all leaves.
   The tree is the join point: no root exists until every leaf does.
2. Anchor ``batch.commitment`` on a ledger (outside this package) and
   collect the resulting ``Anchor``.
3. ``finalize``: attach proofs and the anchor to every token and seal.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .anchor import Anchor, build_commitment
from .bundle import ProofBundle, make_alpha
from .config import ValidatorConfig
from .crypto.seal import seal_bundle
from .crypto.vrf import VRFOutput, VRFSecretKey, prove
from .defaults import COMMITMENT_PREFIX, MIN_CONFIRMATIONS
from .merkle import MerkleTree, hash_leaf
from .traits import Trait, TraitCategory, derive_traits

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenDraft:
    """VRF output, traits and leaf for one token, before anchoring."""

    collection_id: str
    token_id: str
    output: VRFOutput
    traits: dict[str, Trait]
    leaf: bytes


@dataclass(frozen=True)
class BatchDraft:
    """A batch of drafts and the Merkle tree over their leaves."""

    collection_id: str
    drafts: tuple[TokenDraft, ...]
    tree: MerkleTree
    commitment_prefix: bytes = COMMITMENT_PREFIX

    @property
    def root(self) -> bytes:
        return self.tree.root

    @property
    def commitment(self) -> bytes:
        """Bytes to embed in the anchoring transaction."""
        return build_commitment(self.root, self.commitment_prefix)


class BundleIssuer:
    """Generates bundles with a VRF key and seals them with an Ed25519 key."""

    def __init__(
        self,
        vrf_key: VRFSecretKey,
        seal_key: Ed25519PrivateKey,
        trait_categories: Sequence[TraitCategory],
        commitment_prefix: bytes = COMMITMENT_PREFIX,
    ):
        self.vrf_key = vrf_key
        self.seal_key = seal_key
        self.trait_categories = tuple(trait_categories)
        self.commitment_prefix = commitment_prefix
        self._public_key = vrf_key.public_key_bytes

    @property
    def vrf_public_key(self) -> bytes:
        return self._public_key

    @property
    def issuer_public_key(self) -> bytes:
        return self.seal_key.public_key().public_bytes_raw()

    def validator_config(self, min_confirmations: int = MIN_CONFIRMATIONS) -> ValidatorConfig:
        """Config a verifier needs to check this issuer's bundles."""
        return ValidatorConfig(
            issuer_public_key=self.issuer_public_key,
            vrf_public_key=self._public_key,
            trait_categories=self.trait_categories,
            min_confirmations=min_confirmations,
            commitment_prefix=self.commitment_prefix,
        )

    def draft(self, collection_id: str, token_id: str) -> TokenDraft:
        alpha = make_alpha(collection_id, token_id)
        output = prove(self.vrf_key, alpha)
        return TokenDraft(
            collection_id=collection_id,
            token_id=token_id,
            output=output,
            traits=derive_traits(output.beta, self.trait_categories),
            leaf=hash_leaf(output.beta, alpha),
        )

    def draft_batch(self, collection_id: str, token_ids: Sequence[str]) -> BatchDraft:
        """Draft every token and build the batch tree (leaf order = token order)."""
        if len(set(token_ids)) != len(token_ids):
            raise ValueError("token ids in a batch must be unique")
        drafts = tuple(self.draft(collection_id, token_id) for token_id in token_ids)
        tree = MerkleTree([d.leaf for d in drafts])
        logger.info(f"Drafted {len(drafts)} tokens for {collection_id}, root {tree.root.hex()}")
        return BatchDraft(
            collection_id=collection_id,
            drafts=drafts,
            tree=tree,
            commitment_prefix=self.commitment_prefix,
        )

    def finalize(self, batch: BatchDraft, anchor: Anchor) -> list[ProofBundle]:
        """Assemble and seal one bundle per drafted token."""
        bundles = []
        for index, draft in enumerate(batch.drafts):
            bundle = ProofBundle(
                collection_id=draft.collection_id,
                token_id=draft.token_id,
                vrf_output=draft.output.beta,
                vrf_proof=draft.output.proof,
                traits=dict(draft.traits),
                public_key=self._public_key,
                merkle_proof=batch.tree.proof(index),
                anchor=anchor,
            )
            bundles.append(seal_bundle(bundle, self.seal_key))
        logger.info(f"Sealed {len(bundles)} bundles anchored in {anchor.txid}")
        return bundles


__all__ = ["BatchDraft", "BundleIssuer", "TokenDraft"]
