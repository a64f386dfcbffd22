"""Shared fixtures for traitproof tests.

Keys are built from fixed seeds so every run issues byte-identical bundles.
The issued batch is anchored in a single fake transaction held by a
StaticLedger.
"""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from traitproof.anchor import Anchor, LedgerTransaction, StaticLedger
from traitproof.crypto.vrf import VRFSecretKey
from traitproof.issuer import BundleIssuer
from traitproof.traits import RarityTable, TraitCategory

VRF_SEED = bytes(range(32))
ISSUER_SEED = b"\x07" * 32

COLLECTION_ID = "CryptoKitties"
TOKEN_IDS = ["12345", "12346", "12347", "12348", "12349"]

ANCHOR_TXID = "ab" * 32
ANCHOR_BLOCK_HASH = "cd" * 32


@pytest.fixture(scope="session")
def vrf_key() -> VRFSecretKey:
    return VRFSecretKey.from_seed(VRF_SEED)


@pytest.fixture(scope="session")
def seal_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.from_private_bytes(ISSUER_SEED)


@pytest.fixture(scope="session")
def trait_categories() -> tuple[TraitCategory, ...]:
    return (
        TraitCategory("background", tuple(f"bg-{i:02d}" for i in range(50))),
        TraitCategory("eyes", ("round", "narrow", "sleepy", "wide")),
        TraitCategory(
            "pattern",
            ("spots", "stripes", "plain"),
            RarityTable(common=40, rare=30, epic=20, legendary=10),
        ),
    )


@pytest.fixture(scope="session")
def issuer(vrf_key, seal_key, trait_categories) -> BundleIssuer:
    return BundleIssuer(vrf_key, seal_key, trait_categories)


@pytest.fixture(scope="session")
def batch(issuer):
    return issuer.draft_batch(COLLECTION_ID, TOKEN_IDS)


@pytest.fixture(scope="session")
def anchor() -> Anchor:
    return Anchor(
        txid=ANCHOR_TXID,
        block_height=840000,
        block_hash=ANCHOR_BLOCK_HASH,
        confirmations=6,
        timestamp=1700000000,
    )


@pytest.fixture(scope="session")
def bundles(issuer, batch, anchor):
    return issuer.finalize(batch, anchor)


@pytest.fixture(scope="session")
def config(issuer):
    return issuer.validator_config(min_confirmations=6)


@pytest.fixture
def ledger(batch) -> StaticLedger:
    return StaticLedger(
        [LedgerTransaction(txid=ANCHOR_TXID, confirmations=6, commitment_bytes=batch.commitment)]
    )
