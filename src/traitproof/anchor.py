"""Ledger anchoring of Merkle roots.

A batch root is committed on a public ledger as ``COMMITMENT_PREFIX || root``
inside an unspendable output. Verifying an anchor means:

1. the transaction named by ``txid`` exists on the ledger
2. its commitment bytes are exactly ``prefix || root``
3. it is buried at least ``min_confirmations`` deep

The verifier never talks to the network. Lookups go through an injected
``LedgerClient``; retries and caching are the client's business.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .defaults import COMMITMENT_PREFIX, DUST_LIMIT_SATS, MAX_COMMITMENT_SIZE, MIN_CONFIRMATIONS
from .encoding import decode_hex, require, require_int
from .exceptions import (
    AnchorNotFoundError,
    AnchorRootMismatchError,
    InsufficientConfirmationsError,
    LedgerQueryError,
    LedgerUnavailableError,
    MalformedBundleError,
)
from .merkle import HASH_SIZE

logger = logging.getLogger(__name__)

TXID_SIZE = 32


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass(frozen=True)
class Anchor:
    """Ledger location of a committed root, as reported by the ledger.

    ``timestamp`` is advisory only and never verified.
    """

    txid: str  # 32-byte hex
    block_height: int
    block_hash: str  # 32-byte hex
    confirmations: int
    timestamp: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "txid": self.txid,
            "block_height": self.block_height,
            "block_hash": self.block_hash,
            "confirmations": self.confirmations,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any, prefix: str = "anchor.") -> Anchor:
        txid = decode_hex(data, "txid", TXID_SIZE, prefix)
        block_hash = decode_hex(data, "block_hash", HASH_SIZE, prefix)
        timestamp = require(data, "timestamp", (int, type(None)), prefix) if "timestamp" in data else None
        if isinstance(timestamp, bool):
            raise MalformedBundleError(f"field {prefix}timestamp has wrong type: bool")
        return cls(
            txid=txid.hex(),
            block_height=require_int(data, "block_height", prefix, minimum=0),
            block_hash=block_hash.hex(),
            confirmations=require_int(data, "confirmations", prefix, minimum=0),
            timestamp=timestamp,
        )


@dataclass(frozen=True)
class LedgerTransaction:
    """What the ledger collaborator reports for a transaction."""

    txid: str
    confirmations: int
    commitment_bytes: bytes


class LedgerClient(Protocol):
    """Read-only ledger lookup supplied by the caller.

    Returns None when the transaction does not exist. Raises
    LedgerQueryError (e.g. LedgerTimeoutError) when the lookup fails.
    """

    def fetch_transaction(self, txid: str) -> LedgerTransaction | None: ...


class StaticLedger:
    """In-memory ledger view for tests and offline verification."""

    def __init__(self, transactions: Iterable[LedgerTransaction] = ()):
        self._transactions: dict[str, LedgerTransaction] = {}
        for tx in transactions:
            self.add(tx)

    def add(self, tx: LedgerTransaction) -> None:
        self._transactions[tx.txid.lower()] = tx

    def fetch_transaction(self, txid: str) -> LedgerTransaction | None:
        return self._transactions.get(txid.lower())

    def __len__(self) -> int:
        return len(self._transactions)


# =============================================================================
# COMMITMENT FORMAT
# =============================================================================


def build_commitment(root: bytes, prefix: bytes = COMMITMENT_PREFIX) -> bytes:
    """Payload for the unspendable output: prefix followed by the 32-byte root."""
    if len(root) != HASH_SIZE:
        raise ValueError(f"root must be {HASH_SIZE} bytes, got {len(root)}")
    payload = prefix + root
    if len(payload) > MAX_COMMITMENT_SIZE:
        raise ValueError(f"commitment exceeds {MAX_COMMITMENT_SIZE} bytes")
    return payload


def parse_commitment(data: bytes, prefix: bytes = COMMITMENT_PREFIX) -> bytes:
    """Extract the root from commitment bytes.

    Raises:
        AnchorRootMismatchError: If the bytes are not a commitment of this protocol.
    """
    if len(data) != len(prefix) + HASH_SIZE or not data.startswith(prefix):
        raise AnchorRootMismatchError("ledger output is not a traitproof commitment")
    return data[len(prefix) :]


# =============================================================================
# VERIFIER
# =============================================================================


class AnchorVerifier:
    """Checks an anchor against data fetched by a ledger client."""

    def __init__(
        self,
        ledger: LedgerClient,
        min_confirmations: int = MIN_CONFIRMATIONS,
        commitment_prefix: bytes = COMMITMENT_PREFIX,
    ):
        self.ledger = ledger
        self.min_confirmations = min_confirmations
        self.commitment_prefix = commitment_prefix

    def verify(self, anchor: Anchor, root: bytes) -> LedgerTransaction:
        """Run existence, commitment and depth checks in order.

        Both the confirmations claimed in the anchor and those reported by
        the ledger must reach the minimum.

        Returns:
            The ledger transaction that anchors the root.
        """
        try:
            tx = self.ledger.fetch_transaction(anchor.txid)
        except LedgerQueryError as e:
            logger.warning(f"Ledger lookup for {anchor.txid} failed: {e}")
            raise LedgerUnavailableError(f"ledger lookup failed: {e}") from e

        if tx is None:
            raise AnchorNotFoundError(f"transaction {anchor.txid} not found")

        committed = parse_commitment(tx.commitment_bytes, self.commitment_prefix)
        if not hmac.compare_digest(committed, root):
            raise AnchorRootMismatchError(f"transaction {anchor.txid} commits to a different root")

        confirmations = min(anchor.confirmations, tx.confirmations)
        if confirmations < self.min_confirmations:
            raise InsufficientConfirmationsError(
                f"{confirmations} confirmations, need {self.min_confirmations}"
            )

        logger.debug(f"Anchor {anchor.txid} verified with {tx.confirmations} confirmations")
        return tx


# =============================================================================
# FUNDING
# =============================================================================


@dataclass(frozen=True)
class Outpoint:
    """A spendable output from the issuer's configured funding pool."""

    txid: str
    vout: int
    value_sats: int


@dataclass(frozen=True)
class AnchorPlan:
    """Inputs for building (elsewhere) the anchoring transaction."""

    commitment: bytes
    funding: Outpoint
    fee_sats: int
    change_sats: int


def plan_anchor(
    root: bytes,
    utxo_pool: Sequence[Outpoint],
    fee_sats: int,
    dust_limit: int = DUST_LIMIT_SATS,
    prefix: bytes = COMMITMENT_PREFIX,
) -> AnchorPlan:
    """Pick the smallest pool outpoint whose change stays at or above dust.

    Raises:
        ValueError: If no outpoint can pay the fee and leave non-dust change.
    """
    if fee_sats < 0:
        raise ValueError("fee must be non-negative")
    commitment = build_commitment(root, prefix)
    for outpoint in sorted(utxo_pool, key=lambda o: (o.value_sats, o.txid, o.vout)):
        change = outpoint.value_sats - fee_sats
        if change >= dust_limit:
            return AnchorPlan(commitment=commitment, funding=outpoint, fee_sats=fee_sats, change_sats=change)
    raise ValueError(f"no outpoint covers fee {fee_sats} with change above dust limit {dust_limit}")


__all__ = [
    "Anchor",
    "AnchorPlan",
    "AnchorVerifier",
    "LedgerClient",
    "LedgerTransaction",
    "Outpoint",
    "StaticLedger",
    "build_commitment",
    "parse_commitment",
    "plan_anchor",
]
