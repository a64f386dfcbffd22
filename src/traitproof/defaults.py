"""Centralized configurable defaults for traitproof.

All tunable parameters in one place. Environment variables override the
values that operators are expected to change.
"""

from __future__ import annotations

import os

# Anchor gating
MIN_CONFIRMATIONS = int(os.environ.get("TRAITPROOF_MIN_CONFIRMATIONS", "6"))

# Ledger commitment: prefix || 32-byte Merkle root in an unspendable output
COMMITMENT_PREFIX = b"TRAITPROOF\x01"
MAX_COMMITMENT_SIZE = 80  # Standard OP_RETURN payload limit

# Anchor funding
DUST_LIMIT_SATS = int(os.environ.get("TRAITPROOF_DUST_LIMIT_SATS", "546"))

# Rarity tiers: weights in percent, must sum to 100
DEFAULT_TIER_WEIGHTS = {
    "common": 60,
    "rare": 25,
    "epic": 10,
    "legendary": 5,
}

# Batch validation
DEFAULT_VALIDATION_WORKERS = 4
MAX_VALIDATION_WORKERS = 32
