"""Validator configuration.

Trait pools and the issuer keys are fixed before any bundle is generated.
They are loaded once at startup into an immutable ``ValidatorConfig`` and
passed to the validator, never kept as module-level state.

Config file format (JSON):

    {
      "issuer_public_key": "<base64, 32 bytes>",
      "vrf_public_key": "<base64, 32 bytes>",
      "min_confirmations": 6,
      "trait_categories": [
        {"name": "background", "values": ["red", "blue"],
         "rarity": {"common": 60, "rare": 25, "epic": 10, "legendary": 5}}
      ]
    }

``trait_categories`` may instead be a path (relative to the config file) to a
JSON file holding the list.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .defaults import COMMITMENT_PREFIX, MIN_CONFIRMATIONS
from .exceptions import ConfigError
from .traits import TraitCategory

logger = logging.getLogger(__name__)

KEY_SIZE = 32


def parse_trait_categories(data: Sequence[Mapping[str, Any]]) -> tuple[TraitCategory, ...]:
    """Build ordered, uniquely named categories from plain data."""
    if not isinstance(data, list) or not data:
        raise ConfigError("trait_categories must be a non-empty list")
    try:
        categories = tuple(TraitCategory.from_dict(item) for item in data)
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"invalid trait category: {e}") from e
    names = [c.name for c in categories]
    if len(set(names)) != len(names):
        raise ConfigError("trait category names must be unique")
    return categories


def load_trait_categories(path: str | Path) -> tuple[TraitCategory, ...]:
    """Load trait pools from a JSON file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read trait pools from {path}: {e}") from e
    categories = parse_trait_categories(data)
    logger.info(f"Loaded {len(categories)} trait categories from {path}")
    return categories


def _decode_key(data: Mapping[str, Any], name: str) -> bytes:
    try:
        return base64.b64decode(data[name], validate=True)
    except KeyError as e:
        raise ConfigError(f"missing {name}") from e
    except (binascii.Error, TypeError, ValueError) as e:
        raise ConfigError(f"{name} is not valid base64: {e}") from e


@dataclass(frozen=True)
class ValidatorConfig:
    """Everything the bundle validator needs besides the ledger client.

    ``issuer_public_key`` verifies the Ed25519 seal; ``vrf_public_key`` is
    the issuer's published VRF key, the only key bundle proofs may use.
    """

    issuer_public_key: bytes
    vrf_public_key: bytes
    trait_categories: tuple[TraitCategory, ...]
    min_confirmations: int = MIN_CONFIRMATIONS
    commitment_prefix: bytes = field(default=COMMITMENT_PREFIX)

    def __post_init__(self) -> None:
        if len(self.issuer_public_key) != KEY_SIZE:
            raise ConfigError(f"issuer_public_key must be {KEY_SIZE} bytes")
        if len(self.vrf_public_key) != KEY_SIZE:
            raise ConfigError(f"vrf_public_key must be {KEY_SIZE} bytes")
        object.__setattr__(self, "trait_categories", tuple(self.trait_categories))
        if not self.trait_categories:
            raise ConfigError("at least one trait category is required")
        if self.min_confirmations < 0:
            raise ConfigError("min_confirmations must be non-negative")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_dir: Path | None = None) -> ValidatorConfig:
        issuer_key = _decode_key(data, "issuer_public_key")
        vrf_key = _decode_key(data, "vrf_public_key")

        raw_categories = data.get("trait_categories")
        if isinstance(raw_categories, str):
            categories = load_trait_categories((base_dir or Path.cwd()) / raw_categories)
        else:
            categories = parse_trait_categories(raw_categories)  # type: ignore[arg-type]

        try:
            min_confirmations = int(data.get("min_confirmations", MIN_CONFIRMATIONS))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"min_confirmations must be an integer: {e}") from e

        return cls(
            issuer_public_key=issuer_key,
            vrf_public_key=vrf_key,
            trait_categories=categories,
            min_confirmations=min_confirmations,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ValidatorConfig:
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config {path} must hold a JSON object")
        return cls.from_dict(data, base_dir=path.parent)


__all__ = ["ValidatorConfig", "load_trait_categories", "parse_trait_categories"]
