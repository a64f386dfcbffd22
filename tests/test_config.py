"""Tests for validator configuration loading."""

from __future__ import annotations

import base64
import json

import pytest

from traitproof.config import ValidatorConfig, load_trait_categories, parse_trait_categories
from traitproof.exceptions import ConfigError
from traitproof.traits import RarityTier

ISSUER_KEY = base64.b64encode(b"\x05" * 32).decode()
VRF_KEY = base64.b64encode(b"\x06" * 32).decode()
KEYS = {"issuer_public_key": ISSUER_KEY, "vrf_public_key": VRF_KEY}

CATEGORIES = [
    {"name": "background", "values": ["red", "blue", "green"]},
    {
        "name": "eyes",
        "values": ["round", "wide"],
        "rarity": {"common": 50, "rare": 30, "epic": 15, "legendary": 5},
    },
]


class TestParseCategories:
    """Test trait pool parsing."""

    def test_parses_in_order(self):
        categories = parse_trait_categories(CATEGORIES)
        assert [c.name for c in categories] == ["background", "eyes"]
        assert categories[1].rarity.tier_for_roll(50) == (RarityTier.RARE, 30)

    def test_rejects_empty(self):
        with pytest.raises(ConfigError):
            parse_trait_categories([])

    def test_rejects_duplicates(self):
        with pytest.raises(ConfigError):
            parse_trait_categories([CATEGORIES[0], CATEGORIES[0]])

    def test_rejects_bad_rarity(self):
        bad = [{"name": "eyes", "values": ["round"], "rarity": {"common": 100}}]
        with pytest.raises(ConfigError):
            parse_trait_categories(bad)

    def test_rejects_empty_pool(self):
        with pytest.raises(ConfigError):
            parse_trait_categories([{"name": "eyes", "values": []}])


class TestValidatorConfig:
    """Test ValidatorConfig construction."""

    def test_from_dict(self):
        config = ValidatorConfig.from_dict(
            {**KEYS, "min_confirmations": 3, "trait_categories": CATEGORIES}
        )
        assert config.issuer_public_key == b"\x05" * 32
        assert config.vrf_public_key == b"\x06" * 32
        assert config.min_confirmations == 3
        assert len(config.trait_categories) == 2

    def test_missing_issuer_key(self):
        with pytest.raises(ConfigError):
            ValidatorConfig.from_dict({"vrf_public_key": VRF_KEY, "trait_categories": CATEGORIES})

    def test_invalid_issuer_key(self):
        with pytest.raises(ConfigError):
            ValidatorConfig.from_dict({**KEYS, "issuer_public_key": "###", "trait_categories": CATEGORIES})

    def test_short_issuer_key(self):
        short = base64.b64encode(b"\x05" * 16).decode()
        with pytest.raises(ConfigError):
            ValidatorConfig.from_dict({**KEYS, "issuer_public_key": short, "trait_categories": CATEGORIES})

    def test_missing_vrf_key(self):
        with pytest.raises(ConfigError, match="vrf_public_key"):
            ValidatorConfig.from_dict({"issuer_public_key": ISSUER_KEY, "trait_categories": CATEGORIES})

    def test_short_vrf_key(self):
        short = base64.b64encode(b"\x06" * 31).decode()
        with pytest.raises(ConfigError, match="vrf_public_key"):
            ValidatorConfig.from_dict({**KEYS, "vrf_public_key": short, "trait_categories": CATEGORIES})

    def test_negative_confirmations(self):
        with pytest.raises(ConfigError):
            ValidatorConfig.from_dict(
                {**KEYS, "min_confirmations": -1, "trait_categories": CATEGORIES}
            )

    def test_non_integer_confirmations(self):
        for value in ("six", None, [6]):
            with pytest.raises(ConfigError, match="min_confirmations"):
                ValidatorConfig.from_dict({**KEYS, "min_confirmations": value, "trait_categories": CATEGORIES})

    def test_from_file_with_inline_categories(self, tmp_path):
        path = tmp_path / "validator.json"
        path.write_text(json.dumps({**KEYS, "trait_categories": CATEGORIES}))
        config = ValidatorConfig.from_file(path)
        assert config.trait_categories[0].values == ("red", "blue", "green")

    def test_from_file_with_category_file(self, tmp_path):
        (tmp_path / "pools.json").write_text(json.dumps(CATEGORIES))
        path = tmp_path / "validator.json"
        path.write_text(json.dumps({**KEYS, "trait_categories": "pools.json"}))
        config = ValidatorConfig.from_file(path)
        assert [c.name for c in config.trait_categories] == ["background", "eyes"]

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(ConfigError):
            ValidatorConfig.from_file(tmp_path / "missing.json")

    def test_from_file_not_object(self, tmp_path):
        path = tmp_path / "validator.json"
        path.write_text("[]")
        with pytest.raises(ConfigError):
            ValidatorConfig.from_file(path)

    def test_load_trait_categories_bad_json(self, tmp_path):
        path = tmp_path / "pools.json"
        path.write_text("{")
        with pytest.raises(ConfigError):
            load_trait_categories(path)

    def test_issuer_produces_matching_config(self, issuer, trait_categories):
        config = issuer.validator_config(min_confirmations=6)
        assert config.issuer_public_key == issuer.issuer_public_key
        assert config.vrf_public_key == issuer.vrf_public_key
        assert config.trait_categories == trait_categories
