"""
Unit tests for d2builds.config module
"""

import json
import uuid
from pathlib import Path

import pytest

from d2builds import constants
from d2builds.build_archetypes.archetype_models import ScoringWeights
from d2builds.config import Config, get_config_dir

pytestmark = pytest.mark.unit


# -------------------------
# Helper
# -------------------------

def get_unique_config_path(tmp_path):
    """Generate a unique config file path to prevent test interference"""
    return tmp_path / f"config_{uuid.uuid4().hex}.json"


# -------------------------
# Initialization Tests
# -------------------------

class TestConfigInitialization:
    def test_creates_config_file_on_save(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config = Config(config_file)
        config.save()

        assert config_file.exists()

    def test_loads_defaults_for_new_config(self, temp_config):
        assert temp_config.index_batch_size == constants.INDEX_BATCH_SIZE
        assert temp_config.index_yield_every == constants.INDEX_YIELD_EVERY
        assert temp_config.low_confidence_threshold == constants.LOW_CONFIDENCE_THRESHOLD

    def test_default_path_if_none(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        cfg = Config()
        assert cfg.config_file == tmp_path / ".d2builds" / "config.json"

    def test_default_path_is_in_config_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert Config().config_file.parent == get_config_dir()

    def test_loads_existing_config(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)

        cfg1 = Config(config_file)
        cfg1.max_builds = 3
        cfg1.fallback_limit = 4

        cfg2 = Config(config_file)
        assert cfg2.max_builds == 3
        assert cfg2.fallback_limit == 4

    def test_corrupt_json_falls_back_to_defaults(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config_file.write_text("{not json", encoding="utf-8")

        cfg = Config(config_file)
        assert cfg.max_builds == constants.MAX_BUILDS_DEFAULT

    def test_non_object_root_falls_back_to_defaults(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config_file.write_text("[1, 2, 3]", encoding="utf-8")

        cfg = Config(config_file)
        assert cfg.cache_max_entries == constants.INDEX_CACHE_MAX_ENTRIES

    def test_partial_section_merges_with_defaults(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config_file.write_text(json.dumps({"matching": {"max_builds": 2}}), encoding="utf-8")

        cfg = Config(config_file)
        assert cfg.max_builds == 2
        assert cfg.fallback_limit == constants.FALLBACK_ITEM_LIMIT

    def test_defaults_not_shared_between_instances(self, tmp_path):
        cfg1 = Config(get_unique_config_path(tmp_path))
        cfg1.data["matching"]["max_builds"] = 99

        cfg2 = Config(get_unique_config_path(tmp_path))
        assert cfg2.max_builds == constants.MAX_BUILDS_DEFAULT
        assert Config.DEFAULT_CONFIG["matching"]["max_builds"] == constants.MAX_BUILDS_DEFAULT


# -------------------------
# Guardrail Tests
# -------------------------

class TestGuardrails:
    @pytest.mark.parametrize(
        "attr,value,expected",
        [
            ("index_batch_size", 1, 10),
            ("index_batch_size", 10_000, 5000),
            ("index_yield_every", 0, 1),
            ("index_yield_every", 500, 100),
            ("max_builds", 0, 1),
            ("max_builds", 50, 20),
            ("fallback_limit", -3, 1),
            ("fallback_limit", 99, 50),
            ("cache_max_entries", 0, 1),
            ("cache_max_entries", 64, 16),
        ],
    )
    def test_setter_clamps(self, temp_config, attr, value, expected):
        setattr(temp_config, attr, value)
        assert getattr(temp_config, attr) == expected

    def test_threshold_clamped(self, temp_config):
        temp_config.low_confidence_threshold = 1.7
        assert temp_config.low_confidence_threshold == 1.0
        temp_config.low_confidence_threshold = -0.2
        assert temp_config.low_confidence_threshold == 0.0


# -------------------------
# Scoring Tests
# -------------------------

class TestScoringWeights:
    def test_defaults_match_documented_weights(self, temp_config):
        assert temp_config.scoring_weights() == ScoringWeights()

    def test_set_scoring_weight_persists(self, temp_config):
        temp_config.set_scoring_weight("base", 10)

        reloaded = Config(temp_config.config_file)
        assert reloaded.scoring_weights().base == 10

    def test_unknown_scoring_key_rejected(self, temp_config):
        with pytest.raises(KeyError):
            temp_config.set_scoring_weight("luck", 5)

    def test_invalid_value_in_file_uses_default(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config_file.write_text(json.dumps({"scoring": {"synergy_weight": "lots"}}), encoding="utf-8")

        cfg = Config(config_file)
        assert cfg.scoring_weights().synergy_weight == constants.SCORE_SYNERGY_WEIGHT

    def test_negative_value_clamped_to_zero(self, tmp_path):
        config_file = get_unique_config_path(tmp_path)
        config_file.write_text(json.dumps({"scoring": {"exotic_weight": -4}}), encoding="utf-8")

        cfg = Config(config_file)
        assert cfg.scoring_weights().exotic_weight == 0


class TestReset:
    def test_reset_to_defaults(self, temp_config):
        temp_config.max_builds = 2
        temp_config.set_scoring_weight("base", 0)

        temp_config.reset_to_defaults()

        assert temp_config.max_builds == constants.MAX_BUILDS_DEFAULT
        assert temp_config.scoring_weights() == ScoringWeights()
        reloaded = Config(temp_config.config_file)
        assert reloaded.max_builds == constants.MAX_BUILDS_DEFAULT


class TestConfigDir:
    def test_created_under_home(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        config_dir = get_config_dir()
        assert config_dir == tmp_path / ".d2builds"
        assert config_dir.is_dir()

    def test_idempotent(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == get_config_dir()
