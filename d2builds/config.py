"""
Configuration management for the build finder.
Handles engine tuning (indexing, scoring, matching, caching) and persistence.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from d2builds import constants
from d2builds.build_archetypes.archetype_models import ScoringWeights

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """
    Get the application config directory.

    Returns:
        Path to the config directory (~/.d2builds/)
    """
    config_dir = Path.home() / ".d2builds"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


class Config:
    """
    Engine configuration with JSON persistence.

    Key ideas:
    - Settings are grouped in sections ("indexing", "scoring", "matching", "cache").
    - Every numeric setting has guardrails applied in its setter.
    - The backing store is a JSON file on disk (user config file).
    """

    # NOTE: This structure is treated as immutable. Always use
    # _default_config_deepcopy() when you need a fresh copy of defaults.
    DEFAULT_CONFIG: Dict[str, Any] = {
        "indexing": {
            # Records handled per batch (min 10, max 5000)
            "batch_size": constants.INDEX_BATCH_SIZE,
            # Batches between event-loop yields in the async build (min 1, max 100)
            "yield_every": constants.INDEX_YIELD_EVERY,
        },
        "scoring": {
            "base": constants.SCORE_BASE,
            "synergy_weight": constants.SCORE_SYNERGY_WEIGHT,
            "synergy_cap": constants.SCORE_SYNERGY_CAP,
            "exotic_weight": constants.SCORE_EXOTIC_WEIGHT,
            "exotic_cap": constants.SCORE_EXOTIC_CAP,
            "diversity_weight": constants.SCORE_DIVERSITY_WEIGHT,
            "diversity_cap": constants.SCORE_DIVERSITY_CAP,
        },
        "matching": {
            "max_builds": constants.MAX_BUILDS_DEFAULT,
            "fallback_limit": constants.FALLBACK_ITEM_LIMIT,
            "low_confidence_threshold": constants.LOW_CONFIDENCE_THRESHOLD,
        },
        "cache": {
            # Catalog versions kept in memory (min 1, max 16)
            "max_entries": constants.INDEX_CACHE_MAX_ENTRIES,
        },
    }

    def __init__(self, config_file: Optional[Path] = None) -> None:
        """
        Initialize configuration.

        Args:
            config_file: Optional path to config JSON file. When omitted,
                         ~/.d2builds/config.json is used.
        """
        self.config_file: Path = self._resolve_config_path(config_file)
        self.config_file.parent.mkdir(parents=True, exist_ok=True)

        self.data: Dict[str, Any] = self._load()
        logger.info(f"Config loaded from {self.config_file}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_config_path(config_file: Optional[Path]) -> Path:
        if config_file is not None:
            return config_file
        return get_config_dir() / "config.json"

    def _load(self) -> Dict[str, Any]:
        """Load configuration from JSON file, merging with defaults."""
        if self.config_file.exists():
            try:
                with self.config_file.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
                if not isinstance(raw, dict):
                    raise ValueError("config root must be a JSON object")

                merged = self._merge_with_defaults(raw)
                logger.info("Configuration loaded successfully")
                return merged
            except (OSError, ValueError) as exc:
                logger.error(f"Failed to load config: {exc}. Using defaults.")
                return self._default_config_deepcopy()
        else:
            logger.info("No config file found, using defaults")
            return self._default_config_deepcopy()

    @classmethod
    def _default_config_deepcopy(cls) -> Dict[str, Any]:
        """Return a deep copy of DEFAULT_CONFIG to avoid state leakage between instances."""
        return copy.deepcopy(cls.DEFAULT_CONFIG)

    def _merge_with_defaults(self, user_config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge user config with defaults to handle new keys.

        Nested section dictionaries are merged so keys added in a newer
        release appear without discarding user-provided values.
        """
        merged = self._default_config_deepcopy()

        for key, value in user_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key].update(value)
            else:
                merged[key] = value

        return merged

    def _section(self, name: str) -> Dict[str, Any]:
        return self.data.setdefault(name, {})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Persist the current configuration to the config file."""
        try:
            with self.config_file.open("w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)
            logger.info("Configuration saved")
        except OSError as exc:
            logger.error(f"Failed to save config: {exc}")

    def reset_to_defaults(self) -> None:
        """Reset all settings to defaults and persist."""
        self.data = self._default_config_deepcopy()
        self.save()
        logger.warning("Configuration reset to defaults")

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    @property
    def index_batch_size(self) -> int:
        """Records handled per indexing batch."""
        return int(self._section("indexing").get("batch_size", constants.INDEX_BATCH_SIZE))

    @index_batch_size.setter
    def index_batch_size(self, value: int) -> None:
        """Set batch size with guardrails (10 to 5000)."""
        self._section("indexing")["batch_size"] = max(10, min(5000, int(value)))
        self.save()

    @property
    def index_yield_every(self) -> int:
        """Batches between cooperative yields in the async indexer."""
        return int(self._section("indexing").get("yield_every", constants.INDEX_YIELD_EVERY))

    @index_yield_every.setter
    def index_yield_every(self, value: int) -> None:
        """Set yield interval with guardrails (1 to 100)."""
        self._section("indexing")["yield_every"] = max(1, min(100, int(value)))
        self.save()

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def scoring_weights(self) -> ScoringWeights:
        """
        Build the synergy scoring constants from the "scoring" section.

        Missing keys fall back to the documented defaults, negative values
        are clamped to zero so every term stays monotone.
        """
        section = self._section("scoring")
        defaults = ScoringWeights()

        def _get(key: str, default: int) -> int:
            try:
                return max(0, int(section.get(key, default)))
            except (TypeError, ValueError):
                logger.warning(f"Invalid scoring.{key}={section.get(key)!r}, using {default}")
                return default

        return ScoringWeights(
            base=_get("base", defaults.base),
            synergy_weight=_get("synergy_weight", defaults.synergy_weight),
            synergy_cap=_get("synergy_cap", defaults.synergy_cap),
            exotic_weight=_get("exotic_weight", defaults.exotic_weight),
            exotic_cap=_get("exotic_cap", defaults.exotic_cap),
            diversity_weight=_get("diversity_weight", defaults.diversity_weight),
            diversity_cap=_get("diversity_cap", defaults.diversity_cap),
        )

    def set_scoring_weight(self, key: str, value: int) -> None:
        """
        Override one scoring constant and persist.

        Raises:
            KeyError: If key is not a known scoring setting.
        """
        if key not in self.DEFAULT_CONFIG["scoring"]:
            raise KeyError(f"Unknown scoring setting: {key}")
        self._section("scoring")[key] = max(0, min(100, int(value)))
        self.save()

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    @property
    def max_builds(self) -> int:
        """Maximum builds returned per query."""
        return int(self._section("matching").get("max_builds", constants.MAX_BUILDS_DEFAULT))

    @max_builds.setter
    def max_builds(self, value: int) -> None:
        """Set max builds with guardrails (1 to 20)."""
        self._section("matching")["max_builds"] = max(1, min(20, int(value)))
        self.save()

    @property
    def fallback_limit(self) -> int:
        """Individual items returned when no archetype qualifies."""
        return int(self._section("matching").get("fallback_limit", constants.FALLBACK_ITEM_LIMIT))

    @fallback_limit.setter
    def fallback_limit(self, value: int) -> None:
        """Set fallback limit with guardrails (1 to 50)."""
        self._section("matching")["fallback_limit"] = max(1, min(50, int(value)))
        self.save()

    @property
    def low_confidence_threshold(self) -> float:
        """Confidence below which a parsed query is reported as vague."""
        return float(
            self._section("matching").get(
                "low_confidence_threshold", constants.LOW_CONFIDENCE_THRESHOLD
            )
        )

    @low_confidence_threshold.setter
    def low_confidence_threshold(self, value: float) -> None:
        """Set threshold with guardrails (0.0 to 1.0)."""
        self._section("matching")["low_confidence_threshold"] = max(0.0, min(1.0, float(value)))
        self.save()

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    @property
    def cache_max_entries(self) -> int:
        """Catalog versions kept by the index cache."""
        return int(self._section("cache").get("max_entries", constants.INDEX_CACHE_MAX_ENTRIES))

    @cache_max_entries.setter
    def cache_max_entries(self, value: int) -> None:
        """Set cache size with guardrails (1 to 16)."""
        self._section("cache")["max_entries"] = max(1, min(16, int(value)))
        self.save()
