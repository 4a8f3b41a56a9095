"""Tunable thresholds for validation and beat splitting."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ValidatorSettings:
    """Empirical cutoffs used by the contract validator."""

    start_window_chars: int = 1000
    end_window_chars: int = 2000
    start_similarity: float = 0.6
    end_similarity: float = 0.7
    dialogue_similarity: float = 0.8
    must_include_similarity: float = 0.7
    must_include_coverage: float = 0.8
    overrun_tolerance_chars: int = 50
    core_phrase_min_chars: int = 5
    core_phrase_max_chars: int = 50
    pass_score: int = 80
    critical_penalty: int = 30
    major_penalty: int = 15
    minor_penalty: int = 5
    warning_penalty: int = 2

    @classmethod
    def from_env(cls) -> ValidatorSettings:
        """Build settings from SCENE_CONTRACT_* environment overrides."""
        defaults = cls()
        return cls(
            start_window_chars=_int_env(
                "SCENE_CONTRACT_START_WINDOW_CHARS",
                default=defaults.start_window_chars,
                minimum=50,
                maximum=100_000,
            ),
            end_window_chars=_int_env(
                "SCENE_CONTRACT_END_WINDOW_CHARS",
                default=defaults.end_window_chars,
                minimum=50,
                maximum=100_000,
            ),
            start_similarity=_float_env(
                "SCENE_CONTRACT_START_SIMILARITY", default=defaults.start_similarity
            ),
            end_similarity=_float_env(
                "SCENE_CONTRACT_END_SIMILARITY", default=defaults.end_similarity
            ),
            dialogue_similarity=_float_env(
                "SCENE_CONTRACT_DIALOGUE_SIMILARITY", default=defaults.dialogue_similarity
            ),
            must_include_similarity=_float_env(
                "SCENE_CONTRACT_MUST_INCLUDE_SIMILARITY",
                default=defaults.must_include_similarity,
            ),
            must_include_coverage=_float_env(
                "SCENE_CONTRACT_MUST_INCLUDE_COVERAGE", default=defaults.must_include_coverage
            ),
            overrun_tolerance_chars=_int_env(
                "SCENE_CONTRACT_OVERRUN_TOLERANCE_CHARS",
                default=defaults.overrun_tolerance_chars,
                minimum=0,
                maximum=10_000,
            ),
            core_phrase_min_chars=_int_env(
                "SCENE_CONTRACT_CORE_PHRASE_MIN_CHARS",
                default=defaults.core_phrase_min_chars,
                minimum=1,
                maximum=200,
            ),
            core_phrase_max_chars=_int_env(
                "SCENE_CONTRACT_CORE_PHRASE_MAX_CHARS",
                default=defaults.core_phrase_max_chars,
                minimum=1,
                maximum=1000,
            ),
            pass_score=_int_env(
                "SCENE_CONTRACT_PASS_SCORE", default=defaults.pass_score, minimum=0, maximum=100
            ),
            critical_penalty=_penalty_env("CRITICAL", default=defaults.critical_penalty),
            major_penalty=_penalty_env("MAJOR", default=defaults.major_penalty),
            minor_penalty=_penalty_env("MINOR", default=defaults.minor_penalty),
            warning_penalty=_penalty_env("WARNING", default=defaults.warning_penalty),
        )


@dataclass(frozen=True)
class SplitterSettings:
    """Length thresholds for beat decomposition."""

    split_threshold: int = 3000
    units_per_beat: int = 2500
    proposal_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> SplitterSettings:
        """Build settings from SCENE_CONTRACT_* environment overrides."""
        defaults = cls()
        return cls(
            split_threshold=_int_env(
                "SCENE_CONTRACT_SPLIT_THRESHOLD",
                default=defaults.split_threshold,
                minimum=100,
                maximum=1_000_000,
            ),
            units_per_beat=_int_env(
                "SCENE_CONTRACT_UNITS_PER_BEAT",
                default=defaults.units_per_beat,
                minimum=100,
                maximum=1_000_000,
            ),
            proposal_timeout_seconds=_float_env(
                "SCENE_CONTRACT_PROPOSAL_TIMEOUT_SECONDS",
                default=defaults.proposal_timeout_seconds,
                minimum=0.1,
                maximum=600.0,
            ),
        )


def _int_env(name: str, *, default: int, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _penalty_env(severity: str, *, default: int) -> int:
    return _int_env(
        f"SCENE_CONTRACT_{severity}_PENALTY", default=default, minimum=0, maximum=100
    )


def _float_env(name: str, *, default: float, minimum: float = 0.0, maximum: float = 1.0) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))
