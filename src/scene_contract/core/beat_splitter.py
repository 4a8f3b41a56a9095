"""Deterministic decomposition of long scene contracts into chained beats."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final

from scene_contract.core.settings import SplitterSettings
from scene_contract.domain.models import BASE_FORBIDDEN, Beat, ContractError, SceneContract

DETERMINISTIC_FORBIDDEN: Final[tuple[str, ...]] = (*BASE_FORBIDDEN, "summary", "skipping ahead")
_PHASE_FOCUS: Final[dict[str, str]] = {
    "opening": "set up the situation and bring in the cast",
    "rising action": "start the exchange or action",
    "development": "carry the core content",
    "turn": "raise the conflict and tension",
    "climax": "the decisive moment",
    "denouement": "reactions and closing beat",
    "resolution": "outcome and reactions",
}
_VERY_LONG_SCENE: Final[int] = 10_000
_MANY_REQUIRED_ITEMS: Final[int] = 5
_MANY_PARTICIPANTS: Final[int] = 3


@dataclass(frozen=True)
class SplitAnalysis:
    """Whether a scene should be split, and into how many beats."""

    needs_split: bool
    reason: str
    recommended_beat_count: int
    suggested_phases: tuple[str, ...] = ()


def needs_split(contract: SceneContract, settings: SplitterSettings | None = None) -> bool:
    active = settings or SplitterSettings()
    return contract.target_word_count > active.split_threshold


def recommended_beat_count(
    contract: SceneContract,
    settings: SplitterSettings | None = None,
) -> int:
    active = settings or SplitterSettings()
    if not needs_split(contract, active):
        return 1
    return math.ceil(contract.target_word_count / active.units_per_beat)


def analyze_scene_for_split(
    contract: SceneContract,
    settings: SplitterSettings | None = None,
) -> SplitAnalysis:
    """Explain the split decision for display next to the beat plan."""
    active = settings or SplitterSettings()
    if not needs_split(contract, active):
        return SplitAnalysis(
            needs_split=False,
            reason="Scene length is within a single generation unit.",
            recommended_beat_count=1,
        )

    count = recommended_beat_count(contract, active)
    reasons: list[str] = []
    if contract.target_word_count > _VERY_LONG_SCENE:
        reasons.append(f"very long scene (over {_VERY_LONG_SCENE:,})")
    if len(contract.must_include) > _MANY_REQUIRED_ITEMS:
        reasons.append("many required items")
    if len(contract.participants) > _MANY_PARTICIPANTS:
        reasons.append("large cast")
    reason = "; ".join(reasons) if reasons else "scene is longer than one generation unit"
    phases = tuple(f"{title}: {_phase_focus(title)}" for title in phase_titles(count))
    return SplitAnalysis(
        needs_split=True,
        reason=reason,
        recommended_beat_count=count,
        suggested_phases=phases,
    )


def phase_titles(count: int) -> list[str]:
    """Generic phase titles for an evenly split scene."""
    if count <= 1:
        return ["full scene"]
    if count == 2:
        return ["opening", "resolution"]
    if count == 3:
        return ["opening", "development", "resolution"]
    if count == 4:
        return ["opening", "rising action", "turn", "climax"]
    middle = count - 4
    if middle == 1:
        rising = ["rising action"]
    else:
        rising = [f"rising action #{index}" for index in range(1, middle + 1)]
    return ["opening", *rising, "turn", "climax", "denouement"]


def _phase_focus(title: str) -> str:
    return _PHASE_FOCUS.get(title.split(" #")[0], "carry the scene forward")


def distribute_word_count(
    total: int,
    count: int,
    weights: Sequence[int] | None = None,
) -> list[int]:
    """Split a total into shares summing exactly to it, remainder to the earliest."""
    if count <= 0:
        raise ValueError("count must be positive.")
    if weights is None or len(weights) != count or sum(weights) <= 0:
        weights = [1] * count
    weight_total = sum(weights)
    shares = [total * weight // weight_total for weight in weights]
    remainder = total - sum(shares)
    for index in range(remainder):
        shares[index] += 1
    return shares


def partition_items(items: Sequence[str], count: int) -> list[tuple[str, ...]]:
    """Contiguous, order-preserving slices of roughly equal size."""
    size = len(items)
    return [
        tuple(items[index * size // count : (index + 1) * size // count])
        for index in range(count)
    ]


def interior_boundary(beat_number: int) -> str:
    """Synthetic shared boundary between beat N and beat N+1."""
    return f"end of beat {beat_number} / start of beat {beat_number + 1}"


def single_beat(contract: SceneContract) -> Beat:
    """A scene below the split threshold is one beat equal to the contract."""
    return Beat(
        beat_number=1,
        title=contract.title or "full scene",
        target_word_count=contract.target_word_count,
        start_moment=contract.start_condition,
        end_moment=contract.end_condition,
        must_include=tuple(contract.must_include),
        forbidden=BASE_FORBIDDEN,
        description=", ".join(contract.must_include),
        focus="whole scene",
        duration="entire scene",
    )


def split_deterministic(
    contract: SceneContract,
    settings: SplitterSettings | None = None,
) -> list[Beat]:
    """Even split with chained boundaries; needs no external collaborator."""
    if contract.target_word_count <= 0:
        raise ContractError("Scene contract target length must be positive.")
    active = settings or SplitterSettings()
    if not needs_split(contract, active):
        return [single_beat(contract)]

    count = recommended_beat_count(contract, active)
    shares = distribute_word_count(contract.target_word_count, count)
    slices = partition_items(contract.must_include, count)
    titles = phase_titles(count)

    beats: list[Beat] = []
    for index in range(count):
        number = index + 1
        title = titles[index]
        beats.append(
            Beat(
                beat_number=number,
                title=title,
                target_word_count=shares[index],
                start_moment=(
                    contract.start_condition if index == 0 else interior_boundary(index)
                ),
                end_moment=(
                    contract.end_condition if number == count else interior_boundary(number)
                ),
                must_include=slices[index],
                forbidden=DETERMINISTIC_FORBIDDEN,
                description=f"part {number} of {count} of the scene",
                focus=_phase_focus(title),
                duration=f"about {max(1, round(shares[index] / 500))} min",
            )
        )
    return beats
