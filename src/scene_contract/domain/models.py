"""Scene contract and beat value objects."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Final, Literal
from uuid import uuid4

EndConditionKind = Literal["dialogue", "action", "narration"]
BeatStatus = Literal["pending", "completed"]

BASE_FORBIDDEN: Final[tuple[str, ...]] = ("time jump", "location change", "next-beat content")


class ContractError(ValueError):
    """Raised when a scene contract itself is mis-specified."""


def _new_beat_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class SceneContract:
    """Author-given constraints one piece of generated text must satisfy."""

    location: str
    timeframe: str
    participants: tuple[str, ...]
    start_condition: str
    end_condition: str
    end_condition_kind: EndConditionKind
    must_include: tuple[str, ...]
    target_word_count: int
    title: str = ""


@dataclass(frozen=True)
class Beat:
    """One boundary-chained sub-contract of a longer scene."""

    beat_number: int
    title: str
    target_word_count: int
    start_moment: str
    end_moment: str
    must_include: tuple[str, ...]
    forbidden: tuple[str, ...] = BASE_FORBIDDEN
    status: BeatStatus = "pending"
    description: str = ""
    focus: str = ""
    duration: str = ""
    actual_word_count: int = 0
    content: str | None = None
    beat_id: str = field(default_factory=_new_beat_id, compare=False)

    def as_contract(self, scene: SceneContract, *, is_last: bool = False) -> SceneContract:
        """Derive the sub-contract a generated beat is validated against."""
        return replace(
            scene,
            title=self.title,
            start_condition=self.start_moment,
            end_condition=self.end_moment,
            end_condition_kind=scene.end_condition_kind if is_last else "narration",
            must_include=self.must_include,
            target_word_count=self.target_word_count,
        )


def ensure_valid_contract(contract: SceneContract) -> None:
    """Raise ContractError when the contract cannot be validated against."""
    if not contract.end_condition.strip():
        raise ContractError("Scene contract has an empty end condition.")
