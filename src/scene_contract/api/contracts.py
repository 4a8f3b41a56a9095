"""Typed JSON documents for scene contracts and beat plans."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scene_contract.core.assisted_split import SplitOutcome
from scene_contract.domain.models import Beat, SceneContract


class ContractModel(BaseModel):
    """Base model config used by all JSON documents."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def _dedupe_ordered(values: list[str]) -> list[str]:
    normalized = [value.strip() for value in values if value.strip()]
    return list(dict.fromkeys(normalized))


class SceneContractDocument(ContractModel):
    """Portable scene contract authored by hand or exported by a planner."""

    title: str = Field(default="", max_length=300)
    location: str = Field(default="", max_length=500)
    timeframe: str = Field(default="", max_length=500)
    participants: list[str] = Field(default_factory=list)
    start_condition: str = Field(default="", max_length=4000)
    end_condition: str = Field(default="", max_length=4000)
    end_condition_kind: Literal["dialogue", "action", "narration"] = "narration"
    must_include: list[str] = Field(default_factory=list)
    target_word_count: int = Field(gt=0)

    @field_validator("participants", "must_include")
    @classmethod
    def _normalize_lists(cls, values: list[str]) -> list[str]:
        return _dedupe_ordered(values)

    def to_domain(self) -> SceneContract:
        return SceneContract(
            title=self.title,
            location=self.location,
            timeframe=self.timeframe,
            participants=tuple(self.participants),
            start_condition=self.start_condition,
            end_condition=self.end_condition,
            end_condition_kind=self.end_condition_kind,
            must_include=tuple(self.must_include),
            target_word_count=self.target_word_count,
        )


class BeatDocument(ContractModel):
    """Serialized beat, as handed to a prompt builder."""

    beat_id: str
    beat_number: int = Field(ge=1)
    title: str
    target_word_count: int = Field(gt=0)
    start_moment: str
    end_moment: str
    must_include: list[str] = Field(default_factory=list)
    forbidden: list[str] = Field(default_factory=list)
    status: Literal["pending", "completed"] = "pending"
    description: str = ""
    focus: str = ""
    duration: str = ""

    @classmethod
    def from_domain(cls, beat: Beat) -> BeatDocument:
        return cls(
            beat_id=beat.beat_id,
            beat_number=beat.beat_number,
            title=beat.title,
            target_word_count=beat.target_word_count,
            start_moment=beat.start_moment,
            end_moment=beat.end_moment,
            must_include=list(beat.must_include),
            forbidden=list(beat.forbidden),
            status=beat.status,
            description=beat.description,
            focus=beat.focus,
            duration=beat.duration,
        )


class BeatPlanDocument(ContractModel):
    """Beat plan for one scene plus how it was produced."""

    strategy: Literal["single", "deterministic", "assisted"]
    split_reason: str = ""
    fallback_reason: str | None = None
    total_target_word_count: int = Field(ge=0)
    beats: list[BeatDocument] = Field(min_length=1)
    recommendations: list[str] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: SplitOutcome) -> BeatPlanDocument:
        return cls(
            strategy=outcome.strategy,
            split_reason=outcome.split_reason,
            fallback_reason=outcome.fallback.reason if outcome.fallback else None,
            total_target_word_count=outcome.total_target_word_count,
            beats=[BeatDocument.from_domain(beat) for beat in outcome.beats],
            recommendations=list(outcome.recommendations),
        )


def load_contract_json(path: Path) -> SceneContract:
    """Load and validate a scene contract JSON file."""
    document = SceneContractDocument.model_validate_json(path.read_text(encoding="utf-8"))
    return document.to_domain()


def save_beat_plan_json(path: Path, plan: BeatPlanDocument) -> None:
    """Persist a beat plan as readable JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(plan.model_dump_json(indent=2) + "\n", encoding="utf-8")
