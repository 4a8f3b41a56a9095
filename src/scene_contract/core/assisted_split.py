"""Assisted beat splitting with shape validation and deterministic fallback."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from scene_contract.core.beat_splitter import (
    analyze_scene_for_split,
    distribute_word_count,
    partition_items,
    single_beat,
    split_deterministic,
)
from scene_contract.core.settings import SplitterSettings
from scene_contract.domain.models import BASE_FORBIDDEN, Beat, ContractError, SceneContract
from scene_contract.domain.ports import SplitProposer

logger = logging.getLogger(__name__)

FallbackReason = Literal[
    "unparsable",
    "missing_fields",
    "wrong_count",
    "non_monotonic",
    "timeout",
    "proposer_error",
]
SplitStrategy = Literal["single", "deterministic", "assisted"]

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")
_WRAPPER_KEYS: Final[set[str]] = {"split", "proposal", "split_proposal", "scene_split"}
_DETERMINISTIC_RECOMMENDATIONS: Final[tuple[str, ...]] = (
    "Write the beats in order.",
    "Continue each beat from the tail of the previous one.",
    "Keep time continuous between beats.",
)


class ProposalShapeError(ValueError):
    """Raised when a proposed split does not have the expected structure."""

    def __init__(self, reason: FallbackReason, detail: str) -> None:
        super().__init__(f"{reason}: {detail}")
        self.reason: FallbackReason = reason
        self.detail = detail


class _ProposalModel(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)


class ProposedBeat(_ProposalModel):
    """One beat as proposed by the generation collaborator."""

    beat_number: int | None = Field(default=None, alias="beatNumber", ge=1)
    title: str = Field(min_length=1, max_length=200)
    target_word_count: int | None = Field(default=None, alias="targetWordCount", ge=1)
    description: str = ""
    start_moment: str = Field(alias="startMoment", min_length=1)
    end_moment: str = Field(alias="endMoment", min_length=1)
    duration: str = ""
    must_include: list[str] = Field(default_factory=list, alias="mustInclude")
    focus: str = Field(default="", alias="focusOn")
    forbidden: list[str] = Field(default_factory=list)


class SplitProposal(_ProposalModel):
    """Whole proposed decomposition."""

    beats: list[ProposedBeat] = Field(min_length=1)
    split_reason: str = Field(default="", alias="splitReason")
    recommendations: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class SplitFallback:
    """Why the assisted split was abandoned for the deterministic one."""

    reason: FallbackReason
    detail: str


@dataclass(frozen=True)
class SplitOutcome:
    """Beats plus how they were produced."""

    beats: tuple[Beat, ...]
    strategy: SplitStrategy
    split_reason: str
    recommendations: tuple[str, ...] = ()
    fallback: SplitFallback | None = None

    @property
    def total_target_word_count(self) -> int:
        return sum(beat.target_word_count for beat in self.beats)


def parse_split_proposal(raw: str, *, expected_count: int) -> SplitProposal:
    """Decode a raw proposal and check it has the right shape."""
    cleaned = _CODE_FENCE.sub("", (raw or "").strip()).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ProposalShapeError("unparsable", str(exc)) from exc
    payload = _maybe_unwrap(payload)
    if not isinstance(payload, dict):
        raise ProposalShapeError("unparsable", "proposal is not a JSON object")

    try:
        proposal = SplitProposal.model_validate(payload)
    except ValidationError as exc:
        raise ProposalShapeError("missing_fields", f"{exc.error_count()} field errors") from exc

    if len(proposal.beats) != expected_count:
        raise ProposalShapeError(
            "wrong_count",
            f"expected {expected_count} beats, got {len(proposal.beats)}",
        )
    _check_monotonic(proposal.beats)
    return proposal


def _maybe_unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and len(payload) == 1 and next(iter(payload)) in _WRAPPER_KEYS:
        return next(iter(payload.values()))
    return payload


def _check_monotonic(beats: list[ProposedBeat]) -> None:
    numbers = [beat.beat_number for beat in beats]
    if all(number is not None for number in numbers) and numbers != list(
        range(1, len(beats) + 1)
    ):
        raise ProposalShapeError("non_monotonic", f"beat numbers out of order: {numbers}")
    for index, beat in enumerate(beats, start=1):
        if beat.start_moment == beat.end_moment:
            raise ProposalShapeError(
                "non_monotonic", f"beat {index} starts and ends on the same moment"
            )
    ends = [beat.end_moment for beat in beats]
    if len(set(ends)) != len(ends):
        raise ProposalShapeError("non_monotonic", "two beats share the same end moment")


def normalize_proposal(contract: SceneContract, proposal: SplitProposal) -> list[Beat]:
    """Force chaining and conservation onto a well-shaped proposal."""
    proposed = proposal.beats
    count = len(proposed)
    weights = [beat.target_word_count or 0 for beat in proposed]
    if any(weight <= 0 for weight in weights):
        shares = distribute_word_count(contract.target_word_count, count)
    else:
        shares = distribute_word_count(contract.target_word_count, count, weights)
        if any(share <= 0 for share in shares):
            shares = distribute_word_count(contract.target_word_count, count)

    assignments = _assign_required_items(contract.must_include, proposed)

    beats: list[Beat] = []
    for index, beat in enumerate(proposed):
        is_first = index == 0
        is_last = index == count - 1
        extras = [item for item in beat.forbidden if item and item not in BASE_FORBIDDEN]
        beats.append(
            Beat(
                beat_number=index + 1,
                title=beat.title,
                target_word_count=shares[index],
                start_moment=(
                    contract.start_condition if is_first else proposed[index - 1].end_moment
                ),
                end_moment=contract.end_condition if is_last else beat.end_moment,
                must_include=assignments[index],
                forbidden=(*BASE_FORBIDDEN, *dict.fromkeys(extras)),
                description=beat.description,
                focus=beat.focus,
                duration=beat.duration,
            )
        )
    return beats


def check_beat_chain(beats: list[Beat]) -> None:
    """Reject normalized beats whose boundaries collapse onto each other."""
    for beat in beats:
        if beat.start_moment == beat.end_moment:
            raise ProposalShapeError(
                "non_monotonic",
                f"beat {beat.beat_number} starts and ends on \"{beat.end_moment}\"",
            )
    ends = [beat.end_moment for beat in beats]
    if len(set(ends)) != len(ends):
        raise ProposalShapeError("non_monotonic", "two beats share the same end moment")


def _assign_required_items(
    items: tuple[str, ...],
    proposed: list[ProposedBeat],
) -> list[tuple[str, ...]]:
    """Keep the parent's items in order, honoring the proposal's placement where possible."""
    count = len(proposed)
    fallback_slices = partition_items(items, count)
    fallback_index = {
        item: index for index, chunk in enumerate(fallback_slices) for item in chunk
    }
    buckets: list[list[str]] = [[] for _ in range(count)]
    floor = 0
    for item in items:
        claimed = _claiming_beat(item, proposed)
        target = claimed if claimed is not None else fallback_index.get(item, floor)
        target = max(target, floor)
        buckets[target].append(item)
        floor = target
    return [tuple(bucket) for bucket in buckets]


def _claiming_beat(item: str, proposed: list[ProposedBeat]) -> int | None:
    needle = item.strip()
    for index, beat in enumerate(proposed):
        for candidate in beat.must_include:
            if needle and (candidate == needle or needle in candidate or candidate in needle):
                return index
    return None


async def split_scene(
    contract: SceneContract,
    *,
    proposer: SplitProposer | None = None,
    timeout_seconds: float | None = None,
    settings: SplitterSettings | None = None,
) -> SplitOutcome:
    """Split a scene, trying the proposer first when one is supplied."""
    if contract.target_word_count <= 0:
        raise ContractError("Scene contract target length must be positive.")
    active = settings or SplitterSettings()
    analysis = analyze_scene_for_split(contract, active)
    if not analysis.needs_split:
        return SplitOutcome(
            beats=(single_beat(contract),),
            strategy="single",
            split_reason=analysis.reason,
        )
    if proposer is None:
        return _deterministic_outcome(contract, active, reason=analysis.reason)

    timeout = timeout_seconds if timeout_seconds is not None else active.proposal_timeout_seconds
    try:
        raw = await asyncio.wait_for(
            proposer.propose_split(
                contract=contract, beat_count=analysis.recommended_beat_count
            ),
            timeout=timeout,
        )
    except TimeoutError:
        return _fallback(
            contract, active, SplitFallback("timeout", f"no proposal within {timeout}s")
        )
    except Exception as exc:  # noqa: BLE001
        return _fallback(contract, active, SplitFallback("proposer_error", str(exc)))

    try:
        proposal = parse_split_proposal(raw, expected_count=analysis.recommended_beat_count)
        beats = normalize_proposal(contract, proposal)
        check_beat_chain(beats)
    except ProposalShapeError as exc:
        return _fallback(contract, active, SplitFallback(exc.reason, exc.detail))

    logger.info("split.assisted beats=%s", len(beats))
    return SplitOutcome(
        beats=tuple(beats),
        strategy="assisted",
        split_reason=proposal.split_reason or analysis.reason,
        recommendations=tuple(proposal.recommendations),
    )


def _deterministic_outcome(
    contract: SceneContract,
    settings: SplitterSettings,
    *,
    reason: str,
    fallback: SplitFallback | None = None,
) -> SplitOutcome:
    return SplitOutcome(
        beats=tuple(split_deterministic(contract, settings)),
        strategy="deterministic",
        split_reason=reason,
        recommendations=_DETERMINISTIC_RECOMMENDATIONS,
        fallback=fallback,
    )


def _fallback(
    contract: SceneContract,
    settings: SplitterSettings,
    fallback: SplitFallback,
) -> SplitOutcome:
    logger.warning("split.fallback reason=%s detail=%s", fallback.reason, fallback.detail)
    return _deterministic_outcome(
        contract,
        settings,
        reason="even split applied after assisted split failed",
        fallback=fallback,
    )
