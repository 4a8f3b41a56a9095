"""Progress tracking and quick draft checks for beats of one scene."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from scene_contract.core.marker_library import MarkerLibrary, load_default_marker_library
from scene_contract.domain.models import Beat


@dataclass(frozen=True)
class SceneProgress:
    """Aggregate completion state across a scene's beats."""

    total_word_count: int
    completed_beats: int
    total_beats: int
    percentage: int


@dataclass(frozen=True)
class BeatDraftCheck:
    """Cheap pre-validation of one beat draft."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def complete_beat(beat: Beat, content: str) -> Beat:
    """Return a completed copy of the beat carrying its generated content."""
    return replace(beat, status="completed", content=content, actual_word_count=len(content))


def merge_beats_to_scene(beats: Sequence[Beat]) -> str:
    """Join completed beat content in beat order."""
    written = sorted((beat for beat in beats if beat.content), key=lambda beat: beat.beat_number)
    return "\n\n".join(beat.content or "" for beat in written)


def calculate_scene_progress(beats: Sequence[Beat]) -> SceneProgress:
    total = len(beats)
    completed = sum(1 for beat in beats if beat.status == "completed")
    percentage = round(completed / total * 100) if total else 0
    return SceneProgress(
        total_word_count=sum(beat.actual_word_count for beat in beats),
        completed_beats=completed,
        total_beats=total,
        percentage=percentage,
    )


def check_beat_draft(
    content: str,
    beat: Beat,
    *,
    library: MarkerLibrary | None = None,
) -> BeatDraftCheck:
    """Flag short drafts, time skips, summary phrasing and repeated motifs."""
    active = library or load_default_marker_library()
    errors: list[str] = []
    warnings: list[str] = []

    length = len(content)
    if length < beat.target_word_count * 0.5:
        errors.append(f"draft too short: {length:,} of {beat.target_word_count:,}")
    elif length < beat.target_word_count * 0.8:
        warnings.append(f"draft somewhat short: {length:,} of {beat.target_word_count:,}")

    seen: set[str] = set()
    for hit in active.match(content, kinds={"time_jump", "summary", "repetition"}):
        if hit.expression in seen:
            continue
        seen.add(hit.expression)
        if hit.kind == "time_jump" and hit.severity in {"high", "medium"}:
            errors.append(f'time jump: "{hit.expression}"')
        elif hit.kind == "summary":
            warnings.append(f'summary phrasing: "{hit.expression}"')
        elif hit.kind == "repetition":
            warnings.append(f'repeated motif: "{hit.motif or hit.category}"')

    return BeatDraftCheck(is_valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
