from __future__ import annotations

from scene_contract.core.beat_progress import (
    calculate_scene_progress,
    check_beat_draft,
    complete_beat,
    merge_beats_to_scene,
)
from scene_contract.domain.models import Beat


def _beat(number: int, target: int = 100) -> Beat:
    return Beat(
        beat_number=number,
        title=f"beat {number}",
        target_word_count=target,
        start_moment=f"moment {number - 1}",
        end_moment=f"moment {number}",
        must_include=(),
    )


def test_complete_beat_records_content_and_length() -> None:
    beat = _beat(1)

    done = complete_beat(beat, "가" * 120)

    assert done.status == "completed"
    assert done.actual_word_count == 120
    assert done.beat_id == beat.beat_id
    assert beat.status == "pending"


def test_merge_joins_written_beats_in_order() -> None:
    beats = [complete_beat(_beat(2), "둘째"), _beat(3), complete_beat(_beat(1), "첫째")]

    assert merge_beats_to_scene(beats) == "첫째\n\n둘째"


def test_progress_counts_completed_beats() -> None:
    beats = [complete_beat(_beat(1), "가" * 40), complete_beat(_beat(2), "나" * 60), _beat(3)]

    progress = calculate_scene_progress(beats)

    assert progress.completed_beats == 2
    assert progress.total_beats == 3
    assert progress.total_word_count == 100
    assert progress.percentage == 67
    assert calculate_scene_progress([]).percentage == 0


def test_draft_check_flags_length_time_jumps_and_summary() -> None:
    beat = _beat(1, target=100)

    too_short = check_beat_draft("짧은 글.", beat)
    assert not too_short.is_valid
    assert too_short.errors[0].startswith("draft too short")

    somewhat_short = check_beat_draft("가" * 70, beat)
    assert somewhat_short.is_valid
    assert somewhat_short.warnings[0].startswith("draft somewhat short")

    padding = "가" * 100
    jumped = check_beat_draft(f"{padding} 며칠이 지나 결국 끝났다.", beat)
    assert not jumped.is_valid
    assert 'time jump: "며칠이 지나"' in jumped.errors
    assert 'summary phrasing: "결국"' in jumped.warnings

    clean = check_beat_draft(f"{padding} 그날 밤 바람이 불었다.", beat)
    assert clean.is_valid
    assert clean.warnings == ()


def test_draft_check_warns_on_repeated_motifs() -> None:
    beat = _beat(1, target=100)
    padding = "가" * 100
    content = (
        f"{padding} 그는 주먹을 불끈 쥐었다. 각성의 순간이었다.\n"
        "눈빛이 변했다. 다시 주먹을 불끈 쥐었다.\n"
        "그의 눈빛이 또 변했다. 두 번째 각성이 찾아왔다."
    )

    result = check_beat_draft(content, beat)

    assert result.is_valid
    assert set(result.warnings) == {
        'repeated motif: "주먹을 불끈"',
        'repeated motif: "눈빛이"',
        'repeated motif: "각성"',
    }


def test_single_motif_mention_is_not_a_repetition() -> None:
    result = check_beat_draft(f"{'가' * 100} 그는 결심했다. 눈빛이 변했다.", _beat(1, target=100))

    assert result.warnings == ()
