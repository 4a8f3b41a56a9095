from __future__ import annotations

import json
from pathlib import Path

import pytest

from scene_contract.core.marker_library import (
    MarkerLibraryError,
    build_marker_library,
    load_default_marker_library,
    load_marker_library,
)


def _table(*categories: dict[str, object]) -> dict[str, object]:
    return {"table_version": "test.v1", "locale": "en", "categories": list(categories)}


def test_default_library_loads_korean_table() -> None:
    library = load_default_marker_library()

    assert library.locale == "ko"
    assert library.table_version == "markers.ko.v1"
    assert {"time_jump.high", "time_jump.medium", "time_jump.low"} <= set(
        library.category_names()
    )
    assert "에서" in library.stop_words
    assert load_default_marker_library() is library


def test_match_reports_severity_of_source_category() -> None:
    library = load_default_marker_library()

    hits = library.match("며칠이 지나 어느덧 봄이 왔다.", kinds={"time_jump"})

    assert [(hit.expression, hit.severity) for hit in hits] == [
        ("며칠이 지나", "high"),
        ("어느덧", "medium"),
    ]
    assert hits[0].start == 0
    assert hits[0].category == "time_jump.high"


def test_same_phrase_is_reported_once_per_category() -> None:
    library = load_default_marker_library()

    hits = library.match("다음 날 아침이었다.")

    assert {(hit.category, hit.expression) for hit in hits} == {
        ("time_jump.low", "다음 날"),
        ("timeframe_shift", "다음 날"),
    }


def test_location_hits_capture_place() -> None:
    library = load_default_marker_library()

    hits = library.match("그는 부엌으로 향했다.", kinds={"location_change"})

    assert len(hits) == 1
    assert hits[0].place == "부엌"


def test_overlapping_hits_in_one_category_keep_longest() -> None:
    library = build_marker_library(
        _table({"name": "jump", "kind": "time_jump", "severity": "high", "patterns": ["ab", "abc"]})
    )

    hits = library.match("xabcd ab")

    assert [hit.expression for hit in hits] == ["abc", "ab"]


def test_build_rejects_unknown_severity() -> None:
    with pytest.raises(MarkerLibraryError, match="unknown severity"):
        build_marker_library(
            _table({"name": "jump", "kind": "time_jump", "severity": "severe", "patterns": ["x"]})
        )


def test_build_rejects_location_pattern_without_place_group() -> None:
    with pytest.raises(MarkerLibraryError, match="place"):
        build_marker_library(
            _table(
                {
                    "name": "moves",
                    "kind": "location_change",
                    "severity": "medium",
                    "patterns": ["went to (\\w+)"],
                }
            )
        )


def test_build_rejects_invalid_regex_and_empty_tables() -> None:
    with pytest.raises(MarkerLibraryError, match="invalid pattern"):
        build_marker_library(
            _table({"name": "jump", "kind": "time_jump", "severity": "low", "patterns": ["(x"]})
        )
    with pytest.raises(MarkerLibraryError):
        build_marker_library({"categories": []})


def test_load_marker_library_from_file(tmp_path: Path) -> None:
    path = tmp_path / "markers.en.json"
    path.write_text(
        json.dumps(
            {
                "table_version": "markers.en.v1",
                "locale": "en",
                "stop_words": ["the", "a"],
                "categories": [
                    {
                        "name": "time_jump.high",
                        "kind": "time_jump",
                        "severity": "high",
                        "patterns": ["(?i)days later"],
                    }
                ],
            }
        ),
        encoding="utf-8",
    )

    library = load_marker_library(path)

    assert library.locale == "en"
    assert library.stop_words == frozenset({"the", "a"})
    assert [hit.expression for hit in library.match("Days later, she returned.")] == [
        "Days later"
    ]


def test_build_rejects_repetition_pattern_without_motif_group() -> None:
    with pytest.raises(MarkerLibraryError, match="motif"):
        build_marker_library(
            _table(
                {
                    "name": "repeats",
                    "kind": "repetition",
                    "severity": "low",
                    "patterns": ["vow[\\s\\S]*vow"],
                }
            )
        )


def test_repetition_hits_span_across_lines_and_capture_motif() -> None:
    library = load_default_marker_library()

    hits = library.match("결심이 섰다.\n그리고 다시 결심했다.", kinds={"repetition"})

    assert len(hits) == 1
    assert hits[0].motif == "결심"
    assert hits[0].category == "repetition.resolve"
