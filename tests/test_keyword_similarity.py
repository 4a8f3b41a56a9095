from __future__ import annotations

import pytest

from scene_contract.core.keyword_similarity import (
    extract_core_phrase,
    extract_keywords,
    extract_quoted,
    keyword_coverage,
    similarity,
)

_STOP_WORDS = frozenset({"는", "에서", "을"})


def test_extract_keywords_normalizes_quotes_and_punctuation() -> None:
    assert extract_keywords('"그는 문을 닫았다."', stop_words=_STOP_WORDS) == {
        "그는",
        "문을",
        "닫았다",
    }


def test_extract_keywords_drops_short_tokens_and_stop_words() -> None:
    assert extract_keywords("나 는 에서 집으로, 갔다!", stop_words=_STOP_WORDS) == {
        "집으로",
        "갔다",
    }
    assert extract_keywords("...  !!") == set()


def test_similarity_is_jaccard_over_keywords() -> None:
    assert similarity("이제 돌아가자", "이제 돌아가자!") == 1.0
    assert similarity("이제 우리 돌아가자", "이제 돌아가자") == pytest.approx(2 / 3)
    assert similarity("사과 바나나", "포도 수박") == 0.0
    assert similarity("", "") == 0.0


def test_similarity_is_symmetric_and_deterministic() -> None:
    left = "민수는 천천히 편지를 읽었다"
    right = "편지를 읽던 민수는 웃었다"
    assert similarity(left, right) == similarity(right, left)
    assert similarity(left, right) == similarity(left, right)


def test_keyword_coverage_counts_reference_keywords_in_text() -> None:
    coverage = keyword_coverage("약속을 한다", "그는 반지를 건넨다.")
    assert coverage.ratio == 0.0
    assert coverage.total == 2

    coverage = keyword_coverage("반지를 건넨다", "민수는 조용히 반지를 건넨다.")
    assert coverage.ratio == 1.0
    assert coverage.found == ("건넨다", "반지를")

    empty = keyword_coverage("나", "나는 간다")
    assert empty.total == 0
    assert empty.ratio == 0.0


def test_extract_quoted_handles_straight_curly_and_corner_quotes() -> None:
    text = 'A "hello there" B “curly line” C 「corner line」 D "" E'
    assert extract_quoted(text) == ["hello there", "curly line", "corner line"]


def test_extract_core_phrase_prefers_quoted_line_then_last_clause() -> None:
    assert extract_core_phrase('그가 말했다. "이제 돌아가자."') == "이제 돌아가자."
    assert extract_core_phrase("비가 내렸다, 민수가 우산을 폈다.") == "민수가 우산을 폈다"
    assert extract_core_phrase("네.") is None
