"""Swappable tables of drift marker phrases tagged with severities."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Final, Literal

MarkerSeverity = Literal["low", "medium", "high"]
MarkerKind = Literal["time_jump", "location_change", "timeframe_shift", "summary", "repetition"]

DEFAULT_TABLE_RESOURCE: Final[str] = "markers.ko.v1.json"
_SEVERITIES: Final[set[str]] = {"low", "medium", "high"}
_KINDS: Final[set[str]] = {
    "time_jump",
    "location_change",
    "timeframe_shift",
    "summary",
    "repetition",
}
_PLACE_GROUP: Final[str] = "place"
_MOTIF_GROUP: Final[str] = "motif"


class MarkerLibraryError(ValueError):
    """Raised when a marker table is malformed."""


@dataclass(frozen=True)
class MarkerCategory:
    """Named pattern set sharing one severity."""

    name: str
    kind: MarkerKind
    severity: MarkerSeverity
    patterns: tuple[re.Pattern[str], ...]


@dataclass(frozen=True)
class MarkerHit:
    """One marker expression found in scanned text."""

    expression: str
    category: str
    kind: MarkerKind
    severity: MarkerSeverity
    start: int
    end: int
    place: str | None = None
    motif: str | None = None


@dataclass(frozen=True)
class MarkerLibrary:
    """Immutable marker table plus the stop words used for keyword extraction."""

    table_version: str
    locale: str
    categories: tuple[MarkerCategory, ...]
    stop_words: frozenset[str] = frozenset()

    def match(self, text: str, *, kinds: set[str] | None = None) -> list[MarkerHit]:
        """Return every non-overlapping hit per category, in text order."""
        hits: list[MarkerHit] = []
        for category in self.categories:
            if kinds is not None and category.kind not in kinds:
                continue
            hits.extend(_category_hits(category, text))
        hits.sort(key=lambda hit: (hit.start, hit.category))
        return hits

    def category_names(self) -> list[str]:
        return [category.name for category in self.categories]


def _category_hits(category: MarkerCategory, text: str) -> list[MarkerHit]:
    candidates: list[MarkerHit] = []
    for pattern in category.patterns:
        for match in pattern.finditer(text):
            if match.end() <= match.start():
                continue
            groups = pattern.groupindex
            place = match.group(_PLACE_GROUP) if _PLACE_GROUP in groups else None
            motif = match.group(_MOTIF_GROUP) if _MOTIF_GROUP in groups else None
            candidates.append(
                MarkerHit(
                    expression=match.group(0),
                    category=category.name,
                    kind=category.kind,
                    severity=category.severity,
                    start=match.start(),
                    end=match.end(),
                    place=place,
                    motif=motif,
                )
            )
    candidates.sort(key=lambda hit: (hit.start, -(hit.end - hit.start)))
    accepted: list[MarkerHit] = []
    last_end = -1
    for hit in candidates:
        if hit.start < last_end:
            continue
        accepted.append(hit)
        last_end = hit.end
    return accepted


def build_marker_library(payload: dict[str, Any]) -> MarkerLibrary:
    """Validate a decoded marker table and compile its patterns."""
    raw_categories = payload.get("categories")
    if not isinstance(raw_categories, list) or not raw_categories:
        raise MarkerLibraryError("Marker table must define a non-empty categories list.")

    categories: list[MarkerCategory] = []
    seen_names: set[str] = set()
    for raw in raw_categories:
        name = str(raw.get("name", "")).strip()
        kind = str(raw.get("kind", "")).strip()
        severity = str(raw.get("severity", "")).strip()
        if not name:
            raise MarkerLibraryError("Marker category is missing a name.")
        if name in seen_names:
            raise MarkerLibraryError(f"Duplicate marker category '{name}'.")
        if kind not in _KINDS:
            raise MarkerLibraryError(f"Marker category '{name}' has unknown kind '{kind}'.")
        if severity not in _SEVERITIES:
            raise MarkerLibraryError(
                f"Marker category '{name}' has unknown severity '{severity}'."
            )
        patterns = tuple(
            _compile(name=name, kind=kind, source=str(source))
            for source in raw.get("patterns", [])
        )
        if not patterns:
            raise MarkerLibraryError(f"Marker category '{name}' has no patterns.")
        seen_names.add(name)
        categories.append(
            MarkerCategory(name=name, kind=kind, severity=severity, patterns=patterns)  # type: ignore[arg-type]
        )

    stop_words = frozenset(
        word.strip() for word in payload.get("stop_words", []) if str(word).strip()
    )
    return MarkerLibrary(
        table_version=str(payload.get("table_version", "custom")),
        locale=str(payload.get("locale", "und")),
        categories=tuple(categories),
        stop_words=stop_words,
    )


def _compile(*, name: str, kind: str, source: str) -> re.Pattern[str]:
    try:
        pattern = re.compile(source)
    except re.error as exc:
        raise MarkerLibraryError(f"Marker category '{name}' has invalid pattern: {exc}") from exc
    if kind == "location_change" and _PLACE_GROUP not in pattern.groupindex:
        raise MarkerLibraryError(
            f"Location pattern '{source}' in '{name}' must capture a '{_PLACE_GROUP}' group."
        )
    if kind == "repetition" and _MOTIF_GROUP not in pattern.groupindex:
        raise MarkerLibraryError(
            f"Repetition pattern '{source}' in '{name}' must capture a '{_MOTIF_GROUP}' group."
        )
    return pattern


def load_marker_library(path: Path) -> MarkerLibrary:
    """Load a marker table from a JSON file."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    return build_marker_library(payload)


@lru_cache(maxsize=1)
def load_default_marker_library() -> MarkerLibrary:
    """Load the packaged marker table once per process."""
    text = (
        resources.files("scene_contract")
        .joinpath("resources")
        .joinpath(DEFAULT_TABLE_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return build_marker_library(json.loads(text))
