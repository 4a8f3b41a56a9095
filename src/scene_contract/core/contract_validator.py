"""Deterministic compliance scoring of generated text against a scene contract."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Final, Literal

from scene_contract.core.keyword_similarity import (
    extract_core_phrase,
    extract_quoted,
    keyword_coverage,
    similarity,
)
from scene_contract.core.marker_library import (
    MarkerHit,
    MarkerLibrary,
    load_default_marker_library,
)
from scene_contract.core.settings import ValidatorSettings
from scene_contract.domain.models import ContractError, SceneContract, ensure_valid_contract

logger = logging.getLogger(__name__)

ViolationSeverity = Literal["critical", "major", "minor"]
ViolationKind = Literal[
    "contract_invalid",
    "end_condition_missing",
    "end_condition_exceeded",
    "start_condition_missing",
    "must_include_missing",
    "wrong_location",
    "wrong_timeframe",
    "wrong_character",
    "time_jump",
]
WarningKind = Literal["extra_content_after_end", "minor_time_reference"]

_SUGGESTION_ORDER: Final[tuple[ViolationKind, ...]] = (
    "contract_invalid",
    "end_condition_missing",
    "end_condition_exceeded",
    "start_condition_missing",
    "must_include_missing",
    "wrong_location",
    "wrong_timeframe",
    "wrong_character",
    "time_jump",
)
_SUGGESTIONS: Final[dict[ViolationKind, str]] = {
    "contract_invalid": "Give the scene contract a concrete end condition before generating.",
    "end_condition_missing": "End the scene exactly on the end condition, then stop writing.",
    "end_condition_exceeded": (
        "Cut everything after the end condition; it belongs to the next scene."
    ),
    "start_condition_missing": "Open the scene on the stated start condition.",
    "must_include_missing": "Work the missing required content into the current scene.",
    "wrong_location": "Keep the action in the contracted location.",
    "wrong_timeframe": "Stay inside the contracted timeframe.",
    "wrong_character": "Limit the cast to the contracted participants.",
    "time_jump": "Remove time-skip phrasing and render the moment in detail instead.",
}
_SEPARATOR_LINE = re.compile(r"^\s*-{3,}\s*$", flags=re.MULTILINE)
_TRAILING_BOUNDARY_CHARS: Final[str] = " \t\r\n.!?…\"'”’」』"


@dataclass(frozen=True)
class ConditionCheck:
    """Outcome of locating a start or end boundary in the text."""

    passed: bool
    found: bool
    matched_text: str | None = None
    similarity: float = 0.0
    reason: str = ""
    trailing_chars: int | None = None


@dataclass(frozen=True)
class FoundItem:
    """A required item and the text evidence that satisfied it."""

    item: str
    found_in_text: str


@dataclass(frozen=True)
class MustIncludeCheck:
    """Coverage of the contract's required content."""

    passed: bool
    total_items: int
    found_items: int
    missing_items: tuple[str, ...] = ()
    found_details: tuple[FoundItem, ...] = ()


@dataclass(frozen=True)
class ScopeCheck:
    """Location, timeframe and cast drift findings."""

    passed: bool
    location_valid: bool
    timeframe_valid: bool
    participants_valid: bool
    unexpected_locations: tuple[str, ...] = ()
    unexpected_characters: tuple[str, ...] = ()
    unexpected_timeframes: tuple[str, ...] = ()


@dataclass(frozen=True)
class TimeJumpCheck:
    """Time-skip expressions found in the text."""

    passed: bool
    jump_count: int
    jump_expressions: tuple[MarkerHit, ...] = ()


@dataclass(frozen=True)
class Violation:
    """A disqualifying deviation from the contract."""

    kind: ViolationKind
    severity: ViolationSeverity
    description: str
    suggestion: str


@dataclass(frozen=True)
class ValidationWarning:
    """An informational deviation that only lowers the score slightly."""

    kind: WarningKind
    description: str
    suggestion: str


@dataclass(frozen=True)
class ValidationResult:
    """Scored, itemized verdict for one (contract, text) pair."""

    score: int
    is_valid: bool
    start_condition_check: ConditionCheck
    end_condition_check: ConditionCheck
    must_include_check: MustIncludeCheck
    scope_check: ScopeCheck
    time_jump_check: TimeJumpCheck
    violations: tuple[Violation, ...] = ()
    warnings: tuple[ValidationWarning, ...] = ()
    suggestions: tuple[str, ...] = field(default_factory=tuple)

    def critical_count(self) -> int:
        return sum(1 for violation in self.violations if violation.severity == "critical")


def compute_score(
    violations: Sequence[Violation],
    warnings: Sequence[ValidationWarning],
    settings: ValidatorSettings,
) -> int:
    """Subtract severity penalties from 100 and clamp into [0, 100]."""
    penalties = {
        "critical": settings.critical_penalty,
        "major": settings.major_penalty,
        "minor": settings.minor_penalty,
    }
    score = 100
    for violation in violations:
        score -= penalties[violation.severity]
    score -= len(warnings) * settings.warning_penalty
    return max(0, min(100, score))


def build_suggestions(violations: Iterable[Violation]) -> tuple[str, ...]:
    """One hint per distinct violation kind, in a fixed order."""
    present = {violation.kind for violation in violations}
    return tuple(_SUGGESTIONS[kind] for kind in _SUGGESTION_ORDER if kind in present)


class ContractValidator:
    """Runs the five contract checks and aggregates them into one verdict."""

    def __init__(
        self,
        *,
        library: MarkerLibrary | None = None,
        settings: ValidatorSettings | None = None,
    ) -> None:
        self._library = library or load_default_marker_library()
        self._settings = settings or ValidatorSettings()

    @property
    def library(self) -> MarkerLibrary:
        return self._library

    @property
    def settings(self) -> ValidatorSettings:
        return self._settings

    def validate(
        self,
        contract: SceneContract,
        text: str,
        *,
        roster: Sequence[str] = (),
    ) -> ValidationResult:
        """Score generated text against a contract; never raises for bad text."""
        try:
            ensure_valid_contract(contract)
        except ContractError as exc:
            logger.info("validation.contract_invalid reason=%s", exc)
            return self._contract_error_result(contract, str(exc))

        text = text or ""
        start_check = self.check_start_condition(text, contract.start_condition)
        end_check = self.check_end_condition(
            text, contract.end_condition, contract.end_condition_kind
        )
        must_include_check = self.check_must_include(text, contract.must_include)
        scope_check = self.check_scope(text, contract, roster=roster)
        time_jump_check = self.check_time_jump(text)

        violations: list[Violation] = []
        warnings: list[ValidationWarning] = []

        if not start_check.passed and contract.start_condition.strip():
            violations.append(
                _violation(
                    "start_condition_missing",
                    "major",
                    f"Start condition not found: \"{_clip(contract.start_condition)}\".",
                )
            )

        if not end_check.found:
            violations.append(
                _violation(
                    "end_condition_missing",
                    "critical",
                    f"End condition not found: \"{_clip(contract.end_condition)}\".",
                )
            )
        elif end_check.trailing_chars is not None:
            trailing = end_check.trailing_chars
            if trailing > self._settings.overrun_tolerance_chars:
                violations.append(
                    _violation(
                        "end_condition_exceeded",
                        "critical",
                        f"{trailing} characters of content continue past the end condition.",
                    )
                )
            elif trailing > 0:
                warnings.append(
                    ValidationWarning(
                        kind="extra_content_after_end",
                        description=(
                            f"{trailing} characters follow the end condition."
                        ),
                        suggestion="Trim the text that follows the end condition.",
                    )
                )

        if not must_include_check.passed:
            missing = len(must_include_check.missing_items)
            total = must_include_check.total_items
            severity: ViolationSeverity
            if missing > total / 2:
                severity = "critical"
            elif missing > 1:
                severity = "major"
            else:
                severity = "minor"
            violations.append(
                _violation(
                    "must_include_missing",
                    severity,
                    f"{missing} of {total} required items missing: "
                    + ", ".join(must_include_check.missing_items[:3]),
                )
            )

        if scope_check.unexpected_locations:
            violations.append(
                _violation(
                    "wrong_location",
                    "major",
                    f"Unexpected locations outside \"{contract.location}\": "
                    + ", ".join(scope_check.unexpected_locations),
                )
            )
        if scope_check.unexpected_timeframes:
            violations.append(
                _violation(
                    "wrong_timeframe",
                    "major",
                    f"Unexpected timeframes outside \"{contract.timeframe}\": "
                    + ", ".join(scope_check.unexpected_timeframes),
                )
            )
        if scope_check.unexpected_characters:
            violations.append(
                _violation(
                    "wrong_character",
                    "major",
                    "Characters outside the contracted cast: "
                    + ", ".join(scope_check.unexpected_characters),
                )
            )

        significant = [
            hit.expression
            for hit in time_jump_check.jump_expressions
            if hit.severity in {"high", "medium"}
        ]
        minor_references = [
            hit.expression
            for hit in time_jump_check.jump_expressions
            if hit.severity == "low"
        ]
        if significant:
            violations.append(
                _violation(
                    "time_jump",
                    "critical",
                    "Time-skip expressions found: " + ", ".join(f'"{x}"' for x in significant),
                )
            )
        if minor_references:
            warnings.append(
                ValidationWarning(
                    kind="minor_time_reference",
                    description="Minor time references found: "
                    + ", ".join(f'"{x}"' for x in minor_references),
                    suggestion="Prefer staying inside the current moment.",
                )
            )

        score = compute_score(violations, warnings, self._settings)
        has_critical = any(violation.severity == "critical" for violation in violations)
        result = ValidationResult(
            score=score,
            is_valid=score >= self._settings.pass_score and not has_critical,
            start_condition_check=start_check,
            end_condition_check=end_check,
            must_include_check=must_include_check,
            scope_check=scope_check,
            time_jump_check=time_jump_check,
            violations=tuple(violations),
            warnings=tuple(warnings),
            suggestions=build_suggestions(violations),
        )
        logger.debug(
            "validation.complete score=%s valid=%s violations=%s warnings=%s",
            result.score,
            result.is_valid,
            len(result.violations),
            len(result.warnings),
        )
        return result

    def check_start_condition(self, text: str, start_condition: str) -> ConditionCheck:
        if not start_condition.strip():
            return ConditionCheck(passed=True, found=True, reason="no start condition")
        window = text[: self._settings.start_window_chars]
        if start_condition in window:
            return ConditionCheck(
                passed=True, found=True, matched_text=start_condition, similarity=1.0
            )
        coverage = keyword_coverage(start_condition, window, stop_words=self._library.stop_words)
        if coverage.total and coverage.ratio >= self._settings.start_similarity:
            return ConditionCheck(
                passed=True,
                found=True,
                matched_text=", ".join(coverage.found),
                similarity=coverage.ratio,
                reason="similar start condition",
            )
        return ConditionCheck(
            passed=False,
            found=False,
            similarity=coverage.ratio,
            reason=f"start condition mismatch (similarity {coverage.ratio:.0%})",
        )

    def check_end_condition(
        self,
        text: str,
        end_condition: str,
        end_condition_kind: str,
    ) -> ConditionCheck:
        window = text[-self._settings.end_window_chars :] if text else ""
        if end_condition in window:
            return ConditionCheck(
                passed=True,
                found=True,
                matched_text=end_condition,
                similarity=1.0,
                trailing_chars=self._trailing_chars(text, end_condition),
            )

        if end_condition_kind == "dialogue":
            dialogue = self._match_dialogue(window, end_condition)
            if dialogue is not None:
                line, score = dialogue
                return ConditionCheck(
                    passed=True,
                    found=True,
                    matched_text=line,
                    similarity=score,
                    reason="matching dialogue line",
                    trailing_chars=self._trailing_chars(text, line),
                )

        coverage = keyword_coverage(end_condition, window, stop_words=self._library.stop_words)
        if coverage.total and coverage.ratio >= self._settings.end_similarity:
            core = self._core_phrase(end_condition)
            return ConditionCheck(
                passed=True,
                found=True,
                matched_text=", ".join(coverage.found),
                similarity=coverage.ratio,
                reason="similar end condition",
                trailing_chars=self._trailing_chars(text, core) if core else None,
            )

        core = self._core_phrase(end_condition)
        if core and core in window:
            return ConditionCheck(
                passed=True,
                found=True,
                matched_text=core,
                similarity=self._settings.dialogue_similarity,
                reason="core phrase of end condition",
                trailing_chars=self._trailing_chars(text, core),
            )

        return ConditionCheck(
            passed=False,
            found=False,
            similarity=coverage.ratio,
            reason=f"end condition mismatch (similarity {coverage.ratio:.0%})",
        )

    def check_must_include(self, text: str, must_include: Sequence[str]) -> MustIncludeCheck:
        items = [item for item in must_include if item.strip()]
        if not items:
            return MustIncludeCheck(passed=True, total_items=0, found_items=0)

        found: list[FoundItem] = []
        missing: list[str] = []
        for item in items:
            if item in text:
                found.append(FoundItem(item=item, found_in_text=item))
                continue
            coverage = keyword_coverage(item, text, stop_words=self._library.stop_words)
            if coverage.total and coverage.ratio >= self._settings.must_include_similarity:
                found.append(FoundItem(item=item, found_in_text=", ".join(coverage.found)))
            else:
                missing.append(item)

        required = math.ceil(len(items) * self._settings.must_include_coverage)
        return MustIncludeCheck(
            passed=len(found) >= required,
            total_items=len(items),
            found_items=len(found),
            missing_items=tuple(missing),
            found_details=tuple(found),
        )

    def check_scope(
        self,
        text: str,
        contract: SceneContract,
        *,
        roster: Sequence[str] = (),
    ) -> ScopeCheck:
        location = contract.location.strip()
        location_head = location.split()[0] if location else ""
        unexpected_locations: list[str] = []
        for hit in self._library.match(text, kinds={"location_change"}):
            place = (hit.place or "").strip()
            if not place or place in location or location_head in place:
                continue
            if place not in unexpected_locations:
                unexpected_locations.append(place)

        unexpected_timeframes: list[str] = []
        for hit in self._library.match(text, kinds={"timeframe_shift"}):
            if hit.expression in contract.timeframe:
                continue
            if hit.expression not in unexpected_timeframes:
                unexpected_timeframes.append(hit.expression)

        unexpected_characters: list[str] = []
        for name in roster:
            name = name.strip()
            if not name or name in unexpected_characters:
                continue
            if any(name in participant for participant in contract.participants):
                continue
            if name in text:
                unexpected_characters.append(name)

        location_valid = not unexpected_locations
        timeframe_valid = not unexpected_timeframes
        participants_valid = not unexpected_characters
        return ScopeCheck(
            passed=location_valid and timeframe_valid and participants_valid,
            location_valid=location_valid,
            timeframe_valid=timeframe_valid,
            participants_valid=participants_valid,
            unexpected_locations=tuple(unexpected_locations),
            unexpected_characters=tuple(unexpected_characters),
            unexpected_timeframes=tuple(unexpected_timeframes),
        )

    def check_time_jump(self, text: str) -> TimeJumpCheck:
        seen: set[str] = set()
        expressions: list[MarkerHit] = []
        for hit in self._library.match(text, kinds={"time_jump"}):
            if hit.expression in seen:
                continue
            seen.add(hit.expression)
            expressions.append(hit)
        significant = any(hit.severity in {"high", "medium"} for hit in expressions)
        return TimeJumpCheck(
            passed=not significant,
            jump_count=len(expressions),
            jump_expressions=tuple(expressions),
        )

    def _match_dialogue(self, window: str, end_condition: str) -> tuple[str, float] | None:
        targets = extract_quoted(end_condition)
        if not targets:
            return None
        target = targets[0]
        for line in extract_quoted(window):
            score = similarity(line, target, stop_words=self._library.stop_words)
            if score >= self._settings.dialogue_similarity:
                return line, score
        return None

    def _core_phrase(self, end_condition: str) -> str | None:
        return extract_core_phrase(
            end_condition,
            min_chars=self._settings.core_phrase_min_chars,
            max_chars=self._settings.core_phrase_max_chars,
        )

    def _trailing_chars(self, text: str, needle: str) -> int | None:
        window_start = max(0, len(text) - self._settings.end_window_chars)
        index = text.find(needle, window_start)
        if index == -1:
            return None
        after = text[index + len(needle) :].lstrip(_TRAILING_BOUNDARY_CHARS)
        after = _SEPARATOR_LINE.sub("", after).strip()
        return len(after)

    def _contract_error_result(self, contract: SceneContract, reason: str) -> ValidationResult:
        skipped = ConditionCheck(passed=False, found=False, reason="contract invalid")
        violation = _violation("contract_invalid", "critical", reason)
        return ValidationResult(
            score=0,
            is_valid=False,
            start_condition_check=skipped,
            end_condition_check=skipped,
            must_include_check=MustIncludeCheck(
                passed=False,
                total_items=len(contract.must_include),
                found_items=0,
                missing_items=tuple(contract.must_include),
            ),
            scope_check=ScopeCheck(
                passed=False,
                location_valid=False,
                timeframe_valid=False,
                participants_valid=False,
            ),
            time_jump_check=TimeJumpCheck(passed=False, jump_count=0),
            violations=(violation,),
            suggestions=build_suggestions([violation]),
        )


def validate_scene_content(
    contract: SceneContract,
    text: str,
    *,
    roster: Sequence[str] = (),
    validator: ContractValidator | None = None,
) -> ValidationResult:
    """Validate with the default marker table and settings unless a validator is given."""
    active = validator or ContractValidator()
    return active.validate(contract, text, roster=roster)


def _violation(kind: ViolationKind, severity: ViolationSeverity, description: str) -> Violation:
    return Violation(
        kind=kind,
        severity=severity,
        description=description,
        suggestion=_SUGGESTIONS[kind],
    )


def _clip(value: str, limit: int = 50) -> str:
    value = value.strip()
    if len(value) <= limit:
        return value
    return f"{value[: limit - 3]}..."
