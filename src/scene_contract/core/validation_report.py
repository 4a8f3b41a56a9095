"""Human-readable rendering of validation verdicts."""

from __future__ import annotations

from typing import Final

from scene_contract.core.contract_validator import ValidationResult

_RULE: Final[str] = "=" * 48
_SEVERITY_MARKERS: Final[dict[str, str]] = {
    "critical": "[!!!]",
    "major": "[!! ]",
    "minor": "[!  ]",
}


def _mark(passed: bool) -> str:
    return "ok" if passed else "FAILED"


def format_validation_result(result: ValidationResult) -> str:
    """Render header, violations, warnings, suggestions and per-check summary."""
    lines: list[str] = [
        _RULE,
        f"Scene validation: {'PASS' if result.is_valid else 'FAIL'} (score {result.score}/100)",
        _RULE,
    ]

    if result.violations:
        lines.append("")
        lines.append("Violations:")
        for index, violation in enumerate(result.violations, start=1):
            marker = _SEVERITY_MARKERS[violation.severity]
            lines.append(f"{index}. {marker} {violation.severity}: {violation.description}")
            lines.append(f"   -> {violation.suggestion}")

    if result.warnings:
        lines.append("")
        lines.append("Warnings:")
        for index, warning in enumerate(result.warnings, start=1):
            lines.append(f"{index}. {warning.description}")

    if result.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        for index, suggestion in enumerate(result.suggestions, start=1):
            lines.append(f"{index}. {suggestion}")

    must = result.must_include_check
    lines.append("")
    lines.append(
        "Checks: "
        f"start {_mark(result.start_condition_check.passed)} | "
        f"end {_mark(result.end_condition_check.passed)} "
        f"({result.end_condition_check.similarity:.0%}) | "
        f"must-include {must.found_items}/{must.total_items} | "
        f"scope {_mark(result.scope_check.passed)} | "
        f"time-jump {_mark(result.time_jump_check.passed)} "
        f"({result.time_jump_check.jump_count} found)"
    )
    return "\n".join(lines)
