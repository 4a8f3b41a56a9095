"""CLI entrypoint for scoring a generated draft against a scene contract."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

from pydantic import ValidationError

from scene_contract.adapters.observability import configure_runtime_logging
from scene_contract.api.contracts import load_contract_json
from scene_contract.core.contract_validator import ContractValidator, ValidationResult
from scene_contract.core.marker_library import load_default_marker_library, load_marker_library
from scene_contract.core.settings import ValidatorSettings
from scene_contract.core.validation_report import format_validation_result


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for draft validation."""
    parser = argparse.ArgumentParser(
        description="Validate generated scene text against its scene contract."
    )
    parser.add_argument("--contract", required=True, help="Scene contract JSON file.")
    parser.add_argument("--text", required=True, help="Generated draft text file.")
    parser.add_argument("--markers", default="", help="Alternative marker table JSON file.")
    parser.add_argument("--roster", default="", help="Comma-separated known character names.")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON.")
    parser.add_argument("--strict", action="store_true", help="Exit 1 when the draft fails.")
    return parser


def run_validation(
    *,
    contract_path: Path,
    text_path: Path,
    markers_path: Path | None = None,
    roster: list[str] | None = None,
) -> ValidationResult:
    """Load inputs from disk and run the contract validator."""
    contract = load_contract_json(contract_path)
    text = text_path.read_text(encoding="utf-8")
    library = load_marker_library(markers_path) if markers_path else load_default_marker_library()
    validator = ContractValidator(library=library, settings=ValidatorSettings.from_env())
    return validator.validate(contract, text, roster=roster or [])


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for draft validation."""
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    configure_runtime_logging()
    roster = [name.strip() for name in str(parsed.roster).split(",") if name.strip()]
    try:
        result = run_validation(
            contract_path=Path(str(parsed.contract)),
            text_path=Path(str(parsed.text)),
            markers_path=Path(str(parsed.markers)) if parsed.markers else None,
            roster=roster,
        )
    except ValidationError as exc:
        raise SystemExit(f"invalid scene contract: {exc}") from exc
    if parsed.json:
        print(json.dumps(asdict(result), indent=2, ensure_ascii=False))
    else:
        print(format_validation_result(result))
    if parsed.strict and not result.is_valid:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
