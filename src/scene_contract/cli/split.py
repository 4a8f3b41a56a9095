"""CLI entrypoint for splitting a long scene contract into beats."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from pydantic import ValidationError

from scene_contract.adapters.http_split_proposer import HttpSplitProposer
from scene_contract.adapters.observability import configure_runtime_logging
from scene_contract.api.contracts import BeatPlanDocument, load_contract_json, save_beat_plan_json
from scene_contract.core.assisted_split import split_scene
from scene_contract.core.settings import SplitterSettings


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for beat splitting."""
    parser = argparse.ArgumentParser(description="Split a scene contract into chained beats.")
    parser.add_argument("--contract", required=True, help="Scene contract JSON file.")
    parser.add_argument("--output", default="", help="Write the beat plan JSON here.")
    parser.add_argument(
        "--proposer-url",
        default="",
        help="Generation endpoint for an assisted split; falls back to an even split.",
    )
    parser.add_argument("--timeout", type=float, default=None)
    return parser


def run_split(
    *,
    contract_path: Path,
    proposer_url: str = "",
    timeout_seconds: float | None = None,
) -> BeatPlanDocument:
    """Load the contract and produce a beat plan."""
    contract = load_contract_json(contract_path)
    settings = SplitterSettings.from_env()
    proposer = HttpSplitProposer(proposer_url) if proposer_url else None
    outcome = asyncio.run(
        split_scene(
            contract,
            proposer=proposer,
            timeout_seconds=timeout_seconds,
            settings=settings,
        )
    )
    return BeatPlanDocument.from_outcome(outcome)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for beat splitting."""
    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    configure_runtime_logging()
    try:
        plan = run_split(
            contract_path=Path(str(parsed.contract)),
            proposer_url=str(parsed.proposer_url),
            timeout_seconds=parsed.timeout,
        )
    except ValidationError as exc:
        raise SystemExit(f"invalid scene contract: {exc}") from exc
    if parsed.output:
        save_beat_plan_json(Path(str(parsed.output)), plan)
    print(plan.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
