"""JSON document surface for contracts and beat plans."""

from scene_contract.api.contracts import (
    BeatDocument,
    BeatPlanDocument,
    SceneContractDocument,
    load_contract_json,
    save_beat_plan_json,
)

__all__ = [
    "BeatDocument",
    "BeatPlanDocument",
    "SceneContractDocument",
    "load_contract_json",
    "save_beat_plan_json",
]
