"""Domain models and ports for scene contracts."""

from scene_contract.domain.models import (
    BASE_FORBIDDEN,
    Beat,
    ContractError,
    EndConditionKind,
    SceneContract,
    ensure_valid_contract,
)
from scene_contract.domain.ports import SplitProposer

__all__ = [
    "BASE_FORBIDDEN",
    "Beat",
    "ContractError",
    "EndConditionKind",
    "SceneContract",
    "SplitProposer",
    "ensure_valid_contract",
]
