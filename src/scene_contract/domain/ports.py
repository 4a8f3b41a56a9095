"""Ports for external collaborators used by the splitter."""

from __future__ import annotations

from typing import Protocol

from scene_contract.domain.models import SceneContract


class SplitProposer(Protocol):
    """Proposes a beat decomposition for one scene as raw generated text."""

    async def propose_split(self, *, contract: SceneContract, beat_count: int) -> str:
        ...
