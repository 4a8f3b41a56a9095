"""HTTP-backed split proposer for the assisted beat split."""

from __future__ import annotations

import logging
from dataclasses import asdict

import httpx

from scene_contract.domain.models import SceneContract

logger = logging.getLogger(__name__)


class HttpSplitProposer:
    """Asks a generation service for a beat decomposition of one scene."""

    def __init__(
        self,
        endpoint_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._headers = dict(headers or {})
        self._timeout = timeout
        self._transport = transport

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    async def propose_split(self, *, contract: SceneContract, beat_count: int) -> str:
        """Return the service's raw proposal text; HTTP errors propagate."""
        payload = {"contract": asdict(contract), "beat_count": beat_count}
        async with httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            response = await client.post(self._endpoint_url, json=payload)
            response.raise_for_status()
        logger.info(
            "split.proposal status=%s bytes=%s", response.status_code, len(response.content)
        )
        if "application/json" in response.headers.get("content-type", ""):
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("text"), str):
                return str(body["text"])
        return response.text
