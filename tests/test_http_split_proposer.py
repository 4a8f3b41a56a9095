from __future__ import annotations

import asyncio
import json

import httpx

from scene_contract.adapters.http_split_proposer import HttpSplitProposer
from scene_contract.core.assisted_split import split_scene
from scene_contract.domain.models import SceneContract

_CONTRACT = SceneContract(
    title="작별",
    location="기차역",
    timeframe="새벽",
    participants=("민수", "지은"),
    start_condition="민수가 승강장에 서 있다.",
    end_condition="기차가 떠났다.",
    end_condition_kind="narration",
    must_include=("편지",),
    target_word_count=5000,
)


def _proposal_text() -> str:
    beats = [
        {
            "beatNumber": number,
            "title": title,
            "targetWordCount": 2500,
            "startMoment": start,
            "endMoment": end,
            "mustInclude": ["편지"] if number == 1 else [],
        }
        for number, title, start, end in (
            (1, "opening", "민수가 승강장에 서 있다.", "지은이 도착한다."),
            (2, "farewell", "지은이 도착한다.", "기차가 떠났다."),
        )
    ]
    return json.dumps({"beats": beats, "splitReason": "two movements"}, ensure_ascii=False)


def test_proposer_posts_contract_and_reads_text_field() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"text": _proposal_text()})

    proposer = HttpSplitProposer(
        "https://generator.test/v1/split",
        headers={"Authorization": "Bearer token"},
        transport=httpx.MockTransport(handler),
    )

    raw = asyncio.run(proposer.propose_split(contract=_CONTRACT, beat_count=2))

    assert raw == _proposal_text()
    assert seen[0]["beat_count"] == 2
    assert seen[0]["contract"]["location"] == "기차역"  # type: ignore[index]


def test_plain_text_response_is_returned_verbatim() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="```json\n{}\n```"))
    proposer = HttpSplitProposer("https://generator.test/v1/split", transport=transport)

    raw = asyncio.run(proposer.propose_split(contract=_CONTRACT, beat_count=2))

    assert raw == "```json\n{}\n```"


def test_split_scene_uses_http_proposal() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"text": _proposal_text()})
    )
    proposer = HttpSplitProposer("https://generator.test/v1/split", transport=transport)

    outcome = asyncio.run(split_scene(_CONTRACT, proposer=proposer))

    assert outcome.strategy == "assisted"
    assert outcome.split_reason == "two movements"
    assert [beat.title for beat in outcome.beats] == ["opening", "farewell"]
    assert outcome.beats[1].start_moment == "지은이 도착한다."


def test_http_errors_become_proposer_error_fallback() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
    proposer = HttpSplitProposer("https://generator.test/v1/split", transport=transport)

    outcome = asyncio.run(split_scene(_CONTRACT, proposer=proposer))

    assert outcome.strategy == "deterministic"
    assert outcome.fallback is not None
    assert outcome.fallback.reason == "proposer_error"
