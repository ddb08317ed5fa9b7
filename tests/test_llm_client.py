# tests/test_llm_client.py

from __future__ import annotations

from collections.abc import Iterator
from types import SimpleNamespace

import pytest

from desk_todo.llm.client import OpenAICompatibleLLMClient
from desk_todo.reports.report_service import ReportPeriod, ReportService


class APIConnectionError(Exception):
    """Same class name the client treats as a network failure."""


def _chunk(text: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def _client(models: list[str]) -> OpenAICompatibleLLMClient:
    settings = SimpleNamespace(
        llm_api_key="test-key",
        llm_base_url="http://127.0.0.1:9/v1",
        llm_models=models,
        extra_headers={},
        llm_temperature=0.0,
        llm_max_tokens=100,
    )
    return OpenAICompatibleLLMClient(settings)


def _scripted(client: OpenAICompatibleLLMClient, streams: dict) -> list[str]:
    """Replace the network call; returns the list of models actually tried."""
    tried: list[str] = []

    def create_stream(model: str, messages) -> Iterator[SimpleNamespace]:
        tried.append(model)
        return streams[model]()

    client._create_stream = create_stream  # type: ignore[method-assign]
    return tried


def _breaks_after_first_chunk() -> Iterator[SimpleNamespace]:
    yield _chunk("PARTIAL-")
    raise APIConnectionError("connection reset")


def _breaks_before_content() -> Iterator[SimpleNamespace]:
    raise APIConnectionError("connection refused")
    yield _chunk("never")  # pragma: no cover


def _full() -> Iterator[SimpleNamespace]:
    yield _chunk("FULL ")
    yield _chunk("REPORT")


def test_stream_broken_after_content_does_not_switch_models() -> None:
    client = _client(["m1", "m2"])
    tried = _scripted(client, {"m1": _breaks_after_first_chunk, "m2": _full})

    received: list[str] = []
    with pytest.raises(RuntimeError, match="interrupted"):
        for piece in client.stream_chat([{"role": "user", "content": "hi"}], "sys"):
            received.append(piece)

    assert received == ["PARTIAL-"]
    assert tried == ["m1"]


def test_failure_before_content_falls_back_to_next_model() -> None:
    client = _client(["m1", "m2"])
    tried = _scripted(client, {"m1": _breaks_before_content, "m2": _full})

    out = "".join(client.stream_chat([{"role": "user", "content": "hi"}], "sys"))

    assert out == "FULL REPORT"
    assert tried == ["m1", "m2"]


@pytest.mark.asyncio
async def test_interrupted_report_is_a_single_error() -> None:
    client = _client(["m1", "m2"])
    _scripted(client, {"m1": _breaks_after_first_chunk, "m2": _full})
    service = ReportService(client)

    state = await service.generate(ReportPeriod.WEEKLY, [])

    assert state.report == ""
    assert state.error is not None
    assert state.error.startswith("Failed to generate report: LLM stream interrupted")
