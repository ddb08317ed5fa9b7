# src/desk_todo/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Reports still work: the task data from the prompt is echoed back under a
    short notice, so the user sees what would have been summarized.
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        yield (
            "> Offline mode: no external LLM is configured.\n"
            "> Set DESK_LLM_API_KEY (and DESK_LLM_MODELS) to enable generated reports.\n\n"
        )
        yield user_text
