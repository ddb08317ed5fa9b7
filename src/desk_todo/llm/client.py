# src/desk_todo/llm/client.py

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx
import openai
from openai import OpenAI

from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip()
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        return default


def _timeouts_from_env() -> dict[str, float]:
    """
    Timeouts are configurable via env so a slow model cannot hang the caller.

    Reports are long, so the defaults are more generous than for chat:
    - connect timeout: 5s
    - read timeout: 90s (no data from server)
    - first token timeout: 60s (no content tokens)
    """
    first_token = _env_float("DESK_LLM_FIRST_TOKEN_TIMEOUT_SECONDS", 60.0)
    read_timeout = _env_float("DESK_LLM_READ_TIMEOUT_SECONDS", 90.0)
    connect_timeout = _env_float("DESK_LLM_CONNECT_TIMEOUT_SECONDS", 5.0)

    # keep read >= first_token as a sane baseline
    read_timeout = max(read_timeout, first_token)

    return {
        "first_token": first_token,
        "read": read_timeout,
        "connect": connect_timeout,
    }


def _is_auth_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    return exc.__class__.__name__ in {"NotFoundError"}


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "LLM is not configured (missing API key). Set DESK_LLM_API_KEY in .env (see config.example.py)."
    if "LLM model list is empty" in msg:
        return "LLM is not configured (no models). Set DESK_LLM_MODELS in .env (see config.example.py)."
    if "LLM base URL is not set" in msg:
        return "LLM is not configured (missing base URL). Set DESK_LLM_BASE_URL in .env (see config.example.py)."
    return msg


def _close_stream(stream: Any) -> None:
    """Best-effort close for streaming responses."""
    try:
        close = getattr(stream, "close", None)
        if callable(close):
            close()
    except Exception:
        logger.debug("Stream close failed.", exc_info=True)


class OpenAICompatibleLLMClient:
    """
    Streaming chat client for any OpenAI-compatible endpoint.

    - Tries models in the configured order (DESK_LLM_MODELS).
    - A model without a first content token within the first-token timeout is
      abandoned for the next one.
    - 404 (model not available) -> skipped for an hour.
    - Rate limit / network issues -> next model.
    - Auth issues -> fail fast.
    SDK retries are disabled; callers decide whether to retry.
    """

    def __init__(self, settings) -> None:
        api_key = getattr(settings, "llm_api_key", None)
        base_url = getattr(settings, "llm_base_url", "") or ""

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set DESK_LLM_API_KEY in your .env.")
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set DESK_LLM_BASE_URL in your .env.")

        self._models: List[str] = [m for m in (getattr(settings, "llm_models", []) or []) if m.strip()]
        self._headers: Dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})
        self._temperature = float(getattr(settings, "llm_temperature", 0.7))
        self._max_tokens = int(getattr(settings, "llm_max_tokens", 2000))
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

        self._timeouts = _timeouts_from_env()
        self._timeout_obj = httpx.Timeout(
            connect=self._timeouts["connect"],
            read=self._timeouts["read"],
            write=10.0,
            pool=self._timeouts["connect"],
        )
        self._client = OpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=self._timeout_obj,
            max_retries=0,
        )

    def _create_stream(self, model: str, messages: list[ChatMessage]) -> Any:
        return self._client.chat.completions.create(
            model=model,
            stream=True,
            extra_headers=self._headers or None,
            messages=messages,  # type: ignore[arg-type]
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            timeout=self._timeout_obj,
        )

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        if not self._models:
            raise RuntimeError("LLM model list is empty. Set DESK_LLM_MODELS in your .env.")

        first_token_timeout = float(self._timeouts["first_token"])
        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in self._models:
            model = model.strip()

            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info(
                "LLM: trying model=%s (first_token_timeout=%.1fs, read_timeout=%.1fs)",
                model,
                first_token_timeout,
                float(self._timeouts["read"]),
            )
            t0 = time.monotonic()
            deadline = t0 + first_token_timeout

            stream = None
            used_any = False

            try:
                stream = self._create_stream(
                    model,
                    [{"role": "system", "content": system_prompt}, *messages],
                )

                for chunk in stream:
                    if not used_any and time.monotonic() > deadline:
                        last_error = TimeoutError(f"First token timeout on model: {model}")
                        logger.info("LLM: first token timeout on model=%s -> trying next", model)
                        break

                    try:
                        choice0 = chunk.choices[0]
                        delta = getattr(choice0, "delta", None)
                        content = getattr(delta, "content", None) if delta is not None else None
                    except (AttributeError, IndexError):
                        content = None

                    if content:
                        if not used_any:
                            logger.info("LLM: first token from model=%s (%.2fs)", model, time.monotonic() - t0)
                        used_any = True
                        yield content

                if used_any:
                    logger.debug("LLM: completed with model=%s", model)
                    return

                if last_error is None:
                    last_error = RuntimeError(f"Model returned no content: {model}")

            except Exception as e:
                last_error = e

                if used_any:
                    # Content already yielded: no fallback to another model.
                    logger.info("LLM: stream from model=%s broke after content (%s)", model, e.__class__.__name__)
                    raise RuntimeError(f"LLM stream interrupted on model {model}. Try again later.") from e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (DESK_LLM_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + 3600.0
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            finally:
                if stream is not None:
                    _close_stream(stream)

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")
