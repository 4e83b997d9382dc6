"""Timing and token-usage tracing for gateway model calls.

Attached as a LangChain callback to every chat client the nodes build.
Embeddings clients get no LangChain callbacks, so they wrap each call in
:meth:`EmbeddingsTracer.trace` instead.
The gateway answers in either the Anthropic or the OpenAI usage shape, so
:func:`parse_token_usage` accepts both.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator
from uuid import UUID

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.outputs import LLMResult

logger = logging.getLogger(__name__)


@dataclass
class TokenUsage:
    completion_tokens: int = 0
    prompt_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "completion_tokens": self.completion_tokens,
            "prompt_tokens": self.prompt_tokens,
            "total_tokens": self.total_tokens,
        }


def parse_token_usage(llm_output: dict[str, Any] | None) -> TokenUsage:
    """Extract token counts from ``LLMResult.llm_output``.

    Handles:
        1. Anthropic:  {"usage": {"input_tokens": 10, "output_tokens": 5}}
        2. OpenAI:     {"token_usage": {"prompt_tokens": 10, "completion_tokens": 5,
                                        "total_tokens": 15}}
    Missing or unrecognised usage yields zeros.
    """
    if not llm_output:
        return TokenUsage()

    usage = llm_output.get("usage")
    if isinstance(usage, dict) and ("input_tokens" in usage or "output_tokens" in usage):
        prompt = int(usage.get("input_tokens") or 0)
        completion = int(usage.get("output_tokens") or 0)
        return TokenUsage(completion, prompt, prompt + completion)

    usage = llm_output.get("token_usage")
    if isinstance(usage, dict):
        prompt = int(usage.get("prompt_tokens") or 0)
        completion = int(usage.get("completion_tokens") or 0)
        total = int(usage.get("total_tokens") or prompt + completion)
        return TokenUsage(completion, prompt, total)

    return TokenUsage()


@dataclass
class TraceEvent:
    """A single event in a node's model-call timeline."""
    event_type: str            # "llm_start" | "llm_end" | "llm_error" | "embed_*"
    timestamp: float
    data: dict[str, Any]
    duration_ms: float | None = None
    run_id: str = ""


class UsageTracingHandler(BaseCallbackHandler):
    """Records start/end/error events and token usage for one node's client."""

    def __init__(self, node_name: str) -> None:
        self.node_name = node_name
        self.events: list[TraceEvent] = []
        self.usage = TokenUsage()
        self._start_times: dict[str, float] = {}

    def _add(
        self, event_type: str, data: dict[str, Any], run_id: UUID, duration_ms: float | None = None,
    ) -> TraceEvent:
        evt = TraceEvent(
            event_type=event_type,
            timestamp=time.time(),
            data=data,
            duration_ms=duration_ms,
            run_id=str(run_id),
        )
        self.events.append(evt)
        return evt

    def _stop_timer(self, run_id: UUID) -> float | None:
        start = self._start_times.pop(str(run_id), None)
        if start is not None:
            return (time.monotonic() - start) * 1000
        return None

    def on_llm_start(
        self, serialized: dict[str, Any], prompts: list[str], *, run_id: UUID, **kwargs: Any,
    ) -> None:
        self._start_times[str(run_id)] = time.monotonic()
        self._add("llm_start", {"prompt_count": len(prompts)}, run_id)

    def on_chat_model_start(
        self, serialized: dict[str, Any], messages: list[list[Any]], *, run_id: UUID, **kwargs: Any,
    ) -> None:
        self._start_times[str(run_id)] = time.monotonic()
        self._add("llm_start", {"message_count": sum(len(m) for m in messages)}, run_id)

    def on_llm_end(self, response: LLMResult, *, run_id: UUID, **kwargs: Any) -> None:
        usage = parse_token_usage(response.llm_output)
        self.usage.prompt_tokens += usage.prompt_tokens
        self.usage.completion_tokens += usage.completion_tokens
        self.usage.total_tokens += usage.total_tokens

        duration = self._stop_timer(run_id)
        self._add("llm_end", usage.to_dict(), run_id, duration)
        logger.info(
            "%s call finished in %.0fms: prompt=%d completion=%d total=%d",
            self.node_name, duration or 0.0,
            usage.prompt_tokens, usage.completion_tokens, usage.total_tokens,
        )

    def on_llm_error(self, error: BaseException, *, run_id: UUID, **kwargs: Any) -> None:
        duration = self._stop_timer(run_id)
        self._add("llm_error", {"error": type(error).__name__}, run_id, duration)
        logger.warning("%s call failed: %s", self.node_name, type(error).__name__)


class EmbeddingsTracer:
    """Records timing and failures of one embeddings client's calls."""

    def __init__(self, node_name: str) -> None:
        self.node_name = node_name
        self.events: list[TraceEvent] = []

    def _add(self, event_type: str, data: dict[str, Any], duration_ms: float | None = None) -> None:
        self.events.append(
            TraceEvent(event_type=event_type, timestamp=time.time(), data=data, duration_ms=duration_ms)
        )

    @contextmanager
    def trace(self, operation: str, text_count: int) -> Iterator[None]:
        """Time the enclosed call. Errors are logged and re-raised unchanged."""
        start = time.monotonic()
        self._add("embed_start", {"operation": operation, "text_count": text_count})
        try:
            yield
        except Exception as exc:
            duration = (time.monotonic() - start) * 1000
            self._add("embed_error", {"operation": operation, "error": type(exc).__name__}, duration)
            logger.warning(
                "%s %s failed after %.0fms: %s",
                self.node_name, operation, duration, type(exc).__name__,
            )
            raise
        duration = (time.monotonic() - start) * 1000
        self._add("embed_end", {"operation": operation, "text_count": text_count}, duration)
        logger.info(
            "%s %s of %d text(s) finished in %.0fms",
            self.node_name, operation, text_count, duration,
        )
