"""LLM utilities using Claude Agent SDK.

Every call to the language model goes through a ``TextCompleter``: an object
with a single ``async complete(prompt) -> str`` method. The AI layer never
calls the SDK directly, so tests substitute a mock completer and the
timeout/retry policy lives in one place (``complete_with_policy``).

The Agent SDK shells out to Claude Code CLI, which means:
- Authentication uses your existing Claude Code auth (Max plan, API key, etc.)
- No separate API key configuration needed
"""

import asyncio
import logging
import re
from typing import Protocol, runtime_checkable

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    query,
)

from realpolitik.config import get_llm_retries, get_llm_timeout
from realpolitik.exceptions import LLMUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class TextCompleter(Protocol):
    """Narrow boundary to a text-completion service."""

    async def complete(self, prompt: str) -> str: ...


async def generate_text(
    prompt: str,
    system_prompt: str | None = None,
    max_turns: int = 1,
) -> str:
    """Generate text from Claude.

    Args:
        prompt: The user prompt to send to Claude.
        system_prompt: Optional system prompt to set context.
        max_turns: Maximum number of turns (default 1 for single response).

    Returns:
        The generated text response.
    """
    options_kwargs = {"max_turns": max_turns}
    if system_prompt is not None:
        options_kwargs["system_prompt"] = system_prompt
    options = ClaudeAgentOptions(**options_kwargs)

    response_text = ""
    async for message in query(prompt=prompt, options=options):
        if isinstance(message, AssistantMessage):
            for block in message.content:
                if isinstance(block, TextBlock):
                    response_text += block.text
        elif isinstance(message, ResultMessage):
            if message.result:
                response_text = str(message.result)

    return response_text


class ClaudeCompleter:
    """TextCompleter backed by the Claude Agent SDK.

    Example:
        >>> completer = ClaudeCompleter(system_prompt="You are a strategy advisor.")
        >>> reply = await completer.complete("Allocate defense for ...")
    """

    def __init__(self, system_prompt: str | None = None, max_turns: int = 1):
        self.system_prompt = system_prompt
        self.max_turns = max_turns

    async def complete(self, prompt: str) -> str:
        return await generate_text(prompt=prompt, system_prompt=self.system_prompt, max_turns=self.max_turns)


async def complete_with_policy(
    completer: TextCompleter,
    prompt: str,
    timeout: float | None = None,
    retries: int | None = None,
) -> str:
    """Call a completer with a per-attempt timeout and bounded retries.

    Args:
        completer: The text-completion collaborator.
        prompt: Prompt text.
        timeout: Seconds per attempt (default: REALPOLITIK_LLM_TIMEOUT).
        retries: Retries after the first attempt (default: REALPOLITIK_LLM_RETRIES).

    Returns:
        The first successful, non-empty response.

    Raises:
        LLMUnavailableError: When every attempt timed out, failed or came back empty.
    """
    timeout = get_llm_timeout() if timeout is None else timeout
    retries = get_llm_retries() if retries is None else retries
    attempts = retries + 1

    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            text = await asyncio.wait_for(completer.complete(prompt), timeout=timeout)
        except asyncio.TimeoutError as e:
            last_error = e
            logger.warning(f"LLM call timed out after {timeout}s (attempt {attempt}/{attempts})")
            continue
        except Exception as e:
            last_error = e
            logger.warning(f"LLM call failed (attempt {attempt}/{attempts}): {e}")
            continue

        if text and text.strip():
            return text
        last_error = ValueError("empty response")
        logger.warning(f"LLM returned an empty response (attempt {attempt}/{attempts})")

    raise LLMUnavailableError(f"LLM unavailable after {attempts} attempts: {last_error}", attempts=attempts)


_FENCE_START = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence, if present."""
    text = _FENCE_START.sub("", text, count=1)
    return _FENCE_END.sub("", text, count=1).strip()
