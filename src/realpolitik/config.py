"""Runtime configuration for Realpolitik.

Defaults live in this module and can be overridden via REALPOLITIK_*
environment variables. Values are read on every call so tests can patch the
environment without reloading modules.
"""

import os

# Default configuration (can be overridden via environment variables)
DEFAULT_LLM_ENABLED = True
DEFAULT_LLM_TIMEOUT = 30.0
DEFAULT_LLM_RETRIES = 2
DEFAULT_LLM_CALL_FREQUENCY = 10
DEFAULT_LLM_PLAN_ACTION_CAP = 2


def _get_int(name: str, default: int, minimum: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return max(minimum, int(raw))
    except ValueError:
        return default


def is_llm_enabled() -> bool:
    """Whether LLM-backed decisions are used at all."""
    raw = os.environ.get("REALPOLITIK_LLM_ENABLED")
    if raw is None:
        return DEFAULT_LLM_ENABLED
    return raw.strip().lower() not in ("0", "false", "no", "off")


def get_llm_timeout() -> float:
    """Get the per-call LLM timeout in seconds."""
    raw = os.environ.get("REALPOLITIK_LLM_TIMEOUT")
    if raw is None:
        return DEFAULT_LLM_TIMEOUT
    try:
        return max(1.0, float(raw))
    except ValueError:
        return DEFAULT_LLM_TIMEOUT


def get_llm_retries() -> int:
    """Get the number of retries after a failed LLM call."""
    return _get_int("REALPOLITIK_LLM_RETRIES", DEFAULT_LLM_RETRIES, 0)


def get_llm_call_frequency() -> int:
    """Get the batch planning period in turns."""
    return _get_int("REALPOLITIK_LLM_CALL_FREQUENCY", DEFAULT_LLM_CALL_FREQUENCY, 1)


def get_plan_action_cap() -> int:
    """Get the maximum number of plan-derived actions per country per turn."""
    return _get_int("REALPOLITIK_LLM_PLAN_ACTION_CAP", DEFAULT_LLM_PLAN_ACTION_CAP, 1)


def is_plan_debug() -> bool:
    """Whether verbose LLM plan diagnostics are logged at info level."""
    return os.environ.get("REALPOLITIK_LLM_PLAN_DEBUG") == "1"
