"""Typed runtime settings with environment overrides.

Every field has a working default; ``settings_from_env`` only replaces the
fields whose variable is set to a valid value.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from ..adapters.page_text_rest import DEFAULT_TARGET_URL
from ..utils.logging import env_truthy

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettingsConfig:
    """Settings for one application run."""

    target_url: str = DEFAULT_TARGET_URL
    request_timeout_s: float = 10
    worker_count: int = 4
    ui_pump_interval_ms: int = 15
    blocking_wait_timeout_s: Optional[float] = None
    capture_completion: bool = True
    check_ui_affinity: bool = True
    request_retries: int = 0
    offline_text: Optional[str] = None
    offline_delay_s: float = 1.0


def _coerce_positive_float(name: str, value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        _log.warning("Ignoring %s=%r: not a number", name, value)
        return None
    if number <= 0:
        _log.warning("Ignoring %s=%r: must be positive", name, value)
        return None
    return number


def _coerce_non_negative_float(name: str, value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        _log.warning("Ignoring %s=%r: not a number", name, value)
        return None
    if number < 0:
        _log.warning("Ignoring %s=%r: must not be negative", name, value)
        return None
    return number


def _coerce_positive_int(name: str, value: str) -> Optional[int]:
    number = _coerce_positive_float(name, value)
    if number is None:
        return None
    return max(1, int(number))


def settings_from_env(
    environ: Optional[Mapping[str, str]] = None,
    *,
    base: Optional[SettingsConfig] = None,
) -> SettingsConfig:
    """Return ``base`` (or defaults) with valid ``CROSSTHREAD_*`` overrides applied."""
    env = os.environ if environ is None else environ
    config = base or SettingsConfig()
    updates: Dict[str, Any] = {}

    url = (env.get("CROSSTHREAD_TARGET_URL") or "").strip()
    if url:
        updates["target_url"] = url

    raw = env.get("CROSSTHREAD_REQUEST_TIMEOUT_S")
    if raw:
        timeout = _coerce_positive_float("CROSSTHREAD_REQUEST_TIMEOUT_S", raw)
        if timeout is not None:
            updates["request_timeout_s"] = timeout

    raw = env.get("CROSSTHREAD_WORKERS")
    if raw:
        workers = _coerce_positive_int("CROSSTHREAD_WORKERS", raw)
        if workers is not None:
            updates["worker_count"] = workers

    raw = env.get("CROSSTHREAD_PUMP_INTERVAL_MS")
    if raw:
        interval = _coerce_positive_int("CROSSTHREAD_PUMP_INTERVAL_MS", raw)
        if interval is not None:
            updates["ui_pump_interval_ms"] = interval

    raw = env.get("CROSSTHREAD_BLOCKING_TIMEOUT_S")
    if raw:
        wait = _coerce_positive_float("CROSSTHREAD_BLOCKING_TIMEOUT_S", raw)
        if wait is not None:
            updates["blocking_wait_timeout_s"] = wait

    raw = env.get("CROSSTHREAD_CAPTURE_COMPLETION")
    if raw is not None and raw.strip():
        updates["capture_completion"] = env_truthy(raw)

    raw = env.get("CROSSTHREAD_CHECK_AFFINITY")
    if raw is not None and raw.strip():
        updates["check_ui_affinity"] = env_truthy(raw)

    raw = env.get("CROSSTHREAD_REQUEST_RETRIES")
    if raw:
        retries = _coerce_non_negative_float("CROSSTHREAD_REQUEST_RETRIES", raw)
        if retries is not None:
            updates["request_retries"] = int(retries)

    # Any non-empty text switches the slow operation to the offline source.
    text = env.get("CROSSTHREAD_OFFLINE_TEXT")
    if text:
        updates["offline_text"] = text

    raw = env.get("CROSSTHREAD_OFFLINE_DELAY_S")
    if raw:
        delay = _coerce_non_negative_float("CROSSTHREAD_OFFLINE_DELAY_S", raw)
        if delay is not None:
            updates["offline_delay_s"] = delay

    return replace(config, **updates)


__all__ = ["SettingsConfig", "settings_from_env"]
