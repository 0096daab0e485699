"""Centralized retry / backoff helpers for the HTTP transports.

``run_with_retries`` wraps a thunk performing one HTTP request. Dropped
connections, timeouts and gateway errors (502/503/504) are retried with
exponential backoff and jitter; every other outcome is returned or raised
immediately. Rate-limit responses are not special-cased.

Environment overrides:
  ISSUEMIRROR_RETRY_ATTEMPTS (default 3)
  ISSUEMIRROR_RETRY_BASE (seconds base, default 0.5)
  ISSUEMIRROR_RETRY_MAX_SLEEP (cap per sleep, unset = no cap)
"""

from __future__ import annotations

import os
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import requests

from .logging import get_logger

TRANSIENT_STATUS = frozenset({502, 503, 504})

_JITTER = random.SystemRandom()


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("ISSUEMIRROR_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("ISSUEMIRROR_RETRY_BASE", 0.5))


def is_transient(response: requests.Response) -> bool:
    return response.status_code in TRANSIENT_STATUS


def _compute_sleep(attempt: int, cfg: RetryConfig) -> float:
    sleep_for = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    max_cap_env = os.environ.get("ISSUEMIRROR_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:  # pragma: no cover
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def _backoff(attempt: int, attempts: int, cfg: RetryConfig, reason: str) -> None:
    sleep_for = _compute_sleep(attempt, cfg)
    get_logger().debug(
        f"[retry] transient error ({reason}), attempt {attempt}/{attempts}, "
        f"sleeping {sleep_for:.2f}s"
    )
    time.sleep(sleep_for)


def run_with_retries(
    fn: Callable[[], requests.Response], *, cfg: RetryConfig | None = None
) -> requests.Response:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            response = fn()
        except (requests.ConnectionError, requests.Timeout) as exc:
            if attempt >= attempts:
                raise
            _backoff(attempt, attempts, cfg, exc.__class__.__name__)
            continue
        if is_transient(response) and attempt < attempts:
            _backoff(attempt, attempts, cfg, f"HTTP {response.status_code}")
            continue
        return response
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "TRANSIENT_STATUS", "is_transient", "run_with_retries"]
