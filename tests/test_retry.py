from __future__ import annotations

import pytest
import requests

from issuemirror import retry

# Constants for test expectations
FIRST_SUCCESS_ATTEMPT = 2  # transient once then success
EXPECTED_RETRY_COUNT = 2  # total attempts when one retry occurs


class _Response:
    def __init__(self, status_code: int):
        self.status_code = status_code


def test_is_transient_statuses():
    assert retry.is_transient(_Response(502))  # type: ignore[arg-type]
    assert retry.is_transient(_Response(503))  # type: ignore[arg-type]
    assert retry.is_transient(_Response(504))  # type: ignore[arg-type]
    assert not retry.is_transient(_Response(500))  # type: ignore[arg-type]
    assert not retry.is_transient(_Response(403))  # type: ignore[arg-type]


def test_run_with_retries_transient_then_success():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        if len(attempts) < FIRST_SUCCESS_ATTEMPT:
            raise requests.ConnectionError("connection reset")
        return _Response(200)

    cfg = retry.RetryConfig(attempts=3, base_sleep=0.0)
    result = retry.run_with_retries(fn, cfg=cfg)
    assert result.status_code == 200
    assert len(attempts) == EXPECTED_RETRY_COUNT


def test_run_with_retries_non_transient_status_returned():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        return _Response(404)

    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=4, base_sleep=0.0))
    assert result.status_code == 404
    assert len(attempts) == 1


def test_run_with_retries_other_exceptions_not_retried():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        raise requests.HTTPError("bad")

    with pytest.raises(requests.HTTPError):
        retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=4, base_sleep=0.0))
    assert len(attempts) == 1


def test_run_with_retries_transient_exhausts():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        raise requests.Timeout("read timed out")

    cfg = retry.RetryConfig(attempts=3, base_sleep=0.0)
    with pytest.raises(requests.Timeout):
        retry.run_with_retries(fn, cfg=cfg)
    assert len(attempts) == cfg.attempts


def test_run_with_retries_returns_last_gateway_error():
    attempts: list[int] = []

    def fn():
        attempts.append(1)
        return _Response(503)

    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=2, base_sleep=0.0))
    assert result.status_code == 503
    assert len(attempts) == 2


def test_retry_config_reads_environment(monkeypatch):
    monkeypatch.setenv("ISSUEMIRROR_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("ISSUEMIRROR_RETRY_BASE", "1.5")
    cfg = retry.RetryConfig()
    assert cfg.attempts == 5
    assert cfg.base_sleep == 1.5


def test_sleep_capped_by_environment(monkeypatch):
    monkeypatch.setenv("ISSUEMIRROR_RETRY_MAX_SLEEP", "0.1")
    cfg = retry.RetryConfig(attempts=3, base_sleep=10.0)
    assert retry._compute_sleep(3, cfg) == 0.1


def test_sleep_grows_exponentially(monkeypatch):
    monkeypatch.delenv("ISSUEMIRROR_RETRY_MAX_SLEEP")
    cfg = retry.RetryConfig(attempts=3, base_sleep=1.0)
    assert 1.0 <= retry._compute_sleep(1, cfg) <= 1.25
    assert 4.0 <= retry._compute_sleep(3, cfg) <= 4.25
