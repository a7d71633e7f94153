from __future__ import annotations

import json

import pytest

from starsort.errors import ConfigError, InvalidSubjectError, StarSortError, UpstreamError
from starsort.logging import StarSortLogger


def _lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_logger_emits_json(log_stream) -> None:
    logger = StarSortLogger("pipeline", stream=log_stream)
    logger.info("hello", detail="world")

    payload = _lines(log_stream)[0]
    assert payload["component"] == "pipeline"
    assert payload["level"] == "info"
    assert payload["message"] == "hello"
    assert payload["detail"] == "world"


def test_logger_writes_to_stderr_by_default(capsys) -> None:
    StarSortLogger("x").warning("careful")
    assert json.loads(capsys.readouterr().err)["level"] == "warning"


def test_logger_redacts_sensitive_keys(log_stream) -> None:
    logger = StarSortLogger("x", stream=log_stream)
    logger.info("secret", api_key="sk-test", github_token="ghp", prompt="categorize these")
    payload = _lines(log_stream)[0]
    assert payload["api_key"] == "***"
    assert payload["github_token"] == "***"
    assert payload["prompt"] == "***"


def test_bound_logger_shares_stream(log_stream) -> None:
    StarSortLogger("starsort", stream=log_stream).bind("collector").info("x")
    assert _lines(log_stream)[0]["component"] == "starsort.collector"


def test_stage_records_duration_and_errors(log_stream) -> None:
    logger = StarSortLogger("x", stream=log_stream)
    with logger.stage("collect"):
        pass
    with pytest.raises(RuntimeError):
        with logger.stage("categorize"):
            raise RuntimeError("bad")

    ends = [p for p in _lines(log_stream) if p["message"] == "stage_end"]
    assert [(p["stage"], p["status"]) for p in ends] == [("collect", "ok"), ("categorize", "error")]
    assert all(isinstance(p["duration_ms"], int) for p in ends)


def test_error_status_codes() -> None:
    assert StarSortError().status_code == 500
    assert ConfigError().status_code == 500
    assert InvalidSubjectError("bad").status_code == 400
    assert UpstreamError(404, "missing").status_code == 404
    assert UpstreamError(None, "dropped").status_code == 502
    assert UpstreamError(302, "odd").status_code == 502


@pytest.mark.parametrize(
    "status,retryable",
    [(None, True), (403, False), (429, True), (500, True), (503, True), (404, False), (422, False)],
)
def test_upstream_retryable(status, retryable) -> None:
    assert UpstreamError(status, "x").retryable is retryable


def test_upstream_str_includes_status() -> None:
    assert str(UpstreamError(404, "GitHub user ghost not found")) == "GitHub user ghost not found (status 404)"
    assert str(UpstreamError(None, "timed out")) == "timed out"


def test_upstream_retryable_can_be_set_by_caller() -> None:
    assert UpstreamError(403, "GitHub API rate limit exceeded", retryable=True).retryable is True
    assert UpstreamError(503, "maintenance", retryable=False).retryable is False
