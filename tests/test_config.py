"""Tests for config.py"""

import logging

import pytest

from skillmap.config import EngineConfig, configure_logging, load_config


def test_defaults(monkeypatch):
    for name in ["ASSESSMENT_MIN_QUESTIONS", "ASSESSMENT_MAX_QUESTIONS", "ASSESSMENT_MAX_TIME_SECONDS",
                 "QUESTION_CACHE_TTL", "REDIS_HOST", "REDIS_PORT", "LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)

    config = load_config()
    assert config.MIN_QUESTIONS == 10
    assert config.MAX_QUESTIONS == 15
    assert config.MAX_TIME_SECONDS == 2700
    assert config.QUESTION_CACHE_TTL == 300
    assert config.REDIS_HOST == "localhost"
    assert config.REDIS_PORT == 6379


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ASSESSMENT_MIN_QUESTIONS", "5")
    monkeypatch.setenv("ASSESSMENT_COVERAGE_THRESHOLD", "0.75")
    monkeypatch.setenv("REDIS_PORT", "6380")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = load_config()
    assert config.MIN_QUESTIONS == 5
    assert config.COVERAGE_THRESHOLD == 0.75
    assert config.REDIS_PORT == 6380
    assert config.LOG_LEVEL == "DEBUG"


def test_config_is_frozen():
    config = EngineConfig()
    with pytest.raises(AttributeError):
        config.MIN_QUESTIONS = 3


def test_configure_logging_accepts_unknown_level():
    configure_logging("not-a-level")
    assert logging.getLogger("skillmap").getEffectiveLevel() <= logging.WARNING
