import logging

import pytest

from hall_services.logging_setup import resolve_level


@pytest.mark.parametrize(
    "level, expected",
    [
        (logging.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        (" error ", logging.ERROR),
        ("15", 15),
    ],
)
def test_explicit_level(level, expected):
    assert resolve_level(level) == expected


def test_env_level_is_used_when_no_argument(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HALL_SERVICES_LOG_LEVEL", "DEBUG")

    assert resolve_level() == logging.DEBUG


def test_unknown_names_fall_back(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HALL_SERVICES_LOG_LEVEL", "chatty")
    assert resolve_level("verbose") == logging.INFO

    monkeypatch.setenv("HALL_SERVICES_LOG_LEVEL", "error")
    assert resolve_level("verbose") == logging.ERROR
