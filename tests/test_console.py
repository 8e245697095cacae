import logging

import pytest

from stageplan.console import (
    DEBUG_ENV_VAR,
    debug_user,
    error_user,
    info_user,
    success,
    warn_user,
)

LOGGER = "stageplan.console"


@pytest.mark.parametrize(
    "func, level",
    [
        (info_user, logging.INFO),
        (warn_user, logging.WARNING),
        (error_user, logging.ERROR),
    ],
)
def test_messages_logged_and_printed(func, level, capsys, caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER)
    func("hello there")
    out = capsys.readouterr().out
    assert "hello there" in out
    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [(level, "hello there")]


def test_success_logs_with_prefix(capsys, caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER)
    success("all done")
    assert "all done" in capsys.readouterr().out
    assert [r.getMessage() for r in caplog.records] == ["SUCCESS: all done"]
    assert caplog.records[0].levelno == logging.INFO


def test_debug_user_silent_by_default(monkeypatch, capsys, caplog):
    monkeypatch.delenv(DEBUG_ENV_VAR, raising=False)
    caplog.set_level(logging.DEBUG, logger=LOGGER)
    debug_user("hidden detail")
    assert capsys.readouterr().out == ""
    assert [r.getMessage() for r in caplog.records] == ["hidden detail"]
    assert caplog.records[0].levelno == logging.DEBUG


def test_debug_user_prints_when_enabled(monkeypatch, capsys):
    monkeypatch.setenv(DEBUG_ENV_VAR, "debug")
    debug_user("shown detail")
    assert "DEBUG: shown detail" in capsys.readouterr().out


def test_debug_user_needs_debug_in_setting(monkeypatch, capsys):
    monkeypatch.setenv(DEBUG_ENV_VAR, "info")
    debug_user("still hidden")
    assert capsys.readouterr().out == ""


def test_error_user_goes_to_stdout(capsys):
    error_user("bad thing")
    captured = capsys.readouterr()
    assert "bad thing" in captured.out
    assert captured.err == ""