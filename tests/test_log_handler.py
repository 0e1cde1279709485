import io
import logging
import sys

from yksoft.common.log_handler import _build_logger, log, set_verbose


def test_logger_is_built_once():
    assert _build_logger() is log
    assert len(log.handlers) == 1


def test_records_go_to_stderr_not_stdout(monkeypatch):
    err, out = io.StringIO(), io.StringIO()
    monkeypatch.setattr(sys, "stderr", err)
    monkeypatch.setattr(sys, "stdout", out)
    monkeypatch.setattr(log, "handlers", [])

    logger = _build_logger()
    logger.error("token store unavailable")

    assert "[ERROR] yksoft token store unavailable" in err.getvalue()
    assert out.getvalue() == ""


def test_set_verbose():
    level = log.level
    log.setLevel(logging.WARNING)
    try:
        set_verbose(False)
        assert log.level == logging.WARNING
        set_verbose(True)
        assert log.level == logging.DEBUG
    finally:
        log.setLevel(level)
