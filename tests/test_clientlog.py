import inspect

import pytest

from cvmattest import clientlog
from cvmattest.clientlog import (
    LOG_TAG,
    AttestationLogger,
    LogLevel,
    emit,
    get_logger,
    set_logger,
)


class RecordingLogger(AttestationLogger):
    def __init__(self):
        self.records = []

    def log(self, tag, level, function, line, message):
        self.records.append((tag, level, function, line, message))


@pytest.fixture(autouse=True)
def no_logger(monkeypatch):
    monkeypatch.setattr(clientlog, "_logger", None)


def test_get_logger_without_logger():
    assert get_logger() is None


def test_set_logger_installs_logger():
    logger = RecordingLogger()
    set_logger(logger)
    assert get_logger() is logger


def test_set_logger_keeps_first_logger():
    first = RecordingLogger()
    second = RecordingLogger()
    set_logger(first)
    set_logger(second)
    assert get_logger() is first


def test_emit_records_caller_origin():
    logger = RecordingLogger()
    set_logger(logger)
    line = inspect.currentframe().f_lineno + 1
    emit(LogLevel.ERROR, "Empty response received")
    assert logger.records == [
        (LOG_TAG, LogLevel.ERROR, "test_emit_records_caller_origin", line, "Empty response received")
    ]


def test_emit_accepts_level_string():
    logger = RecordingLogger()
    set_logger(logger)
    emit("Info", "hello")
    assert logger.records[0][1] is LogLevel.INFO
    assert logger.records[0][4] == "hello"


def test_emit_without_logger_does_nothing():
    emit(LogLevel.DEBUG, "dropped")
    assert get_logger() is None


def test_emit_rejects_unknown_level():
    set_logger(RecordingLogger())
    with pytest.raises(ValueError):
        emit("Verbose", "nope")


def test_log_level_strings_match_source():
    levels = [LogLevel(name) for name in ("Error", "Warn", "Info", "Debug")]
    assert levels == [LogLevel.ERROR, LogLevel.WARN, LogLevel.INFO, LogLevel.DEBUG]


def test_logger_base_is_abstract():
    with pytest.raises(TypeError):
        AttestationLogger()