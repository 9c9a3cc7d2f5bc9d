import logging

from chatwarden.util.logger import (
    ColorFormatter,
    quiet_third_party_loggers,
    session_log_path,
    get_logger,
    handle_exception,
    resolve_log_level,
    setup_logger,
    should_use_color,
)


class DummyStream:
    def __init__(self):
        self.written = []

    def write(self, msg):
        self.written.append(msg)

    def isatty(self):
        return True


def test_get_logger_returns_logger():
    logger = get_logger("test_logger")
    assert isinstance(logger, logging.Logger)
    assert any(isinstance(h, logging.Handler) for h in logger.handlers)
    assert logger.propagate is False


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_logger_idem")
    logger2 = setup_logger("test_logger_idem")
    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_color_formatter_applies_color():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.ERROR, "", 0, "error occurred", None, None)
    formatted = formatter.format(record)
    assert "\033[31m" in formatted and "error occurred" in formatted


def test_should_use_color_true(monkeypatch):
    monkeypatch.setattr("sys.stderr", DummyStream())
    assert should_use_color() is True


def test_resolve_log_level(monkeypatch):
    monkeypatch.setenv("CHATWARDEN_LOG_LEVEL", "debug")
    assert resolve_log_level() == logging.DEBUG

    monkeypatch.setenv("CHATWARDEN_LOG_LEVEL", "nonsense")
    assert resolve_log_level() == logging.INFO


def test_session_log_path_is_stable():
    path = session_log_path()
    assert path == session_log_path()
    assert path.parent.exists()


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass

    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)
    assert any("Uncaught exception" in r.message for r in caplog.records)


def test_quiet_third_party_loggers():
    quiet_third_party_loggers(["chatwarden_test_library"])
    library_logger = logging.getLogger("chatwarden_test_library")
    assert library_logger.level == logging.ERROR
    assert library_logger.propagate is False
