from loguru import logger

from modelauth.config.schema import Config
from modelauth.core.logger import configure_logger


def test_file_sink_receives_messages(tmp_path):
    config = Config()
    log_file = tmp_path / "modelauth.log"
    config.logging.file_enabled = True
    config.logging.file_path = str(log_file)

    configure_logger(config)
    logger.info("Test message")
    logger.complete()
    logger.remove()

    assert log_file.exists()
    assert "Test message" in log_file.read_text()


def test_disabled_logging_adds_no_sinks(monkeypatch):
    config = Config()
    config.logging.enabled = False
    calls = []

    monkeypatch.setattr("modelauth.core.logger.logger.add", lambda *a, **kw: calls.append(a))
    configure_logger(config)

    assert calls == []


def test_file_sink_is_opt_in(monkeypatch):
    calls = []
    monkeypatch.setattr("modelauth.core.logger.logger.remove", lambda *a, **kw: None)
    monkeypatch.setattr("modelauth.core.logger.logger.add", lambda sink, **kw: calls.append(sink))

    configure_logger(Config())

    assert len(calls) == 1
