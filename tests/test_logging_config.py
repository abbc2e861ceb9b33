import logging

import structlog

from ratcrate_browse.logging_config import configure_logging, silence_console_logging


def test_configure_logging_writes_key_value_events_to_file(tmp_path) -> None:
    root = logging.getLogger()
    previous_handlers, previous_level = list(root.handlers), root.level
    log_file = tmp_path / "logs" / "ratcrate.log"
    try:
        configure_logging(log_file, "debug")
        structlog.get_logger().info("cache_loaded", crates=3)
        for handler in root.handlers:
            handler.flush()
            handler.close()
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
        structlog.reset_defaults()

    content = log_file.read_text(encoding="utf-8")
    assert "level='info'" in content
    assert "event='cache_loaded'" in content
    assert "crates=3" in content


def test_silence_console_logging_keeps_file_handlers(tmp_path) -> None:
    root = logging.getLogger()
    previous_handlers = list(root.handlers)
    file_handler = logging.FileHandler(tmp_path / "ratcrate.log")
    try:
        root.handlers = [logging.StreamHandler(), file_handler]
        silence_console_logging()
        assert root.handlers == [file_handler]

        root.handlers = [logging.StreamHandler()]
        silence_console_logging()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.NullHandler)
    finally:
        file_handler.close()
        root.handlers = previous_handlers
