import logging

from centrum_api.app.core.logging_config import LOG_FORMAT, setup_logging


def test_setup_logging_adds_console_and_file_handlers(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    log_path = tmp_path / "logs" / "api.log"
    try:
        setup_logging("debug", str(log_path))
        added = list(root.handlers)
        level = root.level
        logging.getLogger("centrum_api.test").info("Created listing abc")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    assert level == logging.DEBUG
    assert [type(h) for h in added] == [logging.StreamHandler, logging.FileHandler]
    assert all(h.formatter._fmt == LOG_FORMAT for h in added)
    assert "[INFO] centrum_api.test: Created listing abc" in log_path.read_text(encoding="utf-8")


def test_setup_logging_keeps_existing_configuration():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    existing = logging.NullHandler()
    root.handlers[:] = [existing]
    try:
        setup_logging("DEBUG")
        after = root.handlers[:]
    finally:
        root.handlers[:] = saved_handlers

    assert after == [existing]
