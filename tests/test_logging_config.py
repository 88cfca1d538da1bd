import logging

from app.logging_config import configure_logging, get_request_id, reset_request_id, set_request_id


def test_request_id_context_round_trip() -> None:
    assert get_request_id() == "-"
    token = set_request_id("req-42")
    try:
        assert get_request_id() == "req-42"
    finally:
        reset_request_id(token)
    assert get_request_id() == "-"


def test_configured_handler_stamps_request_id() -> None:
    configure_logging("debug")
    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord("birthdays", logging.INFO, __file__, 1, "hello", None, None)

    token = set_request_id("abc")
    try:
        assert handler.filter(record)
    finally:
        reset_request_id(token)

    assert record.request_id == "abc"
    assert logging.getLogger().level == logging.DEBUG
    configure_logging()
