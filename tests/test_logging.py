import logging

from rim_catalog.core.logging import LOGGER_NAME, log_db_query, log_error, setup_logging


def test_setup_is_idempotent():
    first = setup_logging("DEBUG")
    handlers = list(first.handlers)
    second = setup_logging("WARNING")
    assert second is first
    assert second.handlers == handlers
    assert second.level == logging.WARNING
    setup_logging("INFO")


def test_db_line_carries_table_timing_and_context(caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    log_db_query("query", "individual_wheels", 12.5, offset=24)
    assert caplog.messages[-1] == "DB query table=individual_wheels duration_ms=12.50 offset=24"


def test_error_line_attaches_traceback(caplog):
    caplog.set_level(logging.ERROR, logger=LOGGER_NAME)
    log_error("Catalog fetch failed", ValueError("boom"), kind="append")
    record = caplog.records[-1]
    assert record.getMessage() == "ERROR Catalog fetch failed kind=append"
    assert record.exc_info is not None
