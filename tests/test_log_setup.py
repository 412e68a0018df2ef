import logging

from domour.log.setup import LOG_FORMAT, MainFormatter


def _record(name: str, message: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, None, None)


def test_helper_output_is_passed_through_raw() -> None:
    formatter = MainFormatter(LOG_FORMAT)

    line = "2026/01/01 12:00:00 [info] inbound socks listening on 127.0.0.1:1080"
    assert formatter.format(_record("proc.vlink", line)) == line


def test_control_plane_records_are_formatted() -> None:
    formatted = MainFormatter(LOG_FORMAT).format(_record("domour.local.supervisor", "vlink started"))

    assert "[domour.local.supervisor] - vlink started" in formatted
    assert "INFO" in formatted
