from loguru import logger

from utils.logger import setup_logger


def test_setup_logger_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "dbterm.log"
    setup_logger(log_file, "debug")
    try:
        logger.debug("connected to sqlite::memory:")
        logger.complete()
    finally:
        logger.remove()
    content = log_file.read_text()
    assert "connected to sqlite::memory:" in content
    assert "MainThread" in content
