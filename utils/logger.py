import sys
from pathlib import Path
from typing import Union
from loguru import logger

# Query jobs run on worker threads, so every file line names its thread
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {thread.name:<22} | "
    "{module}:{function}:{line} | {message}"
)


def setup_logger(
    log_file: Union[str, Path] = "logs/dbterm.log",
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "7 days",
):
    logger.remove()

    log_path = Path(log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_path),
        rotation=rotation,
        retention=retention,
        compression="zip",
        level=level.upper(),
        format=FILE_FORMAT,
        backtrace=True,
        diagnose=False,
        enqueue=True,
    )

    # The TUI owns the terminal; only fatal problems go to stderr.
    logger.add(
        sys.stderr,
        level="CRITICAL",
        format="{time:HH:mm:ss} | {level} | {message}",
    )

    logger.info(f"DBTerm logger initialized at {log_path} (level {level.upper()})")
    return logger
