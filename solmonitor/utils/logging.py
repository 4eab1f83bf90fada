from loguru import logger
import sys
import os

DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE_NAME = "monitor.log"
CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", log_dir: str = None, to_file: bool = True):
    """
    Route loguru output for the monitor.

    Console always gets a compact format. The long-running monitor also
    writes logs/monitor.log; one-shot commands (--once, --snapshot-test)
    pass to_file=False and log to stderr so their printed result stays
    alone on stdout.
    """
    logger.remove()

    console = sys.stdout if to_file else sys.stderr
    logger.add(console, level=level, format=CONSOLE_FORMAT, backtrace=False, diagnose=False)

    if not to_file:
        return logger

    log_dir = log_dir or DEFAULT_LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, LOG_FILE_NAME)

    # enqueue: polling and dashboard share one loop, file writes go to a worker
    logger.add(
        log_file,
        level=level,
        rotation="10 MB",
        retention=7,
        compression="gz",
        backtrace=True,
        diagnose=False,
        enqueue=True,
    )

    logger.info(f"Logging to console and {log_file} (level={level})")
    return logger
