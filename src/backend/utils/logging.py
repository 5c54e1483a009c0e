import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
import logfire
from src.backend.utils.settings import SETTINGS

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_dir: str = None) -> None:
    """Configure root logging: console, rotating file and Logfire.

    Logfire only ships records when LOGFIRE_TOKEN is present.
    """
    logfire.configure(send_to_logfire='if-token-present')

    log_path = Path(log_dir or SETTINGS.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    file_handler = RotatingFileHandler(
        log_path / "flight_desk.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console_handler,
        file_handler,
        logfire.LogfireLoggingHandler(),
    ]
    # pymongo heartbeats are noisy at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
