import logging
import logging.handlers
import sys
from pathlib import Path

from teamdeck.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    resolved = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(resolved)

    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    target = log_file or settings.LOG_FILE
    if not target:
        return

    log_path = Path(target)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(resolved)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
