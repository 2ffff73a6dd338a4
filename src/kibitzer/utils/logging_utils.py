import logging
from typing import Iterable, Union

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[int, str] = "INFO",
    quiet_loggers: Iterable[str] = ("httpx", "httpcore"),
) -> None:
    """Configure root logging and silence chatty HTTP client loggers."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = level

    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    # httpx logs every request line at INFO
    for noisy in quiet_loggers:
        logging.getLogger(noisy).setLevel(logging.WARNING)
