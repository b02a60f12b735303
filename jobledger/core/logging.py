import logging
import sys

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LOGGING_INITIALIZED = False


def setup_logging(level: str = "INFO") -> None:
    """Send application and server logs through a single stdout handler."""

    global _LOGGING_INITIALIZED

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger("jobledger")
    root.setLevel(numeric_level)
    if _LOGGING_INITIALIZED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(handler)
    root.propagate = False

    for logger_name in ("uvicorn", "uvicorn.error", "fastapi"):
        log = logging.getLogger(logger_name)
        log.handlers = [handler]
        log.propagate = False

    _LOGGING_INITIALIZED = True
