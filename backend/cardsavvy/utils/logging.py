import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore")


def setup_logging(level: str = "INFO") -> None:
    """Configure application-wide logging to stdout.

    The ``cardsavvy`` loggers follow LOG_LEVEL; noisy libraries stay at WARNING
    unless LOG_LEVEL is DEBUG.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("cardsavvy").setLevel(numeric_level)

    quiet_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
