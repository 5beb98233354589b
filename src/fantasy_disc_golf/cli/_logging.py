import logging
import sys

_NOISY_LOGGERS = ("httpx", "httpcore", "werkzeug", "discord")
_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr so command output on stdout stays clean.

    ``verbose`` shows DEBUG from every logger, third-party ones included;
    ``quiet`` keeps only warnings and errors.
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if verbose else logging.WARNING)
