import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_file: str | None, level: str = "DEBUG", verbose: bool = False) -> logging.Logger:
    """Attach the durable file sink and a stderr handler to the package logger.

    The file receives every command and stage transition. Stderr only shows
    warnings unless *verbose* is set; operator-facing progress is printed by
    the console, not the log.
    """
    root = logging.getLogger("stackboot")
    root.setLevel(level.upper())
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    stream = logging.StreamHandler()
    stream.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stream.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    root.addHandler(stream)

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(path, when="midnight", backupCount=7)
        except OSError as e:
            root.warning("Cannot open log file %s (%s); logging to stderr only", path, e)
        else:
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(file_handler)

    root.propagate = False

    # Keep HTTP client chatter out of the setup log
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return root
