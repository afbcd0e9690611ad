import logging
import logging.config

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "rich": {
            "format": "%(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
    },
    "handlers": {
        "console": {
            "class": "rich.logging.RichHandler",
            "level": "DEBUG",
            "formatter": "rich",
            "show_time": True,
            "show_level": True,
            "show_path": False,
        }
    },
    "loggers": {
        "src.locate": {"level": "INFO"},
        "httpx": {"level": "WARNING"},
        "httpcore": {"level": "WARNING"},
    },
    "root": {"level": "WARNING", "handlers": ["console"]},
}

_logging_configured = False


def configure_logging(verbose: bool = False) -> None:
    """Install the console handler once; ``verbose`` lowers the engine loggers to DEBUG."""
    global _logging_configured
    if not _logging_configured:
        logging.config.dictConfig(LOGGING_CONFIG)
        _logging_configured = True
    logging.getLogger("src.locate").setLevel(logging.DEBUG if verbose else logging.INFO)
