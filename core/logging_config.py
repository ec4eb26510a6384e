import logging
import logging.config
import os
from typing import Optional


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None):
    """Configure process logging. The engine itself never calls this on import."""
    config = {
        **LOGGING_CONFIG,
        "handlers": dict(LOGGING_CONFIG["handlers"]),
        "root": {"level": level, "handlers": ["console"]},
    }
    config["handlers"]["console"] = {**config["handlers"]["console"], "level": level}
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(log_dir, "projection.log"),
            "maxBytes": 10_485_760,
            "backupCount": 5,
            "formatter": "standard",
            "level": "DEBUG",
        }
        config["root"] = {"level": "DEBUG", "handlers": ["console", "file"]}
    logging.config.dictConfig(config)
