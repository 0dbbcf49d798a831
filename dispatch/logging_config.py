import logging
import logging.config
import os

from dotenv import load_dotenv

load_dotenv()
LOG_LEVEL = os.getenv("DISPATCH_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "default",
        },
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"]
    },
    "loggers": {
        # Dispatch core packages
        "dispatch": {"level": LOG_LEVEL, "handlers": ["console"], "propagate": False},
        "jobs": {"level": LOG_LEVEL, "handlers": ["console"], "propagate": False},
        "notifications": {"level": LOG_LEVEL, "handlers": ["console"], "propagate": False},
    }
}


def setup_logging():
    logging.config.dictConfig(LOGGING)
