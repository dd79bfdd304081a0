import logging
from logging.config import dictConfig

from blogapi.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure the root logger once at application startup.

    Every module obtains its own logger via ``logging.getLogger(__name__)``
    and inherits the handler and level installed here.  SQLAlchemy engine
    logging is left to ``create_async_engine(echo=...)``.
    """
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": (level or settings.LOG_LEVEL).upper(),
            },
            "loggers": {
                # uvicorn installs its own handlers; keep its access log quiet
                # unless we are debugging.
                "uvicorn.access": {
                    "level": "INFO" if settings.DEBUG else "WARNING",
                },
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured (env=%s)", settings.APP_ENV)
