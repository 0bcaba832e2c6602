"""
Logging setup for recordqa.

Every module logs through `get_logger(__name__)`; loggers hang off a single
"recordqa" root so the level of the whole service is set in one place
(RECORDQA_LOG_LEVEL).
"""

import logging
import sys
from typing import Optional, Union

from recordqa.core.constants import LOG_LEVEL

ROOT_LOGGER_NAME = "recordqa"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "uvicorn.access")

_initialized = False


def setup_logging(
    level: Optional[Union[int, str]] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Send log records to stdout. Runs once; later calls return the root logger
    without touching handlers.
    """
    global _initialized

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _initialized:
        return root

    logging.basicConfig(
        level=level if level is not None else LOG_LEVEL.upper(),
        format=format_string or LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _initialized = True
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the "recordqa" root.

    Module paths already inside the package keep their name
    ("recordqa.store.redis_store"); anything else is nested below the root.
    """
    setup_logging()
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
