from __future__ import annotations

import logging

PACKAGE_LOGGER = "caseload_trends"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Send package logs (row rejections, ambiguous matches) to stderr."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    return logger
