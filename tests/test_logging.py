from __future__ import annotations

import logging

from caseload_trends.logging import PACKAGE_LOGGER, configure_logging


def test_configure_logging_sets_package_level() -> None:
    logger = configure_logging("warning")

    assert logger.name == PACKAGE_LOGGER
    assert logger.level == logging.WARNING
    assert logging.getLogger("caseload_trends.features.reconciliation").getEffectiveLevel() == (
        logging.WARNING
    )
    configure_logging("INFO")
