# Overview: Console logging setup for the Flask app and the inventory services.

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "stockledger-console"


def configure_logging(app) -> logging.Logger:
    """
    Attach one console handler to the "stockledger" logger tree.

    Level comes from LOG_LEVEL. Calling this again (e.g. one app per test)
    replaces the handler instead of stacking duplicates.
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    package_logger = logging.getLogger("stockledger")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    package_logger.addHandler(console_handler)

    app.logger.setLevel(level)

    # Only warnings and errors from SQL
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    return package_logger
