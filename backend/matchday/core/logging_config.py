"""Logging configuration for the API process and the maintenance scripts."""

import logging


def setup_logging(level: str = "INFO") -> None:
    """Attach a single console handler to the root logger.

    Existing handlers are cleared first so repeated calls (app reloads, tests)
    do not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-5s [%(name)s] %(message)s")
    )
    root.addHandler(console)

    # SQL echo is configured on the engine, keep the logger quiet otherwise.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
