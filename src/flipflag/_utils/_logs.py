import logging
import sys

LOGGER_NAME = "flipflag"

logger = logging.getLogger(LOGGER_NAME)


def setup_logging(debug: bool = False) -> None:
    """Configure the ``flipflag`` logger.

    Installs a single stream handler on the package logger, leaving the root
    logger alone so host applications keep control of their own output.
    Calling it again only adjusts the level.

    Args:
        debug: Log requests and other internals at DEBUG level.
    """
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    if not any(getattr(h, "_flipflag", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        handler._flipflag = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
