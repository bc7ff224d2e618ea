import logging

from watchtracker.core.config import settings

# Parent of every module logger in the package (getLogger(__name__) -> watchtracker.*)
logger = logging.getLogger("watchtracker")
logger.setLevel(settings.log_level.upper())

if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter("[%(levelname)s] %(asctime)s - %(name)s - %(message)s", "%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(console_handler)
