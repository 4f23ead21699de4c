"""Process-wide logging setup shared by the API and CLI entrypoints."""

import logging
import time

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class UTCFormatter(logging.Formatter):
    """Formatter whose asctime is UTC, matching the trailing Z in LOG_DATE_FORMAT."""

    converter = time.gmtime


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    handler = logging.StreamHandler()
    handler.setFormatter(UTCFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logging.basicConfig(level=level, handlers=[handler])
    logging.getLogger().setLevel(level)
