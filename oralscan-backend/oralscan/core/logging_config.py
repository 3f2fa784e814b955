# oralscan/core/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level="INFO"):
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # werkzeug terlalu cerewet di level INFO
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))
