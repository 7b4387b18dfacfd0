"""Logging setup for host applications embedding the planner core."""

import logging
from typing import Optional

from config.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once.

    Args:
        level: Level name; defaults to the NOMAD_LOG_LEVEL setting
    """
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    logging.getLogger(__name__).debug(f"Logging configured at {level_name}")
