# backend/app/core/logging.py
import logging
import sys
from typing import Optional

from backend.app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    level_name = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(stream=sys.stdout, format=LOG_FORMAT)
    root.setLevel(getattr(logging, level_name, logging.INFO))
