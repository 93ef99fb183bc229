# logger.py
import logging

from copyscan.config import LOG_FILE, LOG_LEVEL, LOG_PREVIEW_CHARS


def setup_logging() -> logging.Logger:
    handlers = [logging.StreamHandler()]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=handlers,
    )
    return logging.getLogger("copyscan")


def preview(value, limit: int = LOG_PREVIEW_CHARS) -> str:
    """Single-line, length-capped rendering of untrusted text for log records."""
    text = " ".join(str(value).split())
    return text[:limit]
