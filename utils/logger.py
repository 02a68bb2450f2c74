"""
Logging setup.
- get_logger() configures the root handler once (format and LOG_LEVEL from env)
- RedactingFilter masks credentials passed as dict arguments to log calls
"""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

SENSITIVE_KEYS = ("password", "token", "refresh_token", "access_token", "authorization")
REDACTED = "[REDACTED]"


def _redact(value):
    if isinstance(value, dict):
        return {
            k: (REDACTED if str(k).lower() in SENSITIVE_KEYS and v else _redact(v))
            for k, v in value.items()
        }
    return value


class RedactingFilter(logging.Filter):
    """Replace sensitive dict values in record args before formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = _redact(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(_redact(a) for a in record.args)
        if isinstance(record.msg, dict):
            record.msg = _redact(record.msg)
        return True


def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    logger = logging.getLogger(name)
    if not any(isinstance(f, RedactingFilter) for f in logger.filters):
        logger.addFilter(RedactingFilter())
    return logger


logger = get_logger("dine-rank")
