"""
Logging setup and exceptions shared across Issho.
"""

import logging
import sys

from . import config

_configured = False


class IsshoError(Exception):
    """Base exception for Issho-specific errors."""
    pass


class JikanError(IsshoError):
    """Raised when a Jikan API call fails."""
    pass


class NotAuthenticatedError(IsshoError):
    """Raised when an operation needs a signed-in user."""
    pass


def setup_logging(log_file: str | None = None, level: str | None = None) -> None:
    """Configure the root logger with a file handler and a console handler.

    Safe to call on every Streamlit rerun; handlers are only added once.
    """
    global _configured
    if _configured:
        return

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(log_file or config.LOG_FILE, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel((level or config.LOG_LEVEL).upper())
    root.addHandler(file_handler)
    root.addHandler(console_handler)

    # requests/urllib3 are chatty at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    _configured = True
