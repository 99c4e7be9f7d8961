"""
log_utils.py - Logging setup with icons

All progress output goes through the standard logging module to stderr,
leaving stdout for the generated GIFT text.
"""

import logging

from giftgen.icons import icons


# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"

LEVEL_ICONS = {
    logging.DEBUG: icons.DEBUG,
    logging.INFO: icons.INFO,
    logging.WARNING: icons.WARNING,
    logging.ERROR: icons.ERROR,
    logging.CRITICAL: icons.CRITICAL,
}


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, icons.INFO)
        base = super().format(record)
        return f"{icon} {base}"


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    """
    Configure the root logger once per process.

    quiet wins over verbose: --quiet keeps warnings and errors only.
    """
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    if quiet:
        level = logging.WARNING

    handler = logging.StreamHandler()
    handler.setFormatter(IconLogFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request URL at INFO, including the key query parameter
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
