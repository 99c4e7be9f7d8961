#!/usr/bin/env python3
"""
icons.py - Centralized icon/emoji definitions for giftgen console output

Usage:
    from giftgen.icons import icons
    click.echo(f"{icons.QUIZ} Is this output good enough?")

Or import individual icons:
    from giftgen.icons import RETRY, QUIZ

All unicode characters are defined here once. Never edit unicode
characters in other files - import from this module instead.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Icons:
    """
    Centralized icon definitions.

    Categories:
    - Log levels: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - Prompts: RETRY, QUIZ
    """

    # =========================================================================
    # Log Level Icons
    # =========================================================================
    DEBUG: str = "🔍"        # Magnifier - diagnostic detail
    INFO: str = "ℹ️"         # Information
    WARNING: str = "⚠️"      # Warning triangle
    ERROR: str = "❌"        # Red X - operation failed
    CRITICAL: str = "💥"     # Unrecoverable failure

    # =========================================================================
    # Prompt Icons
    # =========================================================================
    RETRY: str = "🔄"        # Try the request again
    QUIZ: str = "❓"         # Review a generated quiz


# Global singleton instance
icons = Icons()

# Also export individual icons for convenience
DEBUG = icons.DEBUG
INFO = icons.INFO
WARNING = icons.WARNING
ERROR = icons.ERROR
CRITICAL = icons.CRITICAL
RETRY = icons.RETRY
QUIZ = icons.QUIZ
