#!/usr/bin/env python3
"""
security_utils.py (giftgen)

Keeps the Gemini API key out of logs and error messages, and warns about
config files that expose it to other users.
"""

from __future__ import annotations

import os
import stat
import warnings
from pathlib import Path
from typing import Optional


# ============================================================================
# API Key Masking for Logs
# ============================================================================

def mask_sensitive(value: str, visible_chars: int = 4) -> str:
    """
    Mask a sensitive value for safe logging.

    Args:
        value: The sensitive string to mask
        visible_chars: Number of characters to show at start and end

    Returns:
        Masked string like "abc1****xyz9"
    """
    if not value:
        return "****"

    if len(value) <= visible_chars * 2:
        return "****"

    return f"{value[:visible_chars]}****{value[-visible_chars:]}"


def redact_api_key(text: str, api_key: Optional[str]) -> str:
    """
    Replace every occurrence of api_key in text with its masked form.

    Transport exceptions embed the request URL, and the key travels as a
    query parameter, so any text derived from them passes through here.
    """
    if not text or not api_key:
        return text
    return text.replace(api_key, mask_sensitive(api_key))


# ============================================================================
# File Permission Checks
# ============================================================================

def check_file_permissions(file_path: Path) -> bool:
    """
    Check that a file holding a secret is not readable by group/others.

    Warns (UserWarning) when permissions are too open.

    Returns:
        True if permissions are secure, False otherwise
    """
    try:
        mode = os.stat(file_path).st_mode
    except OSError:
        # Can't check permissions (e.g., Windows)
        return True

    is_secure = not (mode & (stat.S_IRWXG | stat.S_IRWXO))
    if not is_secure:
        warnings.warn(
            f"Config file with api_key has insecure permissions: {file_path}\n"
            f"Other users may be able to read your API key.\n"
            f"Fix with: chmod 600 {file_path}",
            UserWarning,
        )
    return is_secure
