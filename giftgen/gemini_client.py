#!/usr/bin/env python3
"""
gemini_client.py - Gemini REST endpoints and the single-request transport

The batch uploads and deletions live in batch_transfer.py; this module holds
what they share (endpoint URLs, MIME types) and the one blocking call the
generation controller makes.

SECURITY: The API key is sent as the "key" query parameter and is redacted
from every message this module logs or raises.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests

from giftgen.errors import TransportError
from giftgen.security_utils import redact_api_key


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
API_VERSION = "v1beta"

GEMINI_MODEL_FLASH = "gemini-2.5-flash"
GEMINI_MODEL_PRO = "gemini-2.5-pro"
MODEL_ALIASES = {
    "flash": GEMINI_MODEL_FLASH,
    "pro": GEMINI_MODEL_PRO,
}

# (connect, read) - generation with several attached files is slow
GENERATION_TIMEOUT = (10, 300)

DEFAULT_MIME_TYPE = "application/octet-stream"
MIME_TYPES = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "md": "text/markdown",
    "markdown": "text/markdown",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc": "application/msword",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "ppt": "application/vnd.ms-powerpoint",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "xls": "application/vnd.ms-excel",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "svg": "image/svg+xml",
    "html": "text/html",
    "htm": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "csv": "text/csv",
    "rtf": "application/rtf",
}


# =============================================================================
# Endpoints
# =============================================================================

def resolve_model(name: Optional[str]) -> str:
    """Map a short alias ("flash", "pro") to a model id; pass others through."""
    if not name:
        return GEMINI_MODEL_FLASH
    return MODEL_ALIASES.get(name.lower(), name)


def upload_url(base_url: str = DEFAULT_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/upload/{API_VERSION}/files"


def file_url(file_id: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """URL of an uploaded file; used both to delete it and to reference it."""
    return f"{base_url.rstrip('/')}/{API_VERSION}/files/{file_id}"


def generate_url(model: str, base_url: str = DEFAULT_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{API_VERSION}/models/{model}:generateContent"


def get_mime_type(filename: str) -> str:
    """MIME type from the file extension, case-insensitive."""
    suffix = Path(filename).suffix
    if not suffix:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(suffix[1:].lower(), DEFAULT_MIME_TYPE)


def display_name(path: str) -> str:
    """Final path component, accepting either separator."""
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def handle_from_resource_name(name: str) -> str:
    """"files/abc123" -> "abc123" """
    return name.rsplit("/", 1)[-1]


# =============================================================================
# Generation request
# =============================================================================

def build_generation_payload(
    file_ids: Sequence[str],
    query: str,
    schema: Dict[str, Any],
    base_url: str = DEFAULT_BASE_URL,
) -> Dict[str, Any]:
    """
    Request body for generateContent.

    One content entry whose parts are every uploaded file followed by the
    instruction text; the response is constrained to JSON matching schema.
    """
    parts: List[Dict[str, Any]] = [
        {"file_data": {"file_uri": file_url(file_id, base_url)}}
        for file_id in file_ids
    ]
    parts.append({"text": query})
    return {
        "contents": [{"parts": parts}],
        "generationConfig": {
            "response_mime_type": "application/json",
            "response_schema": schema,
        },
    }


class GeminiClient:
    """
    Blocking transport for the generation endpoint.

    Returns the raw response body whatever the HTTP status: error envelopes
    arrive with 4xx/5xx statuses and are classified by the caller.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout=GENERATION_TIMEOUT,
    ):
        self.api_key = api_key
        self.model = resolve_model(model)
        self.base_url = base_url
        self.timeout = timeout

    def generate_content(self, payload: Dict[str, Any]) -> str:
        url = generate_url(self.model, self.base_url)
        logger.debug("POST %s (%s)", url, self.model)
        try:
            resp = requests.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(
                "Generation request timed out",
                suggestion="Try again, or attach fewer files.",
                context={"model": self.model},
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Generation request failed: {redact_api_key(str(e), self.api_key)}",
                context={"model": self.model},
            ) from e

        logger.debug("Generation answered HTTP %s (%d bytes)", resp.status_code, len(resp.content))
        return resp.text
