"""
envelope.py - Classify generation responses

The generateContent endpoint answers with one of three shapes:

    {"error": {"code": 429, "message": "...", "status": "RESOURCE_EXHAUSTED"}}
    {"candidates": [{"content": {"parts": [{"text": "<quiz json>"}]}}]}
    {"questions": [...]}            # quiz data directly

classify_response() decides which one once, at the boundary. Downstream code
works with the returned dataclass and never inspects the raw dict again.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from giftgen.errors import MalformedResponseError


@dataclass(frozen=True)
class ErrorEnvelope:
    """Structured error reported by the remote service"""
    code: Optional[int] = None
    message: Optional[str] = None
    status: Optional[str] = None

    def describe(self) -> str:
        """Compose the operator-facing error line."""
        text = "Gemini API Error"
        if self.code is not None:
            text += f" {self.code}"
        if self.message is not None:
            text += f": {self.message}"
        if self.status is not None:
            text += f" (Status: {self.status})"
        return text


@dataclass(frozen=True)
class SuccessEnvelope:
    """Normal generateContent result"""
    candidates: List[Any]


@dataclass(frozen=True)
class RawEnvelope:
    """Body that is neither an error nor a candidates list; taken as quiz data"""
    data: Any


ResponseEnvelope = Union[ErrorEnvelope, SuccessEnvelope, RawEnvelope]


def parse_response_body(body: str) -> Any:
    """Decode a generation response body, rejecting non-JSON."""
    try:
        return json.loads(body)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(
            "Generation response is not valid JSON",
            context={"body_start": str(body)[:120]},
            cause=e,
        ) from e


def classify_response(payload: Any) -> ResponseEnvelope:
    """
    Decide which envelope a decoded response is.

    The error shape is checked first; a candidates list must be non-empty to
    count as a success envelope.
    """
    if isinstance(payload, dict):
        if "error" in payload:
            return _error_envelope(payload["error"])
        candidates = payload.get("candidates")
        if isinstance(candidates, list) and candidates:
            return SuccessEnvelope(candidates)
    return RawEnvelope(payload)


def extract_quiz_data(envelope: Union[SuccessEnvelope, RawEnvelope]) -> Any:
    """
    Pull the quiz JSON out of a non-error envelope.

    For a success envelope the first candidate's first part is used: its
    "text" is decoded as JSON, or the part itself is taken when it has no text.
    """
    if isinstance(envelope, RawEnvelope):
        return envelope.data

    candidate = envelope.candidates[0]
    parts = None
    if isinstance(candidate, dict) and isinstance(candidate.get("content"), dict):
        parts = candidate["content"].get("parts")
    if not isinstance(parts, list) or not parts:
        finish_reason = candidate.get("finishReason") if isinstance(candidate, dict) else None
        raise MalformedResponseError(
            "Response candidate carried no content parts",
            suggestion="The model may have stopped early (safety or token limit); try again.",
            context={"finish_reason": finish_reason},
        )

    part = parts[0]
    if isinstance(part, dict) and "text" in part:
        if not isinstance(part["text"], str):
            raise MalformedResponseError(
                "Response text part is not a string",
                context={"text_type": type(part["text"]).__name__},
            )
        return parse_response_body(part["text"])
    return part


def _error_envelope(error: Any) -> ErrorEnvelope:
    if not isinstance(error, dict):
        return ErrorEnvelope(message=str(error))
    code = error.get("code")
    return ErrorEnvelope(
        code=code if isinstance(code, int) and not isinstance(code, bool) else None,
        message=error.get("message") if isinstance(error.get("message"), str) else None,
        status=error.get("status") if isinstance(error.get("status"), str) else None,
    )
