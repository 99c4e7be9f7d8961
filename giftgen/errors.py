# errors.py
"""
Custom exception classes with improved error messages for giftgen

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context

str(exc) is the one-line message; format_message() renders the full block.
"""
from typing import Optional, Dict, Any, List


class GiftGenError(Exception):
    """Base exception for all giftgen errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(message)

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"{self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class ConfigurationError(GiftGenError):
    """Configuration is missing or invalid"""
    pass


class TransferError(GiftGenError):
    """An upload batch was aborted"""

    def __init__(
        self,
        message: str,
        local_identifier: Optional[str] = None,
        http_status: Optional[int] = None,
        uploaded_handles: Optional[List[str]] = None,
        **kwargs
    ):
        self.local_identifier = local_identifier
        self.http_status = http_status
        # Handles that reached the server before the batch was aborted
        self.uploaded_handles = list(uploaded_handles or [])
        super().__init__(message, **kwargs)


class TransportError(GiftGenError):
    """A single request could not be completed at the network level"""
    pass


class MalformedResponseError(GiftGenError):
    """The generation endpoint returned a body we cannot interpret"""
    pass


class MalformedQuizError(GiftGenError):
    """Quiz data does not have the expected structure"""
    pass


class GenerationAborted(GiftGenError):
    """Quiz generation stopped without an accepted result"""
    pass


# Specific error factory functions

def missing_api_key_error() -> ConfigurationError:
    """Create error for missing Gemini API key"""
    return ConfigurationError(
        message="GEMINI_API_KEY environment variable not set and --gemini-api-key not provided",
        suggestion=(
            "Provide the key using one of these methods:\n"
            "  giftgen --gemini-api-key YOUR_KEY ...\n"
            "  export GEMINI_API_KEY=YOUR_KEY\n"
            "  api_key: YOUR_KEY   (in giftgen.yaml)"
        ),
        context={
            "checked_locations": [
                "--gemini-api-key option",
                "GEMINI_API_KEY environment variable",
                "giftgen.yaml",
                "~/.giftgen/config.yaml",
            ]
        }
    )


def no_input_error() -> ConfigurationError:
    """Create error for a run with neither files nor a prompt"""
    return ConfigurationError(
        message=(
            "No files specified and no custom prompt provided. "
            "Use --files to specify files or --prompt for custom queries."
        ),
    )


def upload_http_error(
    filename: str,
    http_status: int,
    uploaded_handles: Optional[List[str]] = None
) -> TransferError:
    """Create error for an upload answered with a non-200 status"""
    return TransferError(
        message=f"Upload failed for {filename} with HTTP {http_status}",
        local_identifier=filename,
        http_status=http_status,
        uploaded_handles=uploaded_handles,
        suggestion=(
            "Check that the API key is valid and the file type is supported.\n"
            "HTTP 429 means the request quota is exhausted; wait and try again."
        ),
        context={"file": filename, "http_status": http_status},
    )


def empty_upload_response_error(
    filename: str,
    uploaded_handles: Optional[List[str]] = None
) -> TransferError:
    """Create error for an upload that returned an empty body"""
    return TransferError(
        message=f"Empty response for {filename}",
        local_identifier=filename,
        http_status=200,
        uploaded_handles=uploaded_handles,
        context={"file": filename},
    )


def unparsable_upload_response_error(
    filename: str,
    uploaded_handles: Optional[List[str]] = None,
    cause: Optional[Exception] = None
) -> TransferError:
    """Create error for an upload response without a file identifier"""
    return TransferError(
        message=f"Failed to parse file ID from upload response for {filename}",
        local_identifier=filename,
        http_status=200,
        uploaded_handles=uploaded_handles,
        context={"file": filename, "expected_field": "file.name"},
        cause=cause,
    )


def upload_transport_error(
    filename: str,
    detail: str,
    uploaded_handles: Optional[List[str]] = None
) -> TransferError:
    """Create error for an upload that failed before any HTTP status arrived"""
    return TransferError(
        message=f"Upload failed for {filename}: {detail}",
        local_identifier=filename,
        uploaded_handles=uploaded_handles,
        suggestion="Check your network connection and the configured base URL.",
        context={"file": filename},
    )


def batch_timeout_error(
    operation: str,
    timeout: float,
    pending: List[str]
) -> TransferError:
    """Create error when a batch does not finish before its deadline"""
    return TransferError(
        message=f"{operation.capitalize()} batch did not finish within {timeout:g}s",
        local_identifier=pending[0] if pending else None,
        suggestion=(
            "Increase the deadline with --batch-timeout or GIFTGEN_BATCH_TIMEOUT,\n"
            "or upload fewer/smaller files per run."
        ),
        context={"unfinished": pending, "timeout_seconds": timeout},
    )


def invalid_correct_index_error(
    question_number: int,
    correct_index: Any,
    option_count: int
) -> MalformedQuizError:
    """Create error for a correct_answer that does not index an option"""
    return MalformedQuizError(
        message=(
            f"Question {question_number}: correct_answer {correct_index!r} "
            f"does not index one of {option_count} options"
        ),
        suggestion="Regenerate the quiz; the model returned an inconsistent answer key.",
        context={
            "question": question_number,
            "correct_answer": correct_index,
            "option_count": option_count,
        }
    )


def generation_aborted_error(reason: str, attempts: int) -> GenerationAborted:
    """Create error when the operator or the attempt limit stops generation"""
    return GenerationAborted(
        message=reason,
        context={"attempts": attempts},
    )
