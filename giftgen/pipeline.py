"""
pipeline.py - One complete giftgen run

    upload files -> generate (with retries) -> write GIFT -> delete files

Uploaded files are deleted on every exit path once generation has resolved,
including aborts and errors, and files that reached the server before an
upload batch failed are removed as well.
"""

import logging
from typing import Optional, Sequence

from giftgen.batch_transfer import BatchTransferOrchestrator
from giftgen.config_utils import GiftGenConfig, require_api_key
from giftgen.errors import TransferError
from giftgen.gemini_client import GeminiClient, GENERATION_TIMEOUT
from giftgen.generation import (
    AcceptDecision,
    AttemptOutcome,
    GenerationController,
    GenerationRequest,
    RetryDecision,
)
from giftgen.gift_format import write_gift_output


logger = logging.getLogger(__name__)


def run_quiz_pipeline(
    files: Sequence[str],
    config: GiftGenConfig,
    confirm_retry: RetryDecision,
    accept_output: Optional[AcceptDecision] = None,
    interactive: bool = False,
    custom_prompt: Optional[str] = None,
    output_file: Optional[str] = None,
    orchestrator: Optional[BatchTransferOrchestrator] = None,
    client: Optional[GeminiClient] = None,
) -> AttemptOutcome:
    """
    Generate a GIFT quiz from files and deliver it to its sink.

    The accepted text is written to output_file, or echoed to stdout in
    non-interactive mode (interactive mode has already shown it).

    Returns:
        The accepted AttemptOutcome

    Raises:
        ConfigurationError: No API key configured
        TransferError: The upload batch failed
        GenerationAborted: Generation was declined or ran out of attempts
        GiftGenError: Any other fatal condition
    """
    api_key = require_api_key(config)
    if orchestrator is None:
        orchestrator = BatchTransferOrchestrator(api_key, config.base_url, config.batch_timeout)
    if client is None:
        client = GeminiClient(
            api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=(GENERATION_TIMEOUT[0], config.request_timeout),
        )

    if files:
        logger.info("Generating %d questions from %d files.", config.num_questions, len(files))
    else:
        logger.info("Generating %d questions using custom prompt.", config.num_questions)

    try:
        file_ids = orchestrator.upload_files(files)
    except TransferError as e:
        if e.uploaded_handles:
            logger.warning(
                "Removing %d files uploaded before the failure...", len(e.uploaded_handles)
            )
            orchestrator.delete_files(e.uploaded_handles)
        raise

    try:
        request = GenerationRequest.for_quiz(file_ids, config.num_questions, custom_prompt)
        controller = GenerationController(
            client,
            request,
            interactive=interactive,
            include_explanations=config.include_explanations,
            max_attempts=config.max_attempts,
        )
        outcome = controller.run(confirm_retry, accept_output)

        if output_file:
            write_gift_output(outcome.gift_text, output_file)
            logger.info("GIFT quiz saved to: %s", output_file)
        elif not interactive:
            write_gift_output(outcome.gift_text)
        return outcome
    finally:
        if file_ids:
            orchestrator.delete_files(file_ids)
