#!/usr/bin/env python3
"""
generation.py

Quiz generation with operator-gated retries.

One attempt moves through these states:

    REQUESTING -> CLASSIFYING -> ERROR_PROMPT   (service returned an error)
                              -> SERIALIZING    (quiz data parsed and rendered)

run() loops attempts until DONE or ABORTED:

- ERROR_PROMPT asks confirm_retry(error); yes repeats the identical request,
  no aborts with GenerationAborted.
- SERIALIZING in interactive mode asks accept_output(gift_text); rejection
  regenerates from scratch with a fresh request. Non-interactive mode accepts
  the first quiz.

The controller never touches the console: both decisions come from the
callables the caller passes in (the CLI binds them to click prompts).
Without max_attempts the loop is unbounded, so unattended callers should set
it or supply callables that eventually decline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from giftgen.envelope import (
    ErrorEnvelope,
    classify_response,
    extract_quiz_data,
    parse_response_body,
)
from giftgen.errors import generation_aborted_error
from giftgen.gemini_client import GeminiClient, build_generation_payload
from giftgen.gift_format import convert_to_gift_format
from giftgen.models import Quiz
from giftgen.schema import default_prompt, quiz_schema


logger = logging.getLogger(__name__)


class AttemptState(Enum):
    REQUESTING = "requesting"
    CLASSIFYING = "classifying"
    ERROR_PROMPT = "error_prompt"
    SERIALIZING = "serializing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class GenerationRequest:
    """What to ask for; reused unchanged by every attempt."""
    file_ids: Tuple[str, ...]
    query: str
    schema: Dict[str, Any] = field(default_factory=quiz_schema, compare=False)

    @classmethod
    def for_quiz(
        cls,
        file_ids: Sequence[str],
        num_questions: int,
        custom_prompt: Optional[str] = None,
    ) -> "GenerationRequest":
        query = custom_prompt if custom_prompt else default_prompt(num_questions)
        return cls(file_ids=tuple(file_ids), query=query)

    def payload(self, base_url: str) -> Dict[str, Any]:
        return build_generation_payload(self.file_ids, self.query, self.schema, base_url)


@dataclass
class AttemptOutcome:
    """Result of one attempt; the state says which fields are set."""
    state: AttemptState
    attempt: int
    error: Optional[ErrorEnvelope] = None
    quiz: Optional[Quiz] = None
    gift_text: Optional[str] = None


RetryDecision = Callable[[ErrorEnvelope], bool]
AcceptDecision = Callable[[str], bool]


class GenerationController:
    """
    Drives generation attempts for one request.

    Args:
        client: Transport for the generateContent endpoint
        request: The request every attempt sends
        interactive: Ask for acceptance of each generated quiz
        include_explanations: Emit GIFT general feedback from explanations
        max_attempts: Upper bound on requests sent; None means unbounded
    """

    def __init__(
        self,
        client: GeminiClient,
        request: GenerationRequest,
        interactive: bool = False,
        include_explanations: bool = False,
        max_attempts: Optional[int] = None,
    ):
        self.client = client
        self.request = request
        self.interactive = interactive
        self.include_explanations = include_explanations
        self.max_attempts = max_attempts
        self.state = AttemptState.REQUESTING
        self.attempts = 0

    def attempt(self) -> AttemptOutcome:
        """
        Send the request once and classify the answer.

        Returns an outcome in ERROR_PROMPT or SERIALIZING state.

        Raises:
            TransportError: The request itself failed
            MalformedResponseError: The body could not be interpreted
            MalformedQuizError: The quiz data is structurally invalid
        """
        self.attempts += 1
        self.state = AttemptState.REQUESTING
        logger.debug("Generation attempt %d", self.attempts)
        body = self.client.generate_content(self.request.payload(self.client.base_url))

        self.state = AttemptState.CLASSIFYING
        envelope = classify_response(parse_response_body(body))
        if isinstance(envelope, ErrorEnvelope):
            self.state = AttemptState.ERROR_PROMPT
            return AttemptOutcome(self.state, self.attempts, error=envelope)

        quiz = Quiz.from_dict(extract_quiz_data(envelope))
        self.state = AttemptState.SERIALIZING
        gift_text = convert_to_gift_format(quiz, self.include_explanations)
        logger.debug("Attempt %d produced %d questions", self.attempts, len(quiz))
        return AttemptOutcome(self.state, self.attempts, quiz=quiz, gift_text=gift_text)

    def run(
        self,
        confirm_retry: RetryDecision,
        accept_output: Optional[AcceptDecision] = None,
    ) -> AttemptOutcome:
        """
        Loop attempts until a quiz is accepted.

        Returns the accepted outcome (state DONE).

        Raises:
            GenerationAborted: The operator declined a retry, or max_attempts
                was reached
        """
        if self.interactive and accept_output is None:
            raise ValueError("interactive generation needs an accept_output callable")

        while True:
            self._check_budget()
            outcome = self.attempt()

            if outcome.state is AttemptState.ERROR_PROMPT:
                message = outcome.error.describe()
                logger.error(message)
                # Out of attempts; do not offer a retry
                self._check_budget()
                if not confirm_retry(outcome.error):
                    self.state = AttemptState.ABORTED
                    raise generation_aborted_error(
                        f"User chose to exit after API error ({message})", self.attempts
                    )
                continue

            if self.interactive and not accept_output(outcome.gift_text):
                logger.info("Regenerating quiz...")
                continue

            self.state = AttemptState.DONE
            outcome.state = AttemptState.DONE
            return outcome

    def _check_budget(self) -> None:
        if self.max_attempts and self.attempts >= self.max_attempts:
            self.state = AttemptState.ABORTED
            raise generation_aborted_error(
                f"No accepted quiz after {self.attempts} attempts", self.attempts
            )
