# tests/test_generation.py
"""
Tests for generation.py - attempt loop, retries and acceptance
"""
import json

import pytest

from giftgen.errors import GenerationAborted, MalformedQuizError, MalformedResponseError
from giftgen.generation import (
    AttemptState,
    GenerationController,
    GenerationRequest,
)
from giftgen.schema import default_prompt


def never_called(*args):
    raise AssertionError("decision callback should not be called")


class Recorder:
    """Decision callable returning scripted answers and recording its inputs"""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, arg):
        self.calls.append(arg)
        return self.answers.pop(0)


@pytest.fixture
def request_():
    return GenerationRequest.for_quiz(["f1", "f2"], 2)


class TestGenerationRequest:
    """Tests for GenerationRequest"""

    def test_default_prompt_used(self, request_):
        assert request_.query == default_prompt(2)
        assert request_.file_ids == ("f1", "f2")

    def test_custom_prompt_replaces_default(self):
        req = GenerationRequest.for_quiz([], 7, "Generate 7 C++ questions")
        assert req.query == "Generate 7 C++ questions"

    def test_payload_lists_files_then_query(self, request_):
        payload = request_.payload("https://example.test")
        parts = payload["contents"][0]["parts"]

        assert parts[0] == {"file_data": {"file_uri": "https://example.test/v1beta/files/f1"}}
        assert parts[1] == {"file_data": {"file_uri": "https://example.test/v1beta/files/f2"}}
        assert parts[2] == {"text": default_prompt(2)}
        config = payload["generationConfig"]
        assert config["response_mime_type"] == "application/json"
        assert config["response_schema"]["required"] == ["questions"]

    def test_prompt_only_payload(self):
        req = GenerationRequest.for_quiz([], 3, "Ask about sorting")
        parts = req.payload("https://example.test")["contents"][0]["parts"]
        assert parts == [{"text": "Ask about sorting"}]


class TestAttempt:
    """Tests for a single attempt"""

    def test_success_reaches_serializing(self, fake_client_factory, request_, candidates_body):
        controller = GenerationController(fake_client_factory([candidates_body]), request_)
        outcome = controller.attempt()

        assert outcome.state is AttemptState.SERIALIZING
        assert outcome.attempt == 1
        assert len(outcome.quiz) == 2
        assert outcome.gift_text.startswith("::Arithmetic::\n[markdown]What is 1 + 2? {")

    def test_error_envelope_reaches_error_prompt(self, fake_client_factory, request_, error_body):
        controller = GenerationController(fake_client_factory([error_body]), request_)
        outcome = controller.attempt()

        assert outcome.state is AttemptState.ERROR_PROMPT
        assert outcome.error.code == 429
        assert outcome.quiz is None

    def test_raw_envelope_is_quiz_data(self, fake_client_factory, request_, quiz_data):
        """A body that is the quiz itself is used directly"""
        controller = GenerationController(
            fake_client_factory([json.dumps(quiz_data)]), request_
        )
        outcome = controller.attempt()
        assert outcome.quiz.questions[1].title == "Python: dicts"

    def test_explanations_rendered_when_enabled(self, fake_client_factory, request_, candidates_body):
        controller = GenerationController(
            fake_client_factory([candidates_body]), request_, include_explanations=True
        )
        assert "####1 + 2 \\= 3" in controller.attempt().gift_text

    def test_non_json_body_is_fatal(self, fake_client_factory, request_):
        controller = GenerationController(fake_client_factory(["<html>oops</html>"]), request_)
        with pytest.raises(MalformedResponseError):
            controller.attempt()

    def test_out_of_range_answer_is_fatal(self, fake_client_factory, request_, quiz_data):
        quiz_data["questions"][1]["correct_answer"] = 3
        controller = GenerationController(
            fake_client_factory([json.dumps(quiz_data)]), request_
        )
        with pytest.raises(MalformedQuizError, match="Question 2"):
            controller.attempt()


class TestRun:
    """Tests for the retry/acceptance loop"""

    def test_first_success_accepted_without_prompts(
        self, fake_client_factory, request_, candidates_body
    ):
        client = fake_client_factory([candidates_body])
        controller = GenerationController(client, request_)
        outcome = controller.run(never_called)

        assert outcome.state is AttemptState.DONE
        assert controller.state is AttemptState.DONE
        assert len(client.payloads) == 1

    def test_declined_retry_aborts(self, fake_client_factory, request_, error_body, caplog):
        client = fake_client_factory([error_body])
        confirm = Recorder(False)
        controller = GenerationController(client, request_)

        with pytest.raises(GenerationAborted) as exc_info:
            controller.run(confirm)

        assert controller.state is AttemptState.ABORTED
        assert confirm.calls[0].status == "RESOURCE_EXHAUSTED"
        assert "User chose to exit after API error" in str(exc_info.value)
        assert "Gemini API Error 429: Resource has been exhausted" in caplog.text
        assert len(client.payloads) == 1

    def test_retry_resends_identical_request(
        self, fake_client_factory, request_, error_body, candidates_body
    ):
        client = fake_client_factory([error_body, error_body, candidates_body])
        confirm = Recorder(True, True)
        controller = GenerationController(client, request_)

        outcome = controller.run(confirm)

        assert outcome.attempt == 3
        assert len(confirm.calls) == 2
        assert client.payloads[0] == client.payloads[1] == client.payloads[2]

    def test_interactive_rejection_regenerates(
        self, fake_client_factory, request_, candidates_body
    ):
        client = fake_client_factory([candidates_body, candidates_body])
        accept = Recorder(False, True)
        controller = GenerationController(client, request_, interactive=True)

        outcome = controller.run(never_called, accept)

        assert outcome.attempt == 2
        assert accept.calls == [outcome.gift_text, outcome.gift_text]
        assert len(client.payloads) == 2

    def test_interactive_requires_accept_callable(self, fake_client_factory, request_):
        controller = GenerationController(fake_client_factory([]), request_, interactive=True)
        with pytest.raises(ValueError):
            controller.run(never_called)

    def test_max_attempts_bounds_retries(self, fake_client_factory, request_, error_body):
        client = fake_client_factory([error_body] * 5)
        controller = GenerationController(client, request_, max_attempts=2)

        with pytest.raises(GenerationAborted, match="No accepted quiz after 2 attempts"):
            controller.run(lambda error: True)

        assert len(client.payloads) == 2
        assert controller.state is AttemptState.ABORTED

    def test_no_retry_prompt_after_last_attempt(self, fake_client_factory, request_, error_body):
        client = fake_client_factory([error_body] * 3)
        confirm = Recorder(True)
        controller = GenerationController(client, request_, max_attempts=2)

        with pytest.raises(GenerationAborted, match="No accepted quiz after 2 attempts"):
            controller.run(confirm)

        assert len(confirm.calls) == 1
        assert len(client.payloads) == 2

    def test_single_attempt_never_prompts(self, fake_client_factory, request_, error_body):
        controller = GenerationController(
            fake_client_factory([error_body]), request_, max_attempts=1
        )
        with pytest.raises(GenerationAborted):
            controller.run(never_called)

    def test_max_attempts_bounds_rejections(self, fake_client_factory, request_, candidates_body):
        client = fake_client_factory([candidates_body] * 3)
        controller = GenerationController(client, request_, interactive=True, max_attempts=3)

        with pytest.raises(GenerationAborted):
            controller.run(never_called, lambda text: False)
        assert len(client.payloads) == 3

    def test_malformed_content_not_retried(self, fake_client_factory, request_):
        client = fake_client_factory(['{"candidates": [{"finishReason": "SAFETY"}]}'])
        controller = GenerationController(client, request_)

        with pytest.raises(MalformedResponseError):
            controller.run(never_called)
        assert len(client.payloads) == 1
