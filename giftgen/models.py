"""
models.py - Structured quiz data

The remote service returns quiz data as JSON matching schema.quiz_schema().
Quiz.from_dict() is the single place where that JSON is checked; everything
downstream (the GIFT serializer) may assume a well-formed Quiz.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from giftgen.errors import MalformedQuizError, invalid_correct_index_error


@dataclass
class QuizQuestion:
    """One multiple-choice question; correct_index always indexes options."""
    body: str
    options: List[str]
    correct_index: int
    title: Optional[str] = None
    explanation: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, number: int = 1) -> "QuizQuestion":
        """
        Build a question from one element of the "questions" array.

        Args:
            data: Decoded JSON object
            number: 1-based position, used in error messages

        Raises:
            MalformedQuizError: If a field is missing or has the wrong shape
        """
        if not isinstance(data, Mapping):
            raise MalformedQuizError(
                f"Question {number} is not an object",
                context={"question": number, "value": repr(data)[:80]},
            )

        body = data.get("question")
        if not isinstance(body, str):
            raise MalformedQuizError(
                f"Question {number} has no question text",
                context={"question": number},
            )

        options = data.get("options")
        if not isinstance(options, list) or not options:
            raise MalformedQuizError(
                f"Question {number} has no answer options",
                context={"question": number},
            )
        if not all(isinstance(opt, str) for opt in options):
            raise MalformedQuizError(
                f"Question {number} has a non-text answer option",
                context={"question": number},
            )

        correct = data.get("correct_answer")
        # bool is an int subclass; True must not select option 1
        if isinstance(correct, bool) or not isinstance(correct, int):
            raise invalid_correct_index_error(number, correct, len(options))
        if not 0 <= correct < len(options):
            raise invalid_correct_index_error(number, correct, len(options))

        return cls(
            body=body,
            options=list(options),
            correct_index=correct,
            title=_optional_text(data, "title", number),
            explanation=_optional_text(data, "explanation", number),
        )


@dataclass
class Quiz:
    """Ordered questions; list order is output order."""
    questions: List[QuizQuestion] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.questions)

    @classmethod
    def from_dict(cls, data: Any) -> "Quiz":
        """Validate decoded quiz JSON ({"questions": [...]}) into a Quiz."""
        if not isinstance(data, Mapping) or "questions" not in data:
            raise MalformedQuizError(
                "Quiz data has no 'questions' array",
                suggestion="The model ignored the response schema; try generating again.",
            )
        items = data["questions"]
        if not isinstance(items, list):
            raise MalformedQuizError("Quiz 'questions' field is not an array")
        return cls([QuizQuestion.from_dict(item, i) for i, item in enumerate(items, start=1)])


def _optional_text(data: Mapping, key: str, number: int) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedQuizError(
            f"Question {number} has a non-text {key}",
            context={"question": number, "field": key},
        )
    return value
