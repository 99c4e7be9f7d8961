"""
schema.py - Response schema and default instructions for quiz generation
"""

from typing import Any, Dict


def quiz_schema() -> Dict[str, Any]:
    """
    JSON schema the generation endpoint must conform its output to.

    Returns a fresh dict on every call so callers may not alias a shared one.
    """
    return {
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "title": {
                            "type": "string",
                            "description": "A short title for the question",
                        },
                        "question": {
                            "type": "string",
                            "description": "The question text",
                        },
                        "options": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Array of answer options",
                        },
                        "correct_answer": {
                            "type": "integer",
                            "description": "Index of the correct answer (0-based)",
                        },
                        "explanation": {
                            "type": "string",
                            "description": "Optional explanation for the correct answer",
                        },
                    },
                    "required": ["title", "question", "options", "correct_answer"],
                },
            },
        },
        "required": ["questions"],
    }


def default_prompt(num_questions: int) -> str:
    """Instruction text used when no custom prompt is given."""
    return (
        f"From both the text and images in these files, generate {num_questions} "
        "multiple choice questions formatted according to the provided json schema. "
        "Ensure that any code excerpts in the generated questions or answers are "
        "surrounded by a pair of backticks. Also ensure each question includes a "
        "short title: if a question is based on content from a provided file, start "
        "the question title using a short version of the file title."
    )
