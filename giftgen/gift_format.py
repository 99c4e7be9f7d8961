#!/usr/bin/env python3
"""
gift_format.py

Render a Quiz in Moodle's GIFT import format.

Each question becomes:

    ::Title::
    [markdown]Question text {
    ~wrong option
    =right option
    }

followed by a blank line. GIFT control characters ({ } # : ~ =) are escaped
with a backslash, except inside `backtick` code segments, which are copied
verbatim so code excerpts survive intact.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import click

from giftgen.errors import GiftGenError
from giftgen.models import Quiz, QuizQuestion


GIFT_SPECIAL_CHARS = frozenset("{}#:~=")
CODE_DELIMITER = "`"
# Question bodies are rendered with Moodle's markdown text format
TEXT_FORMAT = "[markdown]"


def escape_gift_text(text: str) -> str:
    """
    Escape GIFT control characters outside of code segments.

    A backtick toggles the code-segment state and is always copied through.
    State starts outside a segment and never carries over between calls, so an
    unbalanced backtick only affects the rest of this one string.
    """
    out = []
    in_code_segment = False

    for ch in text:
        if ch == CODE_DELIMITER:
            in_code_segment = not in_code_segment
            out.append(ch)
            continue

        if not in_code_segment and ch in GIFT_SPECIAL_CHARS:
            out.append("\\")
        out.append(ch)

    return "".join(out)


def question_to_gift(question: QuizQuestion, include_explanations: bool = False) -> str:
    """Render one question block, including the trailing blank line."""
    lines = []
    if question.title is not None:
        lines.append(f"::{escape_gift_text(question.title)}::")

    lines.append(f"{TEXT_FORMAT}{escape_gift_text(question.body)} {{")

    for i, option in enumerate(question.options):
        marker = "=" if i == question.correct_index else "~"
        lines.append(f"{marker}{escape_gift_text(option)}")

    if include_explanations and question.explanation:
        # GIFT general feedback
        lines.append(f"####{escape_gift_text(question.explanation)}")

    lines.append("}")
    return "\n".join(lines) + "\n\n"


def convert_to_gift_format(quiz: Quiz, include_explanations: bool = False) -> str:
    """Serialize every question of quiz, in order."""
    return "".join(
        question_to_gift(question, include_explanations)
        for question in quiz.questions
    )


def write_gift_output(text: str, output_file: Optional[Union[str, Path]] = None) -> None:
    """
    Send GIFT text to its sink.

    A path is overwritten with the full text; without one the text goes to
    standard output.
    """
    if output_file:
        try:
            Path(output_file).write_text(text, encoding="utf-8")
        except OSError as e:
            raise GiftGenError(f"Unable to open output file: {output_file}", cause=e) from e
    else:
        click.echo(text)
