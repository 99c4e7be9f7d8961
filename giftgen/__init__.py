"""
giftgen - Moodle GIFT quizzes generated from documents with Google Gemini

Uploads documents to the Gemini Files API in parallel, asks for a structured
multiple choice quiz about them, and serializes the result in the GIFT
quiz-exchange format understood by Moodle and other LMSs.
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Make key utilities easily importable
from .errors import GiftGenError, ConfigurationError
from .gift_format import convert_to_gift_format, escape_gift_text
from .models import Quiz, QuizQuestion

__all__ = [
    "__version__",
    "GiftGenError",
    "ConfigurationError",
    "convert_to_gift_format",
    "escape_gift_text",
    "Quiz",
    "QuizQuestion",
]
