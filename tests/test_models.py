# tests/test_models.py
"""
Tests for models.py - quiz structure validation
"""
import pytest

from giftgen.errors import MalformedQuizError
from giftgen.models import Quiz, QuizQuestion


class TestQuizFromDict:
    """Tests for Quiz.from_dict"""

    def test_valid_quiz(self, quiz_data):
        quiz = Quiz.from_dict(quiz_data)

        assert len(quiz) == 2
        first = quiz.questions[0]
        assert first.title == "Arithmetic"
        assert first.body == "What is 1 + 2?"
        assert first.options == ["2", "3", "4"]
        assert first.correct_index == 1
        assert first.explanation == "1 + 2 = 3"
        assert quiz.questions[1].explanation is None

    def test_missing_questions(self):
        with pytest.raises(MalformedQuizError, match="no 'questions'"):
            Quiz.from_dict({"quiz": []})

    def test_not_an_object(self):
        with pytest.raises(MalformedQuizError):
            Quiz.from_dict(["questions"])

    def test_questions_not_a_list(self):
        with pytest.raises(MalformedQuizError, match="not an array"):
            Quiz.from_dict({"questions": "none"})

    def test_empty_questions_list_is_valid(self):
        assert len(Quiz.from_dict({"questions": []})) == 0


class TestQuestionValidation:
    """Tests for QuizQuestion.from_dict"""

    def base(self, **changes):
        data = {"question": "Q?", "options": ["a", "b"], "correct_answer": 0}
        data.update(changes)
        return data

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_out_of_range_correct_answer(self, index):
        with pytest.raises(MalformedQuizError, match="does not index one of 2 options"):
            QuizQuestion.from_dict(self.base(correct_answer=index), number=3)

    @pytest.mark.parametrize("index", ["1", 1.0, True, None])
    def test_non_integer_correct_answer(self, index):
        with pytest.raises(MalformedQuizError):
            QuizQuestion.from_dict(self.base(correct_answer=index))

    def test_missing_question_text(self):
        data = self.base()
        del data["question"]
        with pytest.raises(MalformedQuizError, match="no question text"):
            QuizQuestion.from_dict(data)

    def test_empty_options(self):
        with pytest.raises(MalformedQuizError, match="no answer options"):
            QuizQuestion.from_dict(self.base(options=[]))

    def test_non_text_option(self):
        with pytest.raises(MalformedQuizError, match="non-text answer option"):
            QuizQuestion.from_dict(self.base(options=["a", 2]))

    def test_null_title_treated_as_absent(self):
        assert QuizQuestion.from_dict(self.base(title=None)).title is None

    def test_non_text_title(self):
        with pytest.raises(MalformedQuizError, match="non-text title"):
            QuizQuestion.from_dict(self.base(title=5))

    def test_error_names_question_number(self):
        with pytest.raises(MalformedQuizError) as exc_info:
            Quiz.from_dict({"questions": [self.base(), self.base(correct_answer=7)]})
        assert exc_info.value.context["question"] == 2
