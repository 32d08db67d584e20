"""
Tests for quiz_session

Test Coverage:
- QuizSession construction: empty / invalid question lists
- select_answer(), advance(): scoring, negative marking, require-answer gate
- summary(), progress(), retake(): terminal state and reset
- QuizSession.from_quiz(): stored quiz settings and shuffling
"""
import random

import pytest

from quiz_models import (
    AnswerRequired, InvalidInput, QuestionRecord, QuizRecord, QuizSummary, ScoringConfig,
)
from quiz_session import QuizSession, SessionStatus


def _q(correct=0, marks=1, n_options=4, text="Q"):
    return QuestionRecord(text, [f"opt {i}" for i in range(n_options)], correct, marks)


def test_empty_question_list_rejected():
    with pytest.raises(InvalidInput):
        QuizSession([])


def test_invalid_question_rejected():
    with pytest.raises(InvalidInput, match="question 2"):
        QuizSession([_q(), QuestionRecord("Q", ["only one"], 0, 1)])


def test_initial_state():
    session = QuizSession([_q(), _q()])

    assert session.state.status is SessionStatus.IN_PROGRESS
    assert session.state.current_index == 0
    assert session.state.selected_index is None
    assert session.state.score == 0
    assert session.progress() == (1, 2)
    assert session.settings == ScoringConfig()


def test_positive_only_scoring():
    """Two correct answers with marks 1 give a full score."""
    # Arrange
    session = QuizSession([_q(correct=1), _q(correct=3)], ScoringConfig(enable_negative=False))

    # Act
    session.select_answer(1)
    session.advance()
    session.select_answer(3)
    status = session.advance()

    # Assert
    assert status is SessionStatus.COMPLETED
    assert session.summary() == QuizSummary(
        score=2, total_possible_marks=2, correct_count=2, total_questions=2,
    )


def test_negative_marking():
    """A wrong answer subtracts the penalty."""
    session = QuizSession([_q(correct=0)], ScoringConfig(enable_negative=True, penalty=0.25))

    session.select_answer(2)
    session.advance()

    assert session.summary().score == -0.25
    assert session.summary().correct_count == 0


def test_negative_score_has_no_floor():
    session = QuizSession([_q(), _q(), _q()], ScoringConfig(enable_negative=True, penalty=1))

    for _ in range(3):
        session.select_answer(3)
        session.advance()

    assert session.summary().score == -3


def test_wrong_answer_without_negative_marking_scores_zero():
    session = QuizSession([_q(correct=0)], ScoringConfig(penalty=5))

    session.select_answer(1)
    session.advance()

    assert session.summary().score == 0


def test_skipped_answer_is_penalised_like_wrong():
    """Advancing unanswered forfeits credit and applies the penalty."""
    session = QuizSession([_q(correct=0, marks=2)], ScoringConfig(enable_negative=True, penalty=0.5))

    session.advance()

    assert session.summary().score == -0.5
    assert session.summary().correct_count == 0


def test_negative_marking_without_penalty_is_noop():
    settings = ScoringConfig(enable_negative=True, penalty=None)
    session = QuizSession([_q(correct=0)], settings)

    session.select_answer(1)
    session.advance()

    assert settings.penalty == 0
    assert session.summary().score == 0


def test_marks_weight_the_score():
    session = QuizSession([_q(correct=0, marks=3), _q(correct=0, marks=2)])

    session.select_answer(0)
    session.advance()
    session.select_answer(1)
    session.advance()

    summary = session.summary()
    assert summary.score == 3
    assert summary.total_possible_marks == 5
    assert summary.correct_count == 1
    assert summary.ratio == pytest.approx(0.6)
    assert summary.passed


def test_require_answer_gate():
    """advance() without a selection fails and leaves the state unchanged."""
    # Arrange
    session = QuizSession([_q(), _q()], ScoringConfig(require_answer=True, enable_negative=True, penalty=1))

    # Act & Assert
    with pytest.raises(AnswerRequired):
        session.advance()
    assert session.state.current_index == 0
    assert session.state.score == 0
    assert session.state.status is SessionStatus.IN_PROGRESS

    session.select_answer(0)
    session.advance()
    assert session.state.current_index == 1


def test_last_selection_wins():
    session = QuizSession([_q(correct=2)])

    session.select_answer(0)
    session.select_answer(2)
    session.advance()

    assert session.summary().correct_count == 1


def test_selection_reset_between_questions():
    session = QuizSession([_q(correct=0), _q(correct=0)], ScoringConfig(require_answer=True))

    session.select_answer(0)
    session.advance()

    assert session.state.selected_index is None
    with pytest.raises(AnswerRequired):
        session.advance()


@pytest.mark.parametrize("index", [-1, 4, 10, True, "1", None])
def test_select_out_of_range_rejected(index):
    session = QuizSession([_q(n_options=4)])

    with pytest.raises(InvalidInput):
        session.select_answer(index)
    assert session.state.selected_index is None


def test_select_respects_option_count_per_question():
    session = QuizSession([_q(n_options=2), _q(n_options=5)])

    with pytest.raises(InvalidInput):
        session.select_answer(2)
    session.advance()
    session.select_answer(4)

    assert session.state.selected_index == 4


def test_terminal_transition():
    """Completion happens once; further advance() calls are rejected."""
    # Arrange
    session = QuizSession([_q(correct=0)])
    session.select_answer(0)
    session.advance()
    score = session.state.score

    # Act & Assert
    assert session.is_completed
    with pytest.raises(InvalidInput):
        session.advance()
    with pytest.raises(InvalidInput):
        session.select_answer(0)
    assert session.state.score == score
    assert session.summary().score == score


def test_summary_before_completion_rejected():
    session = QuizSession([_q()])

    with pytest.raises(InvalidInput):
        session.summary()


def test_progress_tracks_current_question():
    questions = [_q(text="one"), _q(text="two"), _q(text="three")]
    session = QuizSession(questions)

    session.advance()

    assert session.progress() == (2, 3)
    assert session.current_question.text == "two"


def test_retake_reset():
    """retake() resets score and progress but keeps questions and settings."""
    # Arrange
    settings = ScoringConfig(enable_negative=True, penalty=0.25)
    session = QuizSession([_q(correct=0), _q(correct=1)], settings)
    questions = session.questions
    session.select_answer(0)
    session.advance()
    session.select_answer(1)
    session.advance()
    assert session.summary().score == 2

    # Act
    session.retake()

    # Assert
    assert session.state.status is SessionStatus.IN_PROGRESS
    assert session.state.current_index == 0
    assert session.state.score == 0
    assert session.state.correct_count == 0
    assert session.state.selected_index is None
    assert session.questions is questions
    assert session.settings is settings
    with pytest.raises(InvalidInput):
        session.summary()


def test_retake_is_idempotent_mid_quiz():
    session = QuizSession([_q(), _q()])
    session.select_answer(0)
    session.advance()

    session.retake()
    session.retake()

    assert session.progress() == (1, 2)
    assert session.state.score == 0


def test_total_marks_fixed_at_creation():
    session = QuizSession([_q(marks=2), _q(marks=3)])

    assert session.total_possible_marks == 5


def test_from_quiz_uses_stored_settings():
    quiz = QuizRecord(title="T", questions=[_q(text="a"), _q(text="b")],
                      settings=ScoringConfig(require_answer=True))

    session = QuizSession.from_quiz(quiz)

    assert session.settings is quiz.settings
    assert [q.text for q in session.questions] == ["a", "b"]


def test_from_quiz_shuffles_once():
    """Shuffled order is chosen at creation and kept across retakes."""
    questions = [_q(text=str(i)) for i in range(10)]
    quiz = QuizRecord(title="T", questions=questions, settings=ScoringConfig(shuffle_questions=True))

    session = QuizSession.from_quiz(quiz, random.Random(7))
    order = [q.text for q in session.questions]
    session.retake()

    expected = list(questions)
    random.Random(7).shuffle(expected)
    assert order == [q.text for q in expected]
    assert [q.text for q in session.questions] == order
    assert [q.text for q in quiz.questions] == [str(i) for i in range(10)]
