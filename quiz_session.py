# quiz_session.py
import enum
import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from quiz_models import (
    AnswerRequired, InvalidInput, QuestionRecord, QuizRecord, QuizSummary, ScoringConfig,
)

logger = logging.getLogger(__name__)


class SessionStatus(enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class SessionState:
    """一次答题的全部状态，只能通过 QuizSession 修改"""
    questions: Tuple[QuestionRecord, ...]
    current_index: int = 0
    selected_index: Optional[int] = None
    correct_count: int = 0
    score: float = 0
    status: SessionStatus = SessionStatus.IN_PROGRESS


class QuizSession:
    """逐题作答：选择 → 下一题 → 结束统计，可重做"""

    def __init__(self, questions: Sequence[QuestionRecord], settings: Optional[ScoringConfig] = None):
        if not questions:
            raise InvalidInput("a quiz session needs at least one question")
        for i, q in enumerate(questions):
            reason = q.validate()
            if reason:
                raise InvalidInput(f"question {i + 1}: {reason}")

        self.settings = settings if settings is not None else ScoringConfig()
        self.state = SessionState(questions=tuple(questions))
        # 总分只按固定题目列表计算一次
        self.total_possible_marks = sum(q.marks for q in self.state.questions)
        self._summary: Optional[QuizSummary] = None

    @classmethod
    def from_quiz(cls, quiz: QuizRecord, rng: Optional[random.Random] = None) -> "QuizSession":
        """由存储中的试卷创建；设置了乱序时只在创建时打乱一次"""
        questions = list(quiz.questions)
        if quiz.settings.shuffle_questions:
            (rng or random).shuffle(questions)
        return cls(questions, quiz.settings)

    # -------------------------------------------------
    @property
    def questions(self) -> Tuple[QuestionRecord, ...]:
        return self.state.questions

    @property
    def total_questions(self) -> int:
        return len(self.state.questions)

    @property
    def is_completed(self) -> bool:
        return self.state.status is SessionStatus.COMPLETED

    @property
    def current_question(self) -> QuestionRecord:
        return self.state.questions[self.state.current_index]

    def progress(self) -> Tuple[int, int]:
        """(当前题号, 总题数)，仅用于显示"""
        return self.state.current_index + 1, self.total_questions

    # -------------------------------------------------
    def select_answer(self, index: int) -> None:
        if self.is_completed:
            raise InvalidInput("quiz is already completed")
        n_options = len(self.current_question.options)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < n_options:
            raise InvalidInput(f"option index {index!r} out of range [0, {n_options})")
        self.state.selected_index = index

    def advance(self) -> SessionStatus:
        """为当前题计分并进入下一题；最后一题之后进入 COMPLETED"""
        st = self.state
        if self.is_completed:
            raise InvalidInput("quiz is already completed")
        if self.settings.require_answer and st.selected_index is None:
            raise AnswerRequired("please select an option before continuing")

        q = self.current_question
        if st.selected_index is not None and st.selected_index == q.correct_index:
            st.correct_count += 1
            st.score += q.marks
        elif self.settings.enable_negative:
            # 不设下限，分数可以为负
            st.score -= self.settings.penalty

        if st.current_index < self.total_questions - 1:
            st.current_index += 1
            st.selected_index = None
        else:
            st.status = SessionStatus.COMPLETED
            self._summary = QuizSummary(
                score=st.score,
                total_possible_marks=self.total_possible_marks,
                correct_count=st.correct_count,
                total_questions=self.total_questions,
            )
            logger.debug("Quiz completed: %s", self._summary)
        return st.status

    def summary(self) -> QuizSummary:
        if self._summary is None:
            raise InvalidInput("summary is only available once the quiz is completed")
        return self._summary

    def retake(self) -> None:
        """重置进度和得分，题目与计分规则不变"""
        st = self.state
        st.current_index = 0
        st.selected_index = None
        st.correct_count = 0
        st.score = 0
        st.status = SessionStatus.IN_PROGRESS
        self._summary = None
