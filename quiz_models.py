# quiz_models.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Dict, List, Optional


# ---------- 异常 ----------
class QuizError(Exception):
    """题库 / 答题相关错误的基类"""


class InvalidInput(QuizError, ValueError):
    """调用方传入了非法数据（空题目列表、越界选项、错误的计分配置等）"""


class AnswerRequired(QuizError):
    """要求必答时，未选择选项就尝试进入下一题"""


class GenerationError(QuizError):
    """AI 出题接口失败"""


def _number(value: Any, name: str) -> float:
    # bool 是 int 的子类，这里不接受
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number, got {value!r}")
    if isinstance(value, Real):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}") from None


@dataclass
class QuestionRecord:
    """单个选择题"""
    text: str                   # 题干
    options: List[str]          # 选项正文，按出现顺序
    correct_index: int = 0      # 正确选项下标（从 0 开始）
    marks: float = 1            # 答对得分

    def validate(self) -> Optional[str]:
        """合法返回 None，否则返回原因"""
        if not self.text or not self.text.strip():
            return "question text is empty"
        if len(self.options) < 2:
            return f"expected at least 2 options, found {len(self.options)}"
        if isinstance(self.correct_index, bool) or not isinstance(self.correct_index, int):
            return f"correct index {self.correct_index!r} is not an integer"
        if not 0 <= self.correct_index < len(self.options):
            return f"correct index {self.correct_index} out of range"
        if not self.options[self.correct_index]:
            return "correct option is empty"
        if self.marks <= 0:
            return f"marks must be positive, got {self.marks}"
        return None

    @property
    def is_valid(self) -> bool:
        return self.validate() is None

    @classmethod
    def from_dict(cls, d: Dict[str, Any], default_marks: float = 1) -> "QuestionRecord":
        marks = d.get("marks")
        try:
            correct_index = int(d.get("correctIndex", 0) or 0)
        except (TypeError, ValueError):
            raise InvalidInput(f"bad correctIndex: {d.get('correctIndex')!r}") from None
        return cls(
            text=str(d.get("text", "")).strip(),
            options=[str(o).strip() for o in d.get("options", [])],
            correct_index=correct_index,
            marks=_number(marks, "marks") if marks else default_marks,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "marks": self.marks,
        }


@dataclass
class ScoringConfig:
    """每份试卷的计分规则"""
    enable_negative: bool = False
    penalty: float = 0
    require_answer: bool = False
    marks_per_question: float = 1
    shuffle_questions: bool = False

    def __post_init__(self):
        if self.penalty is None:
            self.penalty = 0
        self.penalty = _number(self.penalty, "penalty")
        if self.penalty < 0:
            raise InvalidInput(f"penalty must be non-negative, got {self.penalty}")
        self.marks_per_question = _number(self.marks_per_question, "marks_per_question")
        if self.marks_per_question <= 0:
            raise InvalidInput("marks_per_question must be positive")

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "ScoringConfig":
        d = d or {}
        return cls(
            enable_negative=bool(d.get("enableNegative", False)),
            penalty=d.get("penalty") or 0,
            require_answer=bool(d.get("requireAnswer", False)),
            marks_per_question=d.get("marksPerQuestion") or 1,
            shuffle_questions=bool(d.get("shuffleQuestions", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enableNegative": self.enable_negative,
            "penalty": self.penalty,
            "requireAnswer": self.require_answer,
            "marksPerQuestion": self.marks_per_question,
            "shuffleQuestions": self.shuffle_questions,
        }


@dataclass(frozen=True)
class ParseWarning:
    """解析时被丢弃的题块"""
    block_index: int
    block: str
    reason: str

    def __str__(self):
        return f"block {self.block_index + 1}: {self.reason}"


@dataclass(frozen=True)
class QuizSummary:
    score: float
    total_possible_marks: float
    correct_count: int
    total_questions: int

    @property
    def ratio(self) -> float:
        if self.total_possible_marks:
            return self.score / self.total_possible_marks
        return self.correct_count / self.total_questions if self.total_questions else 0.0

    @property
    def passed(self) -> bool:
        return self.ratio >= 0.6


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class QuizRecord:
    """存储中的一份试卷"""
    title: str
    questions: List[QuestionRecord]
    settings: ScoringConfig = field(default_factory=ScoringConfig)
    topic: Optional[str] = None
    difficulty: str = "Medium"
    id: Optional[str] = None
    created_at: str = field(default_factory=_now)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "QuizRecord":
        settings = ScoringConfig.from_dict(d.get("settings"))
        return cls(
            id=d.get("id"),
            title=str(d.get("title") or ""),
            topic=d.get("topic") or None,
            difficulty=d.get("difficulty") or "Medium",
            questions=[QuestionRecord.from_dict(q, settings.marks_per_question)
                       for q in d.get("questions") or []],
            settings=settings,
            created_at=d.get("created_at") or _now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "questions": [q.to_dict() for q in self.questions],
            "settings": self.settings.to_dict(),
            "created_at": self.created_at,
        }
