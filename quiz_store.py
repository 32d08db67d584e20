# quiz_store.py
import json
import logging
import uuid
from pathlib import Path
from typing import List, Optional

from quiz_models import InvalidInput, QuizRecord

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 15


def validate_quiz(quiz: QuizRecord, max_questions: int = MAX_QUESTIONS) -> Optional[str]:
    """保存前检查试卷，合法返回 None，否则返回提示文字"""
    if not quiz.title or not quiz.title.strip():
        return "Quiz name is required."
    if not quiz.questions:
        return "Add at least one question."
    if len(quiz.questions) > max_questions:
        return f"Maximum is {max_questions} questions."
    for idx, q in enumerate(quiz.questions, start=1):
        if not q.text or not q.text.strip():
            return f"Question {idx}: enter the question text."
        if len([o for o in q.options if o]) < 2:
            return f"Question {idx}: provide at least two options."
        if not 0 <= q.correct_index < len(q.options) or not q.options[q.correct_index]:
            return f"Question {idx}: select a valid correct option."
        # 其余规则（如分值为正）与 QuestionRecord 保持一致
        if not q.is_valid:
            return f"Question {idx}: {q.validate()}."
    return None


class QuizStore:
    """把试卷按 <id>.json 保存在一个目录里"""

    def __init__(self, root: str, max_questions: int = MAX_QUESTIONS):
        self.root = Path(root)
        self.max_questions = max_questions

    def _path(self, quiz_id: str) -> Path:
        return self.root / f"{quiz_id}.json"

    def _load(self, path: Path) -> QuizRecord:
        """读取单个试卷文件；内容损坏或不合法时抛 InvalidInput"""
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise InvalidInput(f"{path.name}: not valid JSON ({e})") from e
        if not isinstance(raw, dict):
            raise InvalidInput(f"{path.name}: expected a JSON object")
        try:
            quiz = QuizRecord.from_dict(raw)
        except (AttributeError, TypeError, InvalidInput) as e:
            # 例如 questions 里混入了非对象的元素
            raise InvalidInput(f"{path.name}: malformed quiz record ({e})") from e
        invalid = validate_quiz(quiz, self.max_questions)
        if invalid:
            raise InvalidInput(f"{path.name}: {invalid}")
        return quiz

    def create_quiz(self, quiz: QuizRecord) -> str:
        """校验并保存试卷，返回新 id"""
        invalid = validate_quiz(quiz, self.max_questions)
        if invalid:
            raise InvalidInput(invalid)

        quiz.id = uuid.uuid4().hex
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self._path(quiz.id), "w", encoding="utf-8") as f:
            json.dump(quiz.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info("Saved quiz %s (%d questions) to %s", quiz.id, len(quiz.questions), self.root)
        return quiz.id

    def get_quiz(self, quiz_id: str) -> Optional[QuizRecord]:
        """找不到时返回 None；文件损坏时抛 InvalidInput"""
        # id 只允许是文件名，不能跳出目录
        if not quiz_id or Path(quiz_id).name != quiz_id:
            return None
        path = self._path(quiz_id)
        if not path.is_file():
            return None
        return self._load(path)

    def list_quizzes(self) -> List[QuizRecord]:
        """按创建时间倒序，跳过损坏的文件"""
        if not self.root.is_dir():
            return []
        quizzes = []
        for path in self.root.glob("*.json"):
            try:
                quizzes.append(self._load(path))
            except InvalidInput as e:
                logger.warning("Skipping unreadable quiz file: %s", e)
        quizzes.sort(key=lambda q: q.created_at, reverse=True)
        return quizzes
