# quiz_generator.py
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from quiz_config import AppConfig
from quiz_models import GenerationError, InvalidInput, ParseWarning, QuestionRecord
from quiz_parser import generate_fallback, parse_text

logger = logging.getLogger(__name__)

# 出题接口：(prompt, 超时秒数) -> 原始文本；失败时抛 GenerationError / TimeoutError / OSError
GenerateFn = Callable[[str, float], str]

PROMPT_TEMPLATE = """Generate {count} multiple choice questions about "{topic}" at {difficulty} difficulty level.

Requirements:
- Each question should have exactly 4 options (A, B, C, D)
- One option must be clearly correct
- Options should be plausible but distinct
- Questions should test understanding, not just memorization
- Difficulty should match: {difficulty} level

Format each question exactly like this:
Q1. [Question text here]
A) [Option A]
B) [Option B]
C) [Option C]
D) [Option D]
Correct: [A/B/C/D]

Q2. [Question text here]
A) [Option A]
B) [Option B]
C) [Option C]
D) [Option D]
Correct: [A/B/C/D]

Continue for all {count} questions. Make sure each question is well-written and tests genuine understanding of {topic}."""


def build_prompt(topic: str, count: int, difficulty: str) -> str:
    return PROMPT_TEMPLATE.format(topic=topic, count=count, difficulty=difficulty)


@dataclass
class GenerationResult:
    questions: List[QuestionRecord]
    warnings: List[ParseWarning] = field(default_factory=list)
    used_fallback: bool = False


class QuizGenerator:
    """调用 AI 出题，解析结果；失败或无可用题目时改用兜底题目"""

    def __init__(self, generate: GenerateFn, config: Optional[AppConfig] = None):
        self.generate = generate
        self.config = config or AppConfig()

    def _call(self, prompt: str) -> str:
        """调用出题接口，失败时最多重试 retry_attempts 次"""
        cfg = self.config
        attempts = max(1, cfg.retry_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return self.generate(prompt, cfg.api_timeout)
            except (GenerationError, TimeoutError, OSError) as e:
                if attempt == attempts:
                    raise
                logger.warning("AI generation attempt %d/%d failed: %s", attempt, attempts, e)

    def generate_questions(self, topic: str, count: Optional[int] = None,
                           difficulty: Optional[str] = None,
                           marks: Optional[float] = None) -> GenerationResult:
        cfg = self.config
        topic = (topic or "").strip()
        if not topic:
            raise InvalidInput("Please enter a topic for AI generation.")
        count = min(max(count or cfg.default_question_count, 1), cfg.max_questions)
        difficulty = difficulty or cfg.default_difficulty
        marks = marks or cfg.default_marks_per_question

        try:
            raw = self._call(build_prompt(topic, count, difficulty))
        except (GenerationError, TimeoutError, OSError) as e:
            if not cfg.enable_fallback_questions:
                raise
            logger.warning("AI generation failed (%s), using fallback questions", e)
            return GenerationResult(generate_fallback(topic, count, marks), used_fallback=True)

        questions, warnings = parse_text(raw, marks)
        if questions:
            return GenerationResult(questions[:count], warnings)

        # 没有解析出任何题目，由这里决定是否改用兜底题目
        if not cfg.enable_fallback_questions:
            raise GenerationError("No questions were generated. Please try again.")
        logger.warning("No usable questions in AI response (%d blocks dropped), using fallback",
                       len(warnings))
        return GenerationResult(generate_fallback(topic, count, marks), warnings, used_fallback=True)
