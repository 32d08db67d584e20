# quiz_parser.py
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from docx import Document

from quiz_models import ParseWarning, QuestionRecord

logger = logging.getLogger(__name__)

# 题号行：“Q1.”、“Q12.” ……（前瞻切分，题号行归属于它引出的题块）
_block_split = re.compile(r'(?m)^(?=[ \t]*Q\d+\.)')
q_pat = re.compile(r'^Q\d+\.\s*(.+)')

# 选项：A-D 加右括号，如 “A) 选项”
opt_pat = re.compile(r'^([ABCD])\)\s*(.+)')

# 正确答案：“Correct:” 后第一个选项字母
ans_pat = re.compile(r'Correct:\s*[(\[]?([ABCD])\b')

EXPECTED_OPTIONS = 4

# 兜底题目模板：(题干, 选项, 正确下标)
FALLBACK_TEMPLATES = (
    ("What is the primary purpose of {topic}?",
     ["To improve performance", "To enhance security",
      "To simplify development", "To reduce costs"],
     2),
    ("Which of the following best describes {topic}?",
     ["A programming language", "A development framework",
      "A design pattern", "A software tool"],
     1),
    ("When working with {topic}, what should you consider first?",
     ["Performance optimization", "Security requirements",
      "User requirements", "Technical constraints"],
     2),
)
DEFAULT_TOPIC = "this topic"


def _split_blocks(raw_text: str) -> List[str]:
    return [b for b in _block_split.split(raw_text or "") if b.strip()]


def _parse_block(block: str, marks: float) -> Tuple[Optional[QuestionRecord], str]:
    """解析单个题块，失败时返回 (None, 原因)"""
    lines = [ln.strip() for ln in block.strip().splitlines() if ln.strip()]

    # ---------- 1. 题干 ----------
    m_q = q_pat.match(lines[0])
    if not m_q:
        return None, "missing question text"
    text = m_q.group(1).strip()

    # ---------- 2. 选项（保持出现顺序，不按字母重排）----------
    options: List[str] = []
    letters: List[str] = []
    for line in lines[1:]:
        m_opt = opt_pat.match(line)
        if m_opt:
            letters.append(m_opt.group(1))
            options.append(m_opt.group(2).strip())

    if len(options) != EXPECTED_OPTIONS:
        return None, f"expected {EXPECTED_OPTIONS} options, found {len(options)}"

    # ---------- 3. 正确答案（第一个匹配行生效，默认 0）----------
    correct_index = 0
    for line in lines:
        m_ans = ans_pat.search(line)
        if m_ans:
            if m_ans.group(1) in letters:
                correct_index = letters.index(m_ans.group(1))
            break

    return QuestionRecord(text, options, correct_index, marks), ""


def parse_text(raw_text: str, default_marks: float = 1) -> Tuple[List[QuestionRecord], List[ParseWarning]]:
    """
    把 AI 生成的文本解析为题目列表，格式：
      Q1. 题干
      A) ... B) ... C) ... D) ...
      Correct: B
    不合格的题块丢弃并记录 ParseWarning，不抛异常。
    """
    questions: List[QuestionRecord] = []
    warnings: List[ParseWarning] = []

    for i, block in enumerate(_split_blocks(raw_text)):
        q, reason = _parse_block(block, default_marks)
        if q is None:
            w = ParseWarning(i, block, reason)
            logger.warning("Dropped question %s", w)
            warnings.append(w)
            continue
        questions.append(q)

    logger.debug("Parsed %d questions, dropped %d blocks", len(questions), len(warnings))
    return questions, warnings


def parse_docx(file_path: str, default_marks: float = 1) -> Tuple[List[QuestionRecord], List[ParseWarning]]:
    """从 Word 题库读取段落后按文本格式解析"""
    doc = Document(file_path)
    text = "\n".join(para.text for para in doc.paragraphs)
    return parse_text(text, default_marks)


def parse_file(file_path: str, default_marks: float = 1) -> Tuple[List[QuestionRecord], List[ParseWarning]]:
    path = Path(file_path)
    if path.suffix.lower() == ".docx":
        return parse_docx(str(path), default_marks)
    return parse_text(path.read_text(encoding="utf-8"), default_marks)


def generate_fallback(topic: str, count: int, marks: float = 1) -> List[QuestionRecord]:
    """AI 不可用时的固定题目，按模板轮换凑够 count 道"""
    topic = (topic or "").strip() or DEFAULT_TOPIC
    questions = []
    for i in range(max(0, count)):
        text, options, correct_index = FALLBACK_TEMPLATES[i % len(FALLBACK_TEMPLATES)]
        questions.append(QuestionRecord(text.format(topic=topic), list(options), correct_index, marks))
    return questions
