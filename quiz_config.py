# quiz_config.py
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

from quiz_models import InvalidInput

ENV_PREFIX = "QUIZ_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AppConfig:
    """应用常量，可由 QUIZ_* 环境变量覆盖"""
    max_questions: int = 15
    default_marks_per_question: float = 1.0
    default_difficulty: str = "Medium"
    default_question_count: int = 5
    api_timeout: float = 30.0        # 秒
    retry_attempts: int = 3
    enable_fallback_questions: bool = True
    enable_negative_marks: bool = True
    enable_question_shuffling: bool = True
    store_dir: str = "quizzes"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        environ = os.environ if environ is None else environ
        cfg = cls()
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            overrides[f.name] = _convert(f.name, raw, type(getattr(cfg, f.name)))
        return replace(cfg, **overrides)


def _convert(name: str, raw: str, kind: type):
    raw = raw.strip()
    if kind is bool:
        if raw.lower() in _TRUE:
            return True
        if raw.lower() in _FALSE:
            return False
        raise InvalidInput(f"{ENV_PREFIX}{name.upper()}: expected a boolean, got {raw!r}")
    if kind in (int, float):
        try:
            value = int(raw) if kind is int else float(raw)
        except ValueError:
            raise InvalidInput(f"{ENV_PREFIX}{name.upper()}: expected a number, got {raw!r}") from None
        if value <= 0:
            raise InvalidInput(f"{ENV_PREFIX}{name.upper()}: must be positive")
        return value
    return raw
