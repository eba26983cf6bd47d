from enum import Enum
from typing import Optional


class Language(str, Enum):
    C = 'c'
    CPP = 'cpp'
    JAVA = 'java'
    PYTHON = 'python'
    JAVASCRIPT = 'javascript'

    @classmethod
    def parse(cls, tag) -> Optional['Language']:
        if isinstance(tag, cls):
            return tag
        try:
            return cls(str(tag).strip().lower())
        except ValueError:
            return None


DEFAULT_ALLOWED_LANGUAGES = [
    Language.C,
    Language.CPP,
    Language.JAVA,
    Language.PYTHON,
]


class ExecutionStatus(str, Enum):
    SUCCESS = 'success'
    ERROR = 'error'
    TIMEOUT = 'timeout'


class Verdict(str, Enum):
    PASSED = 'passed'
    FAILED = 'failed'
    RUNTIME_ERROR = 'runtime_error'
    TIME_LIMIT_EXCEEDED = 'time_limit_exceeded'
    MEMORY_LIMIT_EXCEEDED = 'memory_limit_exceeded'


class SubmissionStatus(str, Enum):
    PENDING = 'pending'
    RUNNING = 'running'
    COMPLETED = 'completed'
    ERROR = 'error'

    @property
    def terminal(self) -> bool:
        return self in {SubmissionStatus.COMPLETED, SubmissionStatus.ERROR}


class Difficulty(str, Enum):
    EASY = 'Easy'
    MEDIUM = 'Medium'
    HARD = 'Hard'


PRIVILEGED_ROLES = frozenset({'admin', 'instructor'})

TIME_LIMIT_MESSAGE = 'Time limit exceeded'
UNSUPPORTED_LANGUAGE_MESSAGE = 'Unsupported language'
