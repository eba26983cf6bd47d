from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    Field,
    computed_field,
    field_validator,
)

from .constant import (
    DEFAULT_ALLOWED_LANGUAGES,
    Difficulty,
    Language,
    SubmissionStatus,
    Verdict,
)
from .exception import InvalidTransitionError


def _new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(v: datetime) -> datetime:
    # naive timestamps from the backend are UTC
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class TestCase(BaseModel):
    __test__ = False

    id: str = Field(default_factory=_new_id)
    input: str = ''
    expectedOutput: str = ''
    marks: int = Field(ge=0)
    isHidden: bool = False


class Question(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str = ''
    description: str = ''
    difficulty: Optional[Difficulty] = None
    timeLimit: int = Field(default=2000, ge=1000, le=10000)  # ms
    memoryLimit: int = Field(default=256, ge=128, le=512)  # MB, advisory
    testCases: List[TestCase] = Field(default_factory=list)

    @computed_field
    @property
    def totalMarks(self) -> int:
        return sum(tc.marks for tc in self.testCases)

    def visible_test_cases(self) -> List[TestCase]:
        return [tc for tc in self.testCases if not tc.isHidden]


class Contest(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = ''
    description: str = ''
    startTime: datetime
    endTime: datetime
    isActive: bool = True
    allowedLanguages: List[Language] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_LANGUAGES))
    maxAttempts: int = Field(default=1, ge=1)
    questions: List[Question] = Field(default_factory=list)

    @field_validator('startTime', 'endTime')
    @classmethod
    def _coerce_timezone(cls, v):
        return _as_aware(v)

    @computed_field
    @property
    def maxPossibleScore(self) -> int:
        return sum(q.totalMarks for q in self.questions)

    def question(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def is_accessible(self, now: datetime) -> bool:
        return self.isActive and _as_aware(now) < self.endTime

    def has_started(self, now: datetime) -> bool:
        return _as_aware(now) >= self.startTime

    def allows(self, language: Language) -> bool:
        return language in self.allowedLanguages


class TestCaseResult(BaseModel):
    __test__ = False

    testCaseId: str
    status: Verdict
    executionTime: int = 0  # ms
    memoryUsed: int = 0  # KB
    output: str = ''
    error: str = ''
    marksAwarded: int = 0
    maxMarks: int = 0
    isHidden: bool = False

    def redacted(self) -> 'TestCaseResult':
        if not self.isHidden:
            return self
        return self.model_copy(update={'output': '', 'error': ''})


_TRANSITIONS = {
    SubmissionStatus.PENDING: {SubmissionStatus.RUNNING},
    SubmissionStatus.RUNNING: {
        SubmissionStatus.COMPLETED,
        SubmissionStatus.ERROR,
    },
    SubmissionStatus.COMPLETED: set(),
    SubmissionStatus.ERROR: set(),
}


class Submission(BaseModel):
    id: str = Field(default_factory=_new_id)
    contestId: str
    questionId: str
    userId: str
    code: str
    language: Language
    status: SubmissionStatus = SubmissionStatus.PENDING
    testCaseResults: List[TestCaseResult] = Field(default_factory=list)
    totalMarks: int = 0
    marksAwarded: int = 0
    scorePercentage: int = 0
    maxMarks: int = 0
    passedTestCases: int = 0
    totalTestCases: int = 0
    executionTime: int = 0
    memoryUsed: int = 0
    submittedAt: datetime = Field(default_factory=utcnow)
    errorMessage: str = ''

    @field_validator('submittedAt')
    @classmethod
    def _coerce_timezone(cls, v):
        return _as_aware(v)

    def transition(self, status: SubmissionStatus):
        if status not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f'{self.status.value} -> {status.value} [id={self.id}]')
        self.status = status


class LeaderboardEntry(BaseModel):
    userId: str
    totalScore: int = 0
    problemsSolved: int = 0
    totalTime: int = 0
    lastSubmission: Optional[datetime] = None
    maxPossibleScore: int = 0
    questionScores: Dict[str, int] = Field(default_factory=dict)


class Participant(BaseModel):
    userId: str
    registeredAt: datetime
