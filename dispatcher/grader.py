from dataclasses import dataclass, replace
from fractions import Fraction
from functools import reduce
from typing import Optional, Tuple

from .constant import ExecutionStatus, SubmissionStatus, Verdict
from .dispatcher import Dispatcher
from .exception import InvalidTransitionError
from .meta import Question, Submission, TestCase, TestCaseResult
from .result_factory import (
    Outcome,
    make_case_result,
    make_fault_case_result,
)
from .utils import logger


def outputs_match(actual: str, expected: str) -> bool:
    # only the ends are trimmed, inner whitespace is significant
    return (actual or '').strip() == (expected or '').strip()


def classify(outcome: Outcome, expected_output: str) -> Verdict:
    if outcome.status == ExecutionStatus.TIMEOUT:
        return Verdict.TIME_LIMIT_EXCEEDED
    if outcome.status == ExecutionStatus.ERROR:
        return Verdict.RUNTIME_ERROR
    if outputs_match(outcome.output, expected_output):
        return Verdict.PASSED
    return Verdict.FAILED


def score_percentage(obtained: int, total: int) -> int:
    '''round(obtained / total * 100) with halves rounded up, 0 if total is 0'''
    if total <= 0:
        return 0
    return int(Fraction(obtained * 100, total) + Fraction(1, 2))


@dataclass(frozen=True)
class GradeSummary:
    results: Tuple[TestCaseResult, ...] = ()
    totalMarks: int = 0
    obtainedMarks: int = 0
    executionTime: int = 0
    memoryUsed: int = 0

    def add(self, result: TestCaseResult) -> 'GradeSummary':
        return replace(
            self,
            results=self.results + (result, ),
            totalMarks=self.totalMarks + result.maxMarks,
            obtainedMarks=self.obtainedMarks + result.marksAwarded,
            executionTime=self.executionTime + result.executionTime,
            memoryUsed=max(self.memoryUsed, result.memoryUsed),
        )

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.status == Verdict.PASSED)

    @property
    def scorePercentage(self) -> int:
        return score_percentage(self.obtainedMarks, self.totalMarks)

    def apply_to(self, submission: Submission):
        submission.testCaseResults = list(self.results)
        submission.totalMarks = self.totalMarks
        submission.marksAwarded = self.obtainedMarks
        submission.scorePercentage = self.scorePercentage
        submission.passedTestCases = self.passed
        submission.totalTestCases = len(self.results)
        submission.executionTime = self.executionTime
        submission.memoryUsed = self.memoryUsed


class Grader:
    '''
    Grades a submission against the full test case suite of its question,
    hidden cases included, one case at a time.
    '''

    def __init__(self, dispatcher: Dispatcher, store):
        self.dispatcher = dispatcher
        self.store = store

    def grade_case(
        self,
        test_case: TestCase,
        question: Question,
        code: str,
        language,
    ) -> TestCaseResult:
        try:
            outcome = self.dispatcher.execute(
                code,
                language,
                test_case.input,
                question.timeLimit,
            )
        except Exception as exc:
            logger().error(
                f'test case execution fault [test_case={test_case.id}]: {exc}'
            )
            return make_fault_case_result(test_case, str(exc))
        verdict = classify(outcome, test_case.expectedOutput)
        logger().debug(
            f'test case graded [test_case={test_case.id}, verdict={verdict.value}]'
        )
        return make_case_result(test_case, verdict, outcome)

    def grade_cases(self, question: Question, code: str,
                    language) -> GradeSummary:
        return reduce(
            lambda summary, tc: summary.add(
                self.grade_case(tc, question, code, language)),
            question.testCases,
            GradeSummary(),
        )

    def grade(
        self,
        submission_id: str,
        question: Question,
        code: str,
        language,
    ) -> Optional[Submission]:
        submission = self.store.get(submission_id)
        if submission is None:
            logger().warning(f'submission not found [id={submission_id}]')
            return None
        if submission.status != SubmissionStatus.PENDING:
            raise InvalidTransitionError(
                f'submission already graded [id={submission_id}, '
                f'status={submission.status.value}]')
        try:
            submission.transition(SubmissionStatus.RUNNING)
            self.store.save(submission)
            summary = self.grade_cases(question, code, language)
            summary.apply_to(submission)
            submission.transition(SubmissionStatus.COMPLETED)
            logger().info(f'submission graded [id={submission_id}, '
                          f'marks={summary.obtainedMarks}/{summary.totalMarks}]')
        except Exception as exc:
            logger().exception(f'grading failed [id={submission_id}]')
            self.mark_error(submission, str(exc) or exc.__class__.__name__)
        self.store.save(submission)
        return submission

    def mark_error(self, submission: Submission, message: str):
        if submission.status.terminal:
            return
        if submission.status == SubmissionStatus.PENDING:
            submission.transition(SubmissionStatus.RUNNING)
        submission.testCaseResults = []
        submission.errorMessage = message
        submission.transition(SubmissionStatus.ERROR)
