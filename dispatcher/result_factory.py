"""
Factory functions for creating standardized result records.

This module provides consistent result structures for:
- Dispatcher outcomes (one execution of code against one input)
- Test case results (graded verdicts persisted inside a submission)
- API views (submit / run responses, hidden results redacted)
"""

from dataclasses import dataclass

from .constant import ExecutionStatus, Verdict
from .meta import Submission, TestCase, TestCaseResult


@dataclass
class Outcome:
    status: ExecutionStatus
    output: str = ""
    error: str = ""
    executionTimeMs: int = 0
    memoryUsedKb: int = 0


def make_outcome(
    status: ExecutionStatus,
    output: str = "",
    error: str | None = "",
    exec_time: float = 0,
    mem_usage: int | None = 0,
) -> Outcome:
    """
    Build a dispatcher outcome.

    Args:
        status: "success", "error" or "timeout"
        output: Captured stdout (possibly partial)
        error: Diagnostic text, None is normalized to ""
        exec_time: Wall-clock time in ms
        mem_usage: Memory usage in KB, None when the invoker did not report it

    Returns:
        Outcome record
    """
    return Outcome(
        status=ExecutionStatus(status),
        output=output or "",
        error=error or "",
        executionTimeMs=int(round(exec_time)),
        memoryUsedKb=int(mem_usage or 0),
    )


def make_case_result(
    test_case: TestCase,
    verdict: Verdict,
    outcome: Outcome,
) -> TestCaseResult:
    """
    Build a single graded test case result from a dispatcher outcome.
    Marks are only awarded for a passed verdict.
    """
    return TestCaseResult(
        testCaseId=test_case.id,
        status=verdict,
        executionTime=outcome.executionTimeMs,
        memoryUsed=outcome.memoryUsedKb,
        output=outcome.output,
        error=outcome.error,
        marksAwarded=test_case.marks if verdict == Verdict.PASSED else 0,
        maxMarks=test_case.marks,
        isHidden=test_case.isHidden,
    )


def make_fault_case_result(
    test_case: TestCase,
    message: str,
) -> TestCaseResult:
    """
    Build the result of a test case whose execution raised instead of
    returning an outcome.
    """
    return TestCaseResult(
        testCaseId=test_case.id,
        status=Verdict.RUNTIME_ERROR,
        error=message,
        marksAwarded=0,
        maxMarks=test_case.marks,
        isHidden=test_case.isHidden,
    )


def make_run_case_result(
    test_case: TestCase,
    outcome: Outcome,
    is_correct: bool,
) -> dict:
    """Build one entry of an ad-hoc run against a visible test case."""
    return {
        "testCaseId": test_case.id,
        "input": test_case.input,
        "expectedOutput": test_case.expectedOutput,
        "actualOutput": outcome.output,
        "status": outcome.status.value,
        "error": outcome.error,
        "executionTime": outcome.executionTimeMs,
        "isCorrect": is_correct,
        "marks": test_case.marks if is_correct else 0,
    }


def make_run_result(outcome: Outcome) -> dict:
    return {
        "status": outcome.status.value,
        "output": outcome.output,
        "error": outcome.error,
        "executionTime": outcome.executionTimeMs,
    }


def make_submission_view(
    submission: Submission,
    privileged: bool = False,
) -> dict:
    """
    Build the caller-facing view of a submission.

    Hidden test case results keep their verdict, marks and timing but lose
    output and error text unless the viewer is privileged.
    """
    results = submission.testCaseResults
    if not privileged:
        results = [r.redacted() for r in results]
    return {
        "submissionId": submission.id,
        "contestId": submission.contestId,
        "questionId": submission.questionId,
        "userId": submission.userId,
        "language": submission.language.value,
        "status": submission.status.value,
        "marksAwarded": submission.marksAwarded,
        "totalMarks": submission.totalMarks,
        "scorePercentage": submission.scorePercentage,
        "passedTestCases": submission.passedTestCases,
        "totalTestCases": submission.totalTestCases,
        "testCaseResults": [r.model_dump(mode="json") for r in results],
        "executionTime": submission.executionTime,
        "memoryUsed": submission.memoryUsed,
        "submittedAt": submission.submittedAt.isoformat(),
        "errorMessage": submission.errorMessage,
    }
