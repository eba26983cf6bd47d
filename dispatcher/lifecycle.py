import threading
from typing import Callable, List, Optional, Tuple

from .config import CUSTOM_RUN_TIME_LIMIT
from .constant import ExecutionStatus, Language
from .exception import *
from .grader import Grader, outputs_match
from .meta import Contest, Question, Submission, utcnow
from .repository import ContestRepository, SubmissionStore
from .result_factory import (
    make_outcome,
    make_run_case_result,
    make_run_result,
    make_submission_view,
)
from .utils import logger


class SubmissionLifecycle:
    '''
    Owns submission records from the submit request to their terminal
    state: validates the request, creates the pending record, grades it
    inline and answers with the caller's view of the result.
    '''

    def __init__(
        self,
        contests: ContestRepository,
        store: SubmissionStore,
        grader: Grader,
        clock: Callable = utcnow,
        custom_time_limit: int = CUSTOM_RUN_TIME_LIMIT,
    ):
        self.contests = contests
        self.store = store
        self.grader = grader
        self.clock = clock
        self.custom_time_limit = custom_time_limit
        self._attempt_lock = threading.Lock()

    @property
    def dispatcher(self):
        return self.grader.dispatcher

    def _find_contest(self, contest_id: str) -> Contest:
        contest = self.contests.get(contest_id)
        if contest is None:
            raise ContestNotFoundError('Contest not found')
        return contest

    def _find_question(self, contest: Contest, question_id: str) -> Question:
        question = contest.question(question_id)
        if question is None:
            raise QuestionNotFoundError('Question not found')
        return question

    def validate(
        self,
        contest_id: str,
        question_id: str,
        code: str,
        language,
        user_id: str,
    ) -> Tuple[Contest, Question, Language]:
        '''
        Every check that does not depend on earlier submissions, in the
        order the caller gets to see the failures.
        '''
        if not all((contest_id, question_id, code, language, user_id)):
            raise MissingParameterError('All fields are required')
        now = self.clock()
        contest = self._find_contest(contest_id)
        if not contest.is_accessible(now):
            raise ContestNotAccessibleError('Contest is not accessible')
        question = self._find_question(contest, question_id)
        if not contest.has_started(now):
            raise ContestNotStartedError('Contest has not started yet')
        lang = Language.parse(language)
        if lang is None or not contest.allows(lang):
            raise LanguageNotAllowedError(
                'Programming language not allowed for this contest')
        return contest, question, lang

    def create(
        self,
        contest_id: str,
        question_id: str,
        code: str,
        language,
        user_id: str,
    ) -> Tuple[Submission, Question]:
        contest, question, lang = self.validate(
            contest_id,
            question_id,
            code,
            language,
            user_id,
        )
        # count and create under one lock so concurrent requests of the
        # same user cannot both take the last attempt
        with self._attempt_lock:
            attempts = self.store.count(contest.id, question.id, user_id)
            if attempts >= contest.maxAttempts:
                raise AttemptLimitExceededError(
                    'Maximum submission attempts reached')
            submission = Submission(
                contestId=contest.id,
                questionId=question.id,
                userId=user_id,
                code=code,
                language=lang,
                maxMarks=question.totalMarks,
                submittedAt=self.clock(),
            )
            self.store.save(submission)
        logger().info(f'submission created [id={submission.id}, '
                      f'user={user_id}, question={question.id}, '
                      f'attempt={attempts + 1}/{contest.maxAttempts}]')
        return submission, question

    def submit(
        self,
        contest_id: str,
        question_id: str,
        code: str,
        language,
        user_id: str,
        privileged: bool = False,
    ) -> dict:
        submission, question = self.create(
            contest_id,
            question_id,
            code,
            language,
            user_id,
        )
        try:
            graded = self.grader.grade(
                submission.id,
                question,
                submission.code,
                submission.language,
            )
        except Exception as e:
            logger().exception(
                f'submission processing failed [id={submission.id}]')
            return make_submission_view(
                self._record_failure(submission, str(e)), privileged)
        return make_submission_view(graded or submission, privileged)

    def _record_failure(self, submission: Submission,
                        message: str) -> Submission:
        '''
        Move the stored record to `error` after grading blew up. The stored
        state wins over the in-flight copy, which may be ahead of it.
        '''
        stored = self.store.get(submission.id) or submission
        if stored.status.terminal:
            return stored
        self.grader.mark_error(stored, message)
        try:
            self.store.save(stored)
        except Exception:
            logger().exception(
                f'could not persist error state [id={submission.id}]')
        return stored

    def run(
        self,
        code: str,
        language,
        input: str = '',
        contest_id: Optional[str] = None,
        question_id: Optional[str] = None,
    ) -> dict:
        '''
        Execute code without scoring or persisting anything. With a target
        question only its visible test cases are used, otherwise the raw
        input is run once.
        '''
        if not code or not language:
            raise MissingParameterError('Code and language are required')
        if not (contest_id and question_id):
            outcome = self.dispatcher.execute(code, language, input or '',
                                              self.custom_time_limit)
            return make_run_result(outcome)
        contest = self._find_contest(contest_id)
        question = self._find_question(contest, question_id)
        results = []
        for test_case in question.visible_test_cases():
            try:
                outcome = self.dispatcher.execute(
                    code,
                    language,
                    test_case.input,
                    question.timeLimit,
                )
            except Exception as e:
                logger().error(f'run fault [test_case={test_case.id}]: {e}')
                outcome = make_outcome(ExecutionStatus.ERROR, error=str(e))
            is_correct = (outcome.status == ExecutionStatus.SUCCESS
                          and outputs_match(outcome.output,
                                            test_case.expectedOutput))
            results.append(make_run_case_result(test_case, outcome,
                                                is_correct))
        return {
            'testResults': results,
            'totalVisible': len(results),
            'passedVisible': sum(1 for r in results if r['isCorrect']),
        }

    def get(
        self,
        submission_id: str,
        viewer_id: Optional[str] = None,
        privileged: bool = False,
    ) -> dict:
        submission = self.store.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError('Submission not found')
        if not privileged and submission.userId != viewer_id:
            raise SubmissionAccessDenied('Access denied')
        return make_submission_view(submission, privileged)

    def history(
        self,
        contest_id: str,
        user_id: str,
        question_id: Optional[str] = None,
    ) -> List[dict]:
        '''The user's submissions, newest first.'''
        submissions = self.store.find(
            contest_id=contest_id,
            user_id=user_id,
            question_id=question_id,
        )
        return [make_submission_view(s) for s in reversed(submissions)]
