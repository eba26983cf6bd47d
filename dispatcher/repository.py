import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from . import file_manager
from .config import CONTEST_CACHE_TTL
from .exception import ContestUnavailableError
from .meta import Contest, Submission
from .utils import logger


class SubmissionStore:
    '''
    Holds submission records. Callers always get copies, a record only
    changes when it is saved back.

    With `root_dir` set, every save is also written to disk as one JSON
    file per submission and existing files are loaded on start. Files of a
    deleted contest are moved to `backup_dir` when one is given, removed
    otherwise.
    '''

    def __init__(
        self,
        root_dir: Optional[Path] = None,
        backup_dir: Optional[Path] = None,
    ):
        self.root_dir = Path(root_dir) if root_dir is not None else None
        self.backup_dir = Path(backup_dir) if backup_dir is not None else None
        self._records: Dict[str, Submission] = {}
        self._lock = threading.Lock()
        if self.root_dir is not None:
            for submission in file_manager.load_submissions(self.root_dir):
                self._records[submission.id] = submission
            logger().info(f'loaded {len(self._records)} submissions '
                          f'[root={self.root_dir}]')

    def __len__(self):
        return len(self._records)

    def save(self, submission: Submission):
        with self._lock:
            # memory only follows a successful write
            if self.root_dir is not None:
                file_manager.write_submission(self.root_dir, submission)
            self._records[submission.id] = submission.model_copy(deep=True)

    def get(self, submission_id: str) -> Optional[Submission]:
        with self._lock:
            submission = self._records.get(submission_id)
        if submission is None:
            return None
        return submission.model_copy(deep=True)

    def find(
        self,
        contest_id: Optional[str] = None,
        user_id: Optional[str] = None,
        question_id: Optional[str] = None,
    ) -> List[Submission]:
        '''Matching submissions, oldest first.'''
        with self._lock:
            records = [
                s.model_copy(deep=True) for s in self._records.values()
                if (contest_id is None or s.contestId == contest_id) and (
                    user_id is None or s.userId == user_id) and (
                        question_id is None or s.questionId == question_id)
            ]
        records.sort(key=lambda s: (s.submittedAt, s.id))
        return records

    def count(self, contest_id: str, question_id: str, user_id: str) -> int:
        with self._lock:
            return sum(1 for s in self._records.values()
                       if s.contestId == contest_id
                       and s.questionId == question_id and s.userId == user_id)

    def delete_contest(self, contest_id: str) -> int:
        with self._lock:
            ids = [
                _id for _id, s in self._records.items()
                if s.contestId == contest_id
            ]
            for _id in ids:
                del self._records[_id]
                if self.root_dir is None:
                    continue
                if self.backup_dir is not None:
                    file_manager.backup_data(_id, self.root_dir,
                                             self.backup_dir)
                else:
                    file_manager.clean_data(_id, self.root_dir)
        logger().info(f'submissions deleted [contest={contest_id}, '
                      f'count={len(ids)}]')
        return len(ids)


class ContestRepository:
    '''
    Contests belong to the backend. Registered contests are kept for good,
    fetched ones are cached for `ttl` seconds.
    '''

    def __init__(
        self,
        fetch: Optional[Callable[[str], Optional[Contest]]] = None,
        ttl: float = CONTEST_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetch = fetch
        self.ttl = ttl
        self.clock = clock
        # contest id -> (contest, expire time or None)
        self._contests: Dict[str, Tuple[Contest, Optional[float]]] = {}
        self._lock = threading.Lock()

    def add(self, contest: Contest):
        with self._lock:
            self._contests[contest.id] = (contest, None)

    def remove(self, contest_id: str):
        with self._lock:
            self._contests.pop(contest_id, None)

    def get(self, contest_id: str) -> Optional[Contest]:
        with self._lock:
            cached = self._contests.get(contest_id)
        if cached is not None:
            contest, expire = cached
            if expire is None or expire > self.clock():
                return contest
        if self.fetch is None:
            return None
        try:
            contest = self.fetch(contest_id)
        except (PermissionError, RuntimeError) as e:
            logger().error(f'contest fetch failed [contest={contest_id}]: '
                           f'{e!r}')
            raise ContestUnavailableError(
                'Contest service unavailable') from e
        if contest is not None:
            with self._lock:
                self._contests[contest_id] = (contest,
                                              self.clock() + self.ttl)
        return contest
