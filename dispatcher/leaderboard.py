from typing import Dict, Iterable, List

from .meta import Contest, LeaderboardEntry, Participant, Submission


def _ordered(submissions: Iterable[Submission]) -> List[Submission]:
    return sorted(
        (s for s in submissions if s.userId),
        key=lambda s: (s.submittedAt, s.id),
    )


def build_leaderboard(
    contest: Contest,
    submissions: Iterable[Submission],
) -> List[LeaderboardEntry]:
    """
    Rank users by the sum of their best marks per question.

    Submissions are replayed oldest first whatever their status. A question
    only contributes its best score, so a later, worse attempt never lowers
    a total. Every attempt counts towards `totalTime`.

    Order: totalScore desc, problemsSolved desc, totalTime asc, userId asc.
    """
    entries: Dict[str, LeaderboardEntry] = {}
    for submission in _ordered(submissions):
        if submission.contestId != contest.id:
            continue
        entry = entries.get(submission.userId)
        if entry is None:
            entry = entries[submission.userId] = LeaderboardEntry(
                userId=submission.userId,
                maxPossibleScore=contest.maxPossibleScore,
            )
        best = entry.questionScores.get(submission.questionId, 0)
        if submission.marksAwarded > best:
            entry.totalScore += submission.marksAwarded - best
            entry.questionScores[submission.questionId] = \
                submission.marksAwarded
            if best == 0:
                entry.problemsSolved += 1
        entry.totalTime += submission.executionTime
        entry.lastSubmission = submission.submittedAt
    return sorted(
        entries.values(),
        key=lambda e:
        (-e.totalScore, -e.problemsSolved, e.totalTime, e.userId),
    )


def list_participants(submissions: Iterable[Submission]) -> List[Participant]:
    """Users with at least one submission, in order of their first one."""
    participants: Dict[str, Participant] = {}
    for submission in _ordered(submissions):
        if submission.userId not in participants:
            participants[submission.userId] = Participant(
                userId=submission.userId,
                registeredAt=submission.submittedAt,
            )
    return list(participants.values())
