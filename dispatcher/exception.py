__all__ = (
    'SubmissionRejected',
    'MissingParameterError',
    'ContestNotFoundError',
    'ContestUnavailableError',
    'ContestNotAccessibleError',
    'QuestionNotFoundError',
    'ContestNotStartedError',
    'LanguageNotAllowedError',
    'AttemptLimitExceededError',
    'SubmissionNotFoundError',
    'SubmissionAccessDenied',
    'InvalidTransitionError',
)


class SubmissionRejected(Exception):
    '''
    Base of every validation failure raised before a submission record
    is created. `status_code` is the HTTP status the API layer answers with.
    '''
    status_code = 400


class MissingParameterError(SubmissionRejected):
    status_code = 400


class ContestNotFoundError(SubmissionRejected):
    status_code = 404


class ContestUnavailableError(SubmissionRejected):
    status_code = 502


class ContestNotAccessibleError(SubmissionRejected):
    status_code = 403


class QuestionNotFoundError(SubmissionRejected):
    status_code = 404


class ContestNotStartedError(SubmissionRejected):
    status_code = 403


class LanguageNotAllowedError(SubmissionRejected):
    status_code = 400


class AttemptLimitExceededError(SubmissionRejected):
    status_code = 403


class SubmissionNotFoundError(SubmissionRejected):
    status_code = 404


class SubmissionAccessDenied(SubmissionRejected):
    status_code = 403


class InvalidTransitionError(Exception):
    pass
