"""Error taxonomy shared by the game engine, the stores and the HTTP layer."""


class QuizHostError(Exception):
    """Base class for every error raised by the quiz host core."""

    status_code = 500

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message}
        payload.update(self.details)
        return payload


class InvalidTransition(QuizHostError):
    """The requested action is not legal from the current match state."""

    status_code = 400


class SetupNotReady(InvalidTransition):
    """The readiness gate refused to let the match start."""


class QuestionUnavailable(InvalidTransition):
    """The assigned question set has no content for the requested question."""


class InvalidAnswerOption(QuizHostError):
    status_code = 400


class StaleWrite(QuizHostError):
    """A conditional write lost the race against a newer snapshot."""

    status_code = 409


class StoreUnavailable(QuizHostError):
    status_code = 503


class PermissionDenied(QuizHostError):
    status_code = 403
