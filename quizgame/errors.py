class QuizError(Exception):
    """Base class for failures the quiz session turns into a user-facing message."""


class RemoteFetchError(QuizError):
    """The data store was unreachable or returned data we could not read."""


class GenerationError(QuizError):
    """The AI generation call failed or produced nothing usable."""
