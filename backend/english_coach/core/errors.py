"""Domain exceptions raised by the session core and mapped to HTTP in main."""


class CoachError(Exception):
    """Base class for English Coach errors."""


class SessionNotFoundError(CoachError):
    """Session is absent or belongs to another learner.

    Both cases share this error so callers cannot test for other
    learners' sessions.
    """

    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id


class SessionClosedError(CoachError):
    """A turn was submitted to a session that has already ended."""

    def __init__(self, session_id: str):
        super().__init__("Session has already ended")
        self.session_id = session_id


class UpstreamError(CoachError):
    """The language model call failed or returned an unusable payload."""


class PersistenceError(CoachError):
    """A store read or write failed."""

