"""Exceptions raised by the learning core and its persistence layer."""


class WordRecallError(Exception):
    """Base class for all errors raised by wordrecall."""


class InvalidRecord(WordRecallError, ValueError):
    """A stored progress record violates its invariants."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class StoreUnavailable(WordRecallError):
    """The progress store could not be reached."""


class NotAuthorized(WordRecallError, PermissionError):
    """The acting user may not touch the requested rows."""

    def __init__(self, acting_user_id: int, user_id: int = None):
        if user_id is None:
            message = f"User {acting_user_id} is not allowed to manage content"
        else:
            message = f"User {acting_user_id} cannot write progress of user {user_id}"
        super().__init__(message)
        self.acting_user_id = acting_user_id
        self.user_id = user_id
