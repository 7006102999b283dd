"""Error taxonomy for session recording and league aggregation.

Validation failures subclass ``ValueError`` and missing records subclass
``LookupError`` so the HTTP routers can map them to 400 and 404 the same way
they map every other service error.
"""


class GameNightError(Exception):
    """Base class for all errors raised by the league core."""


class ValidationError(GameNightError, ValueError):
    """Caller-fixable input problem."""


class ConflictError(ValidationError):
    """Request clashes with existing data (duplicate name, or a delete blocked by history)."""


class EmptySessionError(ValidationError):
    def __init__(self) -> None:
        super().__init__("A session needs at least one player.")


class DuplicatePlayerError(ValidationError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} appears more than once in this session.")
        self.user_id = user_id


class InvalidTemplateError(ValidationError):
    """Template shape is invalid or does not match the submitted scores."""


class UnknownFieldError(InvalidTemplateError):
    def __init__(self, keys: list[str]) -> None:
        joined = ", ".join(sorted(keys))
        super().__init__(f"Score details contain fields not in the template: {joined}.")
        self.keys = keys


class NotFoundError(GameNightError, LookupError):
    """Unknown game, group, user, template or session id."""


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__("User not found.")
        self.user_id = user_id


class IntegrityError(GameNightError):
    """A multi-row write failed and was rolled back."""


class StorageUnavailableError(GameNightError):
    """The database could not be reached."""
