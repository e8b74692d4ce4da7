"""
Storage errors.
"""


class StorageError(Exception):
    """Base class for errors raised by the store."""


class NotFoundError(StorageError):
    """A user or interaction record does not exist."""

    def __init__(self, detail: str = "not found"):
        super().__init__(detail)


class AlreadyExistsError(StorageError):
    """A unique user name is already taken."""

    def __init__(self, detail: str = "already exists"):
        super().__init__(detail)


class InvalidUsernameError(StorageError):
    def __init__(self, name: str):
        super().__init__(
            f"username {name!r} must be 3-64 characters, alphanumeric and underscores only"
        )
