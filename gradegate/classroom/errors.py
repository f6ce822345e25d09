"""
Error types raised by the gradegate classroom components.

"No record yet" is not an error: lookups return an empty list, None or
False. These exceptions cover invalid input, bad stored data and storage
failures.
"""


class GradegateError(Exception):
    """Base class for all gradegate errors."""


class CatalogError(GradegateError):
    """The class catalog is inconsistent (duplicate ids, missing or cyclic prerequisites)."""


class NotFoundError(GradegateError, LookupError):
    """A requested class or access record does not exist."""


class ClassNotFoundError(NotFoundError):
    def __init__(self, class_id: str):
        super().__init__(f"Class not found in catalog: {class_id}")
        self.class_id = class_id


class AccessNotFoundError(NotFoundError):
    def __init__(self, user_id: str, class_id: str):
        super().__init__(f"No access record for user {user_id} in class {class_id}")
        self.user_id = user_id
        self.class_id = class_id


class DeserializationFailure(GradegateError):
    """Persisted JSON is malformed or does not match the access schema."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Could not decode stored value for {key}: {reason}")
        self.key = key
        self.reason = reason


class TransientIOFailure(GradegateError):
    """A persistence read or write failed or timed out. Safe to retry."""
