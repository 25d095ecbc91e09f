"""Domain errors raised by services and translated at the HTTP boundary."""


class DomainError(Exception):
    """Base class for expected, user-facing failures."""


class NotFoundError(DomainError):
    """Entity does not exist or is outside the caller's organization."""


class UnauthorizedError(DomainError):
    """Caller lacks the role required for the operation.

    Messages always start with "Unauthorized: ".
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"Unauthorized: {reason}")


class FeatureNotAvailableError(DomainError):
    """Organization plan does not include the requested feature."""


class CommentClosedError(DomainError):
    """Comment is resolved; its thread is read-only."""


class InvalidTransitionError(DomainError):
    """Requested status change is not allowed from the current status."""


class VersionConflictError(DomainError):
    """Proposal was modified since the editor loaded it."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Version conflict: expected {expected}, current is {actual}")
        self.expected = expected
        self.actual = actual


class FormValidationError(DomainError):
    """Form failed pre-persist validation. Carries messages per field."""

    def __init__(self, field_errors: dict[str, list[str]]) -> None:
        super().__init__("; ".join(f"{k}: {', '.join(v)}" for k, v in field_errors.items()))
        self.field_errors = field_errors
