"""
Exception hierarchy for the category update producer.

Every error raised by this package derives from CategoryUpdateError so the
process entry point can tell expected operational failures apart from bugs.
"""


class CategoryUpdateError(Exception):
    """Base exception for category update errors."""

    pass


class ConfigError(CategoryUpdateError):
    """Raised when the environment configuration is missing or invalid."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class DataAccessError(CategoryUpdateError):
    """Raised when a database query or connection fails."""

    pass


class CycleTimeoutError(CategoryUpdateError):
    """Raised when an operation runs past the cycle deadline."""

    pass


class PublishError(CategoryUpdateError):
    """Raised when an event could not be delivered to the message bus."""

    pass


class UnsupportedStatusError(CategoryUpdateError):
    """Raised when a ticket status has no category mapping."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"No category mapping for ticket status {status!r}")


class SchedulerStateError(CategoryUpdateError):
    """Raised when the scheduler is driven from an invalid state."""

    pass
