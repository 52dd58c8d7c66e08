"""Error types shared across the exam trainer."""


class ExamTrainerError(Exception):
    """Base class for exam trainer errors."""


class ConfigurationError(ExamTrainerError, ValueError):
    """The question bank or configuration cannot produce a valid test."""


class InvalidArgumentError(ExamTrainerError, ValueError):
    """A caller passed an out-of-range position or answer index."""


class PersistenceFailure(ExamTrainerError):
    """Reading or writing the backing key-value store failed."""
