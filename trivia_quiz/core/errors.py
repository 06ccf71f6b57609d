"""Exception hierarchy shared by the quiz services."""

from __future__ import annotations


class QuizError(Exception):
    """Base class for recoverable and fatal quiz errors."""


class NoValidQuestionsError(QuizError):
    """Raised when every question tier yields zero valid questions."""


class EmptyBankError(QuizError):
    """Raised when a session cannot start because no questions are available."""


class QuestionsLoadingError(QuizError):
    """Raised when a session is started while the question bank is still loading."""


class SessionStateError(QuizError):
    """Raised when a session operation is not valid in the current phase."""


class WriteError(QuizError):
    """Raised when an attempt could not be persisted."""


class StorageReadError(QuizError):
    """Raised when stored attempts could not be read."""


class RemoteServiceError(QuizError):
    """Raised when the remote backend cannot be reached or answers with an error."""


class ConfigError(QuizError):
    """Raised when configuration values cannot be parsed."""
