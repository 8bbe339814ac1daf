# talent_mapping/errors.py
from typing import List, Optional


class TalentMappingError(Exception):
    """Base class for every error raised by this package."""
    pass


# --- Validation ---

class ScoreValidationError(TalentMappingError, ValueError):
    """Scores out of range or a payload that cannot be built. Never retried."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class AssessmentConfigurationError(ScoreValidationError):
    """Raised by the transformer when an instrument's scores are missing."""
    pass


class IncompleteAssessmentError(ScoreValidationError):
    """Raised when a session is submitted before every question is answered."""
    pass


class InvalidAnswerError(TalentMappingError, ValueError):
    """Answer key outside the question universe or value outside the scale."""
    pass


class QuestionBankError(TalentMappingError, ValueError):
    """The question bank file is missing, unparsable or inconsistent."""
    pass


# --- Persistence ---

class PersistenceError(TalentMappingError):
    """Encryption, decryption or storage failure. Always recoverable."""
    pass


class EncryptionError(PersistenceError):
    pass


class DecryptionError(PersistenceError):
    pass


class StorageError(PersistenceError):
    """The underlying key-value store rejected or failed an operation."""
    pass


# --- Transport / result retrieval ---

class TransportError(TalentMappingError):
    """Any backend failure other than "not found yet"."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(TransportError):
    """The result has not materialized yet (HTTP 404)."""

    def __init__(self, message: str = "Result not found", status_code: int = 404):
        super().__init__(message, status_code=status_code)


class ExhaustedRetriesError(TalentMappingError):
    """Result still missing after every allowed attempt."""

    def __init__(self, result_id: str, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(
            f"Result {result_id} not found after {attempts} attempts. "
            "The analysis may still be processing."
        )
        self.result_id = result_id
        self.attempts = attempts
        self.last_error = last_error
