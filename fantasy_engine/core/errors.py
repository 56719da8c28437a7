"""
Engine exception hierarchy.

ValidationError subclasses are rejected synchronously and never scored.
Duplicate* errors are idempotence guards: callers treat them as a
successful no-op. PersistenceUnavailableError is retryable.
"""


class FantasyError(Exception):
    """Base exception for the fantasy engine."""
    pass


# ============================================
# Validation
# ============================================

class ValidationError(FantasyError):
    """Raised when input is rejected before anything is written."""
    pass


class InvalidPredictionError(ValidationError):
    """Raised when a submitted value does not match the question's answer schema."""
    pass


class LockInError(ValidationError):
    """Raised when a prediction arrives after the lock-in deadline."""
    pass


class InvalidResultError(ValidationError):
    """Raised when a declared result does not match the question's answer schema."""
    pass


class InvalidTransactionError(ValidationError):
    """Raised when a coin amount is not allowed for its transaction type."""
    pass


class InsufficientBalanceError(ValidationError):
    """Raised when a debit would drive a wallet below zero."""
    pass


class InvalidQuestionError(ValidationError):
    """Raised when a question does not fit its game's rules."""
    pass


class InvalidEventError(ValidationError):
    """Raised when an event cannot be stored."""
    pass


class InvalidSessionError(ValidationError):
    """Raised when a session is requested for an event of another game."""
    pass


class InvalidReferralError(ValidationError):
    pass


# ============================================
# Lookups
# ============================================

class NotFoundError(FantasyError):
    pass


class QuestionNotFoundError(NotFoundError):
    pass


class SessionNotFoundError(NotFoundError):
    pass


class EventNotFoundError(NotFoundError):
    pass


class UnknownGameTypeError(FantasyError):
    """Raised when the catalog has no configuration for a game type."""
    pass


# ============================================
# Idempotence guards
# ============================================

class DuplicateTransactionError(FantasyError):
    """A transaction with the same (reference_id, type) already exists."""

    def __init__(self, reference_id: str, type_: str):
        super().__init__(f"Transaction {type_} for reference {reference_id} already exists")
        self.reference_id = reference_id
        self.type = type_


class DuplicateOutcomeError(FantasyError):
    """A scoring outcome for the prediction already exists."""

    def __init__(self, prediction_id: str):
        super().__init__(f"Outcome for prediction {prediction_id} already exists")
        self.prediction_id = prediction_id


class DuplicateResultError(FantasyError):
    """A result for the question was already declared."""

    def __init__(self, question_id: str):
        super().__init__(f"Result for question {question_id} already declared")
        self.question_id = question_id


# ============================================
# Selection / storage
# ============================================

class InsufficientPoolError(FantasyError):
    """
    The pool could not satisfy the requested count.

    Only raised when the caller asks for strict selection; carries the
    best-effort selection so the caller can still proceed with it.
    """

    def __init__(self, requested: int, selection):
        super().__init__(
            f"Requested {requested} questions, pool yielded {len(selection.questions)}"
        )
        self.requested = requested
        self.selection = selection


class PersistenceUnavailableError(FantasyError):
    """Storage timed out or is unreachable. Safe to retry."""
    pass
