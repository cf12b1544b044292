"""
Application Errors
Exception hierarchy shared by the engine, the store and the services
FILE: quizapp/core/errors.py
"""


class QuizAppError(Exception):
    """Base exception for quiz application errors"""
    pass


# ==================== QUIZ / SESSION ERRORS ====================

class InvalidQuizError(QuizAppError):
    """Raised when a session is started on a quiz without questions"""
    pass


class QuizValidationError(QuizAppError):
    """Raised when a quiz draft fails authoring validation"""
    pass


class NotFoundError(QuizAppError):
    """Raised when a quiz, attempt or session does not exist"""
    pass


class SessionClosedError(QuizAppError):
    """Raised when a submitted session is mutated"""
    pass


class SubmissionError(QuizAppError):
    """Raised when the attempt could not be written at submission time"""
    pass


# ==================== STORE / IDENTITY ERRORS ====================

class DocumentStoreError(QuizAppError):
    """Raised when a document store operation fails"""
    pass


class TransientStoreError(DocumentStoreError):
    """Raised when a store operation failed for a retryable reason"""
    pass


class AuthenticationError(QuizAppError):
    """Raised when no user identity is available"""
    pass
