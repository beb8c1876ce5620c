"""
Error types raised by the service layer.

Handlers never translate these themselves: the application registers a
single error handler that renders ``{"error": message}`` with the class's
HTTP status. Access to a resource owned by someone else is reported as
``NotFound`` so that its existence is not revealed.
"""


class StudyError(Exception):
    """Base class for all service errors."""
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class NotAuthenticated(StudyError):
    status_code = 401
    default_message = "Not authenticated"


class NotFound(StudyError):
    status_code = 404
    default_message = "Not found"


class InvalidSubmission(StudyError):
    status_code = 400
    default_message = "Invalid submission"


class EvaluationError(StudyError):
    """The text-evaluation service could not produce feedback."""
    status_code = 502
    default_message = "Evaluation failed"
